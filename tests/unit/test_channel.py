import asyncio

import pytest

from src.ticker_chart.channel import (
    ChannelClosedError,
    LatestSnapshotChannel,
    QueueSnapshotChannel,
    build_channel,
)
from src.ticker_chart.models import Sample, Symbol, WindowSnapshot


def _snapshot(*prices: float) -> WindowSnapshot:
    return WindowSnapshot(
        symbol=Symbol.BTC,
        capacity=120,
        samples=tuple(Sample(ts=float(i), symbol=Symbol.BTC, price=p) for i, p in enumerate(prices)),
    )


def test_latest_channel_keeps_only_newest_unread_snapshot() -> None:
    async def _run() -> list[WindowSnapshot]:
        channel = LatestSnapshotChannel()
        channel.publish(_snapshot(1.0))
        channel.publish(_snapshot(1.0, 2.0))
        channel.publish(_snapshot(1.0, 2.0, 3.0))
        channel.close()
        received = [snapshot async for snapshot in channel]
        assert channel.dropped == 2
        assert channel.published == 3
        return received

    received = asyncio.run(_run())
    assert [s.prices for s in received] == [[1.0, 2.0, 3.0]]


def test_queue_channel_delivers_every_snapshot_in_order() -> None:
    async def _run() -> list[WindowSnapshot]:
        channel = QueueSnapshotChannel()
        for n in range(1, 4):
            channel.publish(_snapshot(*[float(v) for v in range(n)]))
        channel.close()
        return [snapshot async for snapshot in channel]

    received = asyncio.run(_run())
    assert [len(s) for s in received] == [1, 2, 3]


def test_reader_wakes_on_publish_and_close() -> None:
    async def _run() -> list[float]:
        channel = LatestSnapshotChannel()
        seen: list[float] = []

        async def reader() -> None:
            async for snapshot in channel:
                seen.append(snapshot.latest.price)

        task = asyncio.create_task(reader())
        for price in (10.0, 20.0, 30.0):
            channel.publish(_snapshot(price))
            await asyncio.sleep(0.01)
        channel.close()
        await asyncio.wait_for(task, timeout=1.0)
        return seen

    assert asyncio.run(_run()) == [10.0, 20.0, 30.0]


@pytest.mark.parametrize("policy", ["latest", "queue"])
def test_publish_after_close_is_rejected(policy: str) -> None:
    async def _run() -> None:
        channel = build_channel(policy)
        channel.close()
        with pytest.raises(ChannelClosedError):
            channel.publish(_snapshot(1.0))
        assert await channel.get() is None
        assert await channel.get() is None

    asyncio.run(_run())


def test_build_channel_rejects_unknown_policy() -> None:
    with pytest.raises(ValueError, match="unsupported render policy"):
        build_channel("block")
