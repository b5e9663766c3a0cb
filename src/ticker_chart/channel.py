from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import AsyncIterator

from .models import WindowSnapshot

RENDER_POLICIES = ("latest", "queue")


class ChannelClosedError(RuntimeError):
    pass


class SnapshotChannel(ABC):
    """Single-producer, single-consumer handoff from the sampler to the renderer.

    ``publish`` never blocks the producer. ``get`` returns ``None`` once the
    channel is closed and every pending snapshot has been consumed.
    """

    def __init__(self) -> None:
        self._closed = False
        self.published = 0
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @abstractmethod
    def publish(self, snapshot: WindowSnapshot) -> None:
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get(self) -> WindowSnapshot | None:
        raise NotImplementedError

    async def __aiter__(self) -> AsyncIterator[WindowSnapshot]:
        while True:
            snapshot = await self.get()
            if snapshot is None:
                return
            yield snapshot


class LatestSnapshotChannel(SnapshotChannel):
    """Keeps only the newest unread snapshot; older unread ones are dropped."""

    def __init__(self) -> None:
        super().__init__()
        self._latest: WindowSnapshot | None = None
        self._ready = asyncio.Event()

    def publish(self, snapshot: WindowSnapshot) -> None:
        if self._closed:
            raise ChannelClosedError("snapshot channel is closed")
        if self._latest is not None:
            self.dropped += 1
        self._latest = snapshot
        self.published += 1
        self._ready.set()

    def close(self) -> None:
        self._closed = True
        self._ready.set()

    async def get(self) -> WindowSnapshot | None:
        while self._latest is None:
            if self._closed:
                return None
            self._ready.clear()
            await self._ready.wait()

        snapshot, self._latest = self._latest, None
        return snapshot


class QueueSnapshotChannel(SnapshotChannel):
    """Unbounded FIFO: every snapshot is delivered, however slow the reader."""

    def __init__(self) -> None:
        super().__init__()
        self._queue: asyncio.Queue[WindowSnapshot | None] = asyncio.Queue()

    def publish(self, snapshot: WindowSnapshot) -> None:
        if self._closed:
            raise ChannelClosedError("snapshot channel is closed")
        self._queue.put_nowait(snapshot)
        self.published += 1

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def get(self) -> WindowSnapshot | None:
        if self._closed and self._queue.empty():
            return None
        snapshot = await self._queue.get()
        if snapshot is None:
            # keep the sentinel so repeated reads after close stay terminal
            self._queue.put_nowait(None)
        return snapshot


def build_channel(policy: str) -> SnapshotChannel:
    if policy == "latest":
        return LatestSnapshotChannel()
    if policy == "queue":
        return QueueSnapshotChannel()
    raise ValueError(f"unsupported render policy: {policy}")
