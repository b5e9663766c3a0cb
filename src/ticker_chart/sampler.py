from __future__ import annotations

import asyncio
import contextlib
import logging
import math
import time
from typing import Callable

from .channel import SnapshotChannel
from .errors import FetchError
from .models import Sample, Symbol, WindowSnapshot
from .price_source import PriceSource
from .window import BoundedWindow

logger = logging.getLogger(__name__)


class Sampler:
    def __init__(
        self,
        source: PriceSource,
        *,
        cadence_seconds: float = 1.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if cadence_seconds <= 0:
            raise ValueError("cadence_seconds must be > 0")
        self._source = source
        self.cadence_seconds = cadence_seconds
        self._clock = clock
        self.fetch_count = 0
        self.published = 0

    async def _fetch_or_stop(self, symbol: Symbol, stop: asyncio.Event) -> float | None:
        """Fetch one price; returns ``None`` if ``stop`` fires first."""
        self.fetch_count += 1
        fetch_task = asyncio.create_task(self._source.fetch(symbol), name=f"fetch-{symbol.value}")
        stop_task = asyncio.create_task(stop.wait(), name="sampler-stop-wait")
        try:
            await asyncio.wait({fetch_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            fetch_task.cancel()
            stop_task.cancel()
            await asyncio.wait({fetch_task, stop_task})
            if not fetch_task.cancelled():
                fetch_task.exception()
            raise
        finally:
            stop_task.cancel()

        if stop.is_set():
            fetch_task.cancel()
            try:
                await fetch_task
            except asyncio.CancelledError:
                pass
            except Exception as exc:  # noqa: BLE001
                logger.debug("[Sampler] Discarded %s fetch outcome after stop: %s", symbol.pair, exc)
            return None

        try:
            price = fetch_task.result()
        except FetchError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise FetchError(f"{symbol.pair} price source error: {exc}", symbol=symbol.value) from exc

        if not isinstance(price, (int, float)) or not math.isfinite(price):
            raise FetchError(f"{symbol.pair} price source returned {price!r}", symbol=symbol.value)
        return float(price)

    async def _sleep_or_stop(self, stop: asyncio.Event) -> None:
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(stop.wait(), timeout=self.cadence_seconds)

    async def run(
        self,
        symbol: Symbol,
        window: BoundedWindow,
        publish: Callable[[WindowSnapshot], None],
        stop: asyncio.Event,
    ) -> None:
        logger.info("[Sampler] Started %s cadence=%.2fs", symbol.pair, self.cadence_seconds)
        try:
            while not stop.is_set():
                try:
                    price = await self._fetch_or_stop(symbol, stop)
                except FetchError as exc:
                    logger.error("[Sampler] %s fetch failed: %s", symbol.pair, exc)
                    raise

                if price is None or stop.is_set():
                    break

                snapshot = window.append(Sample(ts=self._clock(), symbol=symbol, price=price))
                publish(snapshot)
                self.published += 1
                logger.debug(
                    "[Sampler] %s price=%s window=%s full=%s",
                    symbol.pair,
                    price,
                    len(snapshot),
                    window.is_full(),
                )

                await self._sleep_or_stop(stop)
        finally:
            logger.info(
                "[Sampler] Stopped %s fetches=%s published=%s",
                symbol.pair,
                self.fetch_count,
                self.published,
            )

    async def run_into(
        self,
        symbol: Symbol,
        window: BoundedWindow,
        channel: SnapshotChannel,
        stop: asyncio.Event,
    ) -> None:
        """Run and close ``channel`` on every exit path."""
        try:
            await self.run(symbol, window, channel.publish, stop)
        finally:
            channel.close()
