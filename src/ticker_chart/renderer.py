from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from .channel import SnapshotChannel
from .chart import plot
from .errors import RenderError
from .frame_sink import FrameSink
from .models import WindowSnapshot

logger = logging.getLogger(__name__)


class Renderer:
    def __init__(
        self,
        *,
        chart_width: int = 100,
        chart_height: int = 10,
        precision: int = 3,
        color: str | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.chart_width = chart_width
        self.chart_height = chart_height
        self.precision = precision
        self.color = color
        self._now = now
        self.frames_rendered = 0

    def format_frame(self, snapshot: WindowSnapshot) -> str:
        latest = snapshot.latest
        if latest is None:
            raise ValueError("cannot render an empty snapshot")

        graph = plot(
            snapshot.prices,
            width=self.chart_width,
            height=self.chart_height,
            precision=self.precision,
            color=self.color,
        )
        now = self._now()
        return "\n".join(
            [
                f"{snapshot.symbol.pair}: {latest.price:.{self.precision}f}",
                graph,
                f"Current time: {now.strftime('%H:%M:%S')}",
                f"Current date: {now.strftime('%Y-%m-%d')}",
            ]
        )

    async def run(self, channel: SnapshotChannel, sink: FrameSink) -> None:
        async for snapshot in channel:
            if not snapshot.samples:
                continue
            try:
                frame = self.format_frame(snapshot)
                sink.render(frame)
            except Exception as exc:  # noqa: BLE001
                logger.error("[Renderer] Frame failed: %s", exc)
                raise RenderError(f"frame render failed: {exc}") from exc
            self.frames_rendered += 1

        logger.info(
            "[Renderer] Snapshot stream closed frames=%s dropped=%s",
            self.frames_rendered,
            channel.dropped,
        )
