from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from .cancellation import CancellationWatcher
from .channel import build_channel
from .errors import FetchError, InputError, RenderError, TickerChartError
from .frame_sink import FrameSink
from .keyboard import KeySource
from .models import CancelReason, SessionResult, SessionState, StopReason, Symbol
from .price_source import PriceSource
from .renderer import Renderer
from .sampler import Sampler
from .window import DEFAULT_CAPACITY, BoundedWindow

logger = logging.getLogger(__name__)

_TRANSITIONS = {
    SessionState.IDLE: {SessionState.RUNNING, SessionState.STOPPED},
    SessionState.RUNNING: {SessionState.DRAINING, SessionState.STOPPED},
    SessionState.DRAINING: {SessionState.STOPPED},
    SessionState.STOPPED: {SessionState.RUNNING},
}


@dataclass(frozen=True)
class PipelineSettings:
    cadence_seconds: float = 1.0
    window_capacity: int = DEFAULT_CAPACITY
    render_policy: str = "latest"
    chart_width: int = 100
    chart_height: int = 10
    precision: int = 3
    chart_color: str | None = None


async def _settle(task: asyncio.Task) -> BaseException | None:
    await asyncio.wait({task})
    if task.cancelled():
        return None
    return task.exception()


class PipelineCoordinator:
    """Runs one chart session at a time: sampler, renderer and cancel watcher."""

    def __init__(
        self,
        *,
        source: PriceSource,
        sink: FrameSink,
        keyboard_factory: Callable[[], KeySource],
        settings: PipelineSettings | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._source = source
        self._sink = sink
        self._keyboard_factory = keyboard_factory
        self.settings = settings or PipelineSettings()
        self._now = now
        self.state = SessionState.IDLE
        self.history: list[SessionState] = [SessionState.IDLE]

    def _transition(self, new_state: SessionState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"invalid session transition {self.state.value} -> {new_state.value}")
        logger.info("[Pipeline] %s -> %s", self.state.value, new_state.value)
        self.state = new_state
        self.history.append(new_state)

    @staticmethod
    def _first_outcome(
        done: set[asyncio.Task],
        watcher_task: asyncio.Task,
        sampler_task: asyncio.Task,
        renderer_task: asyncio.Task,
        watcher: CancellationWatcher,
    ) -> tuple[StopReason, Exception | None]:
        if watcher_task in done:
            exc = watcher_task.exception()
            if exc is not None:
                return StopReason.INPUT_ERROR, InputError(f"cancel watcher failed: {exc}")
            if watcher_task.result() is CancelReason.USER_REQUESTED:
                return StopReason.USER_CANCEL, None
            return StopReason.INPUT_ERROR, watcher.error

        if sampler_task in done:
            exc = sampler_task.exception()
            if isinstance(exc, FetchError):
                return StopReason.FETCH_ERROR, exc
            if exc is not None:
                logger.error("[Pipeline] Sampler crashed", exc_info=exc)
                return StopReason.FETCH_ERROR, FetchError(f"sampler failed: {exc!r}")
            return StopReason.FETCH_ERROR, FetchError("sampler stopped unexpectedly")

        exc = renderer_task.exception()
        if isinstance(exc, RenderError):
            return StopReason.RENDER_ERROR, exc
        if exc is not None:
            logger.error("[Pipeline] Renderer crashed", exc_info=exc)
            return StopReason.RENDER_ERROR, RenderError(f"renderer failed: {exc!r}")
        return StopReason.RENDER_ERROR, RenderError("renderer stopped unexpectedly")

    async def run_session(self, symbol: Symbol) -> SessionResult:
        if self.state in (SessionState.RUNNING, SessionState.DRAINING):
            raise RuntimeError("a pipeline session is already active")

        settings = self.settings
        window = BoundedWindow(symbol, settings.window_capacity)
        channel = build_channel(settings.render_policy)
        sampler = Sampler(self._source, cadence_seconds=settings.cadence_seconds)
        renderer = Renderer(
            chart_width=settings.chart_width,
            chart_height=settings.chart_height,
            precision=settings.precision,
            color=settings.chart_color,
            now=self._now,
        )
        watcher = CancellationWatcher()
        stop = asyncio.Event()
        reason: StopReason | None = None
        error: Exception | None = None

        logger.info("[Pipeline] Session start %s", symbol.pair)
        try:
            async with self._keyboard_factory() as keyboard:
                self._transition(SessionState.RUNNING)
                sampler_task = asyncio.create_task(
                    sampler.run_into(symbol, window, channel, stop), name=f"sampler-{symbol.value}"
                )
                renderer_task = asyncio.create_task(renderer.run(channel, self._sink), name="renderer")
                watcher_task = asyncio.create_task(watcher.watch(keyboard.events()), name="cancel-watcher")
                tasks = (sampler_task, renderer_task, watcher_task)
                try:
                    done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
                    reason, error = self._first_outcome(done, watcher_task, sampler_task, renderer_task, watcher)

                    self._transition(SessionState.DRAINING)
                    stop.set()
                    watcher_task.cancel()
                    await _settle(watcher_task)
                    # sampler closes the channel on exit; the renderer then drains it
                    await _settle(sampler_task)
                    renderer_error = await _settle(renderer_task)
                    if error is None and renderer_error is not None:
                        if not isinstance(renderer_error, RenderError):
                            renderer_error = RenderError(f"renderer failed: {renderer_error!r}")
                        reason, error = StopReason.RENDER_ERROR, renderer_error
                finally:
                    pending = [task for task in tasks if not task.done()]
                    if pending:
                        stop.set()
                        for task in pending:
                            task.cancel()
                        await asyncio.gather(*pending, return_exceptions=True)
        except InputError as exc:
            if reason is None:
                reason, error = StopReason.INPUT_ERROR, exc
            else:
                logger.error("[Pipeline] Keyboard release failed: %s", exc)
        finally:
            if self.state is not SessionState.STOPPED:
                self._transition(SessionState.STOPPED)

        if error is not None and not isinstance(error, TickerChartError):
            error = InputError(str(error))

        result = SessionResult(
            symbol=symbol,
            reason=reason,
            error=error,
            fetch_count=sampler.fetch_count,
            frames_rendered=renderer.frames_rendered,
            samples=window.snapshot().samples,
        )
        if result.ok:
            logger.info(
                "[Pipeline] Session end %s reason=%s fetches=%s frames=%s",
                symbol.pair,
                reason.value,
                result.fetch_count,
                result.frames_rendered,
            )
        else:
            logger.error("[Pipeline] Session failed %s reason=%s error=%s", symbol.pair, reason.value, error)
        return result
