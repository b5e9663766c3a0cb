from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Callable

import pytest

from src.ticker_chart.frame_sink import FrameSink
from src.ticker_chart.keyboard import KeySource
from src.ticker_chart.models import KeyEvent, Symbol
from src.ticker_chart.price_source import PriceSource


class ScriptedSource(PriceSource):
    """Returns the scripted outcomes in order; the last one repeats."""

    def __init__(self, outcomes: list[float | Exception], delay: float = 0.0) -> None:
        self._outcomes = list(outcomes)
        self.delay = delay
        self.calls = 0
        self.symbols: list[Symbol] = []

    async def fetch(self, symbol: Symbol) -> float:
        index = min(self.calls, len(self._outcomes) - 1)
        self.calls += 1
        self.symbols.append(symbol)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self._outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeKeyboard(KeySource):
    def __init__(self, keys: str = "") -> None:
        super().__init__()
        for key in keys:
            self.press(key)

    def _open(self) -> None:
        pass

    def _close(self) -> None:
        pass

    def press(self, key: str) -> None:
        self._emit(KeyEvent(key=key))

    def fail(self, error: Exception) -> None:
        self._emit(KeyEvent(error=error))


class RecordingSink(FrameSink):
    def __init__(self, fail_on: int | None = None) -> None:
        self.fail_on = fail_on
        self.frames: list[str] = []
        self.on_frame: Callable[[RecordingSink], None] | None = None

    def render(self, text: str) -> None:
        if self.fail_on is not None and len(self.frames) + 1 >= self.fail_on:
            raise RuntimeError("terminal gone")
        self.frames.append(text)
        if self.on_frame is not None:
            self.on_frame(self)


@pytest.fixture
def fakes() -> SimpleNamespace:
    return SimpleNamespace(Source=ScriptedSource, Keyboard=FakeKeyboard, Sink=RecordingSink)
