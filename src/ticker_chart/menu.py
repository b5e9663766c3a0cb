from __future__ import annotations

import logging
from typing import Callable

from .errors import InputError
from .frame_sink import FrameSink
from .keyboard import KeySource
from .models import KeyEvent, Symbol
from .pipeline import PipelineCoordinator

logger = logging.getLogger(__name__)

QUIT_KEY = "q"
SYMBOL_KEYS = {
    "1": Symbol.BTC,
    "2": Symbol.LTC,
    "3": Symbol.ETH,
}


def menu_text(notice: str | None = None) -> str:
    lines = ["Main menu"]
    lines.extend(f"{key}. {symbol.pair}" for key, symbol in SYMBOL_KEYS.items())
    lines.append("")
    lines.append("Press 1-3 to change symbol, press q to exit")
    if notice:
        lines.append("")
        lines.append(notice)
    return "\n".join(lines)


class Menu:
    def __init__(
        self,
        *,
        coordinator: PipelineCoordinator,
        sink: FrameSink,
        keyboard_factory: Callable[[], KeySource],
        exit_on_error: bool = False,
    ) -> None:
        self._coordinator = coordinator
        self._sink = sink
        self._keyboard_factory = keyboard_factory
        self.exit_on_error = exit_on_error
        self.last_error: Exception | None = None
        self.sessions = 0

    async def _read_key(self) -> KeyEvent:
        # the keyboard is released before a session acquires its own handle
        async with self._keyboard_factory() as keyboard:
            return await keyboard.next_key()

    async def run(self) -> int:
        """Loop until quit; returns the process exit code."""
        notice: str | None = None
        while True:
            self._sink.render(menu_text(notice))
            try:
                event = await self._read_key()
            except InputError as exc:
                logger.error("[Menu] Keyboard unavailable: %s", exc)
                self.last_error = exc
                return 1

            if event.error is not None:
                logger.error("[Menu] Keyboard input failed: %s", event.error)
                self.last_error = event.error
                return 1

            key = event.key.lower()
            if key == QUIT_KEY:
                logger.info("[Menu] Quit requested")
                return 0

            symbol = SYMBOL_KEYS.get(key)
            if symbol is None:
                continue

            self.sessions += 1
            result = await self._coordinator.run_session(symbol)
            if result.ok:
                notice = None
                continue

            self.last_error = result.error
            if self.exit_on_error:
                return 1
            notice = f"{symbol.pair} stopped ({result.reason.value}): {result.error}"
