from __future__ import annotations

import asyncio
import logging
import os
import sys
import termios
import tty
from abc import ABC, abstractmethod
from typing import AsyncIterator, ClassVar, TextIO

from .errors import InputError, KeyboardBusyError
from .models import KeyEvent

logger = logging.getLogger(__name__)

BACKSPACE_KEYS = frozenset({"\x7f", "\x08"})


class KeySource(ABC):
    """Scoped raw keyboard resource; only one instance may be open at a time."""

    _holder: ClassVar[KeySource | None] = None

    def __init__(self) -> None:
        self._queue: asyncio.Queue[KeyEvent] = asyncio.Queue()
        self.acquire_count = 0
        self.release_count = 0

    @classmethod
    def is_held(cls) -> bool:
        return KeySource._holder is not None

    @abstractmethod
    def _open(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def _close(self) -> None:
        raise NotImplementedError

    def _emit(self, event: KeyEvent) -> None:
        self._queue.put_nowait(event)

    async def __aenter__(self) -> KeySource:
        if KeySource._holder is not None:
            raise KeyboardBusyError("keyboard input is already acquired")
        self._open()
        KeySource._holder = self
        self.acquire_count += 1
        logger.debug("[Keyboard] Acquired")
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if KeySource._holder is not self:
            return
        try:
            self._close()
        finally:
            KeySource._holder = None
            self.release_count += 1
            logger.debug("[Keyboard] Released")

    async def next_key(self) -> KeyEvent:
        return await self._queue.get()

    async def events(self) -> AsyncIterator[KeyEvent]:
        while True:
            yield await self.next_key()


class KeyboardInput(KeySource):
    """Reads single key presses from a terminal in cbreak mode."""

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        self._stream = stream or sys.stdin
        self._fd: int | None = None
        self._saved_attrs: list | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def _open(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            fd = self._stream.fileno()
            self._saved_attrs = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        except (termios.error, OSError, ValueError) as exc:
            raise InputError(f"cannot open keyboard input: {exc}") from exc

        self._fd = fd
        self._loop = loop
        loop.add_reader(fd, self._on_readable)

    def _close(self) -> None:
        if self._fd is None:
            return
        fd = self._fd
        self._fd = None
        if self._loop is not None:
            self._loop.remove_reader(fd)
            self._loop = None
        if self._saved_attrs is not None:
            try:
                termios.tcsetattr(fd, termios.TCSADRAIN, self._saved_attrs)
            except termios.error as exc:
                raise InputError(f"cannot restore terminal: {exc}") from exc
            finally:
                self._saved_attrs = None

    def _on_readable(self) -> None:
        if self._fd is None:
            return
        try:
            data = os.read(self._fd, 64)
        except OSError as exc:
            self._emit(KeyEvent(error=InputError(f"keyboard read failed: {exc}")))
            return

        if not data:
            # stdin closed; stop polling so the loop does not spin on EOF
            if self._loop is not None:
                self._loop.remove_reader(self._fd)
            self._emit(KeyEvent(error=InputError("keyboard input closed")))
            return

        for key in data.decode("utf-8", errors="replace"):
            self._emit(KeyEvent(key=key))
