from __future__ import annotations

from abc import ABC, abstractmethod

from rich.console import Console
from rich.live import Live
from rich.text import Text


class FrameSink(ABC):
    @abstractmethod
    def render(self, text: str) -> None:
        raise NotImplementedError


class RichFrameSink(FrameSink):
    """Redraws each frame in place over the previous one."""

    def __init__(self, *, console: Console | None = None) -> None:
        self._console = console
        self._live: Live | None = None

    @property
    def started(self) -> bool:
        return self._live is not None

    def start(self) -> None:
        if self._live is not None:
            return
        self._live = Live(Text(""), console=self._console, auto_refresh=False, transient=False)
        self._live.start()

    def stop(self) -> None:
        if self._live is None:
            return
        self._live.stop()
        self._live = None

    def render(self, text: str) -> None:
        if self._live is None:
            self.start()
        # chart lines carry ANSI colour codes from plotext
        self._live.update(Text.from_ansi(text), refresh=True)

    def __enter__(self) -> RichFrameSink:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
