from __future__ import annotations


class TickerChartError(Exception):
    pass


class FetchError(TickerChartError):
    def __init__(self, message: str, *, symbol: str | None = None, attempts: int = 1) -> None:
        super().__init__(message)
        self.symbol = symbol
        self.attempts = attempts


class InputError(TickerChartError):
    pass


class KeyboardBusyError(InputError):
    pass


class RenderError(TickerChartError):
    pass
