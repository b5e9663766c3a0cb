from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Symbol(str, Enum):
    BTC = "BTC"
    LTC = "LTC"
    ETH = "ETH"

    @property
    def pair(self) -> str:
        return f"{self.value}_USD"


@dataclass(frozen=True)
class Sample:
    ts: float
    symbol: Symbol
    price: float


@dataclass(frozen=True)
class WindowSnapshot:
    symbol: Symbol
    capacity: int
    samples: tuple[Sample, ...] = ()

    @property
    def prices(self) -> list[float]:
        return [sample.price for sample in self.samples]

    @property
    def latest(self) -> Sample | None:
        if not self.samples:
            return None
        return self.samples[-1]

    def __len__(self) -> int:
        return len(self.samples)


class CancelReason(str, Enum):
    USER_REQUESTED = "user_requested"
    INPUT_ERROR = "input_error"


class StopReason(str, Enum):
    USER_CANCEL = "user_cancel"
    INPUT_ERROR = "input_error"
    FETCH_ERROR = "fetch_error"
    RENDER_ERROR = "render_error"

    @property
    def is_error(self) -> bool:
        return self is not StopReason.USER_CANCEL


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


@dataclass(frozen=True)
class KeyEvent:
    key: str = ""
    error: Exception | None = None


@dataclass(frozen=True)
class SessionResult:
    symbol: Symbol
    reason: StopReason
    error: Exception | None = None
    fetch_count: int = 0
    frames_rendered: int = 0
    samples: tuple[Sample, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.reason.is_error
