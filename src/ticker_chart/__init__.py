from .errors import FetchError, InputError, KeyboardBusyError, RenderError, TickerChartError
from .models import CancelReason, Sample, SessionResult, SessionState, StopReason, Symbol, WindowSnapshot
from .pipeline import PipelineCoordinator, PipelineSettings
from .window import BoundedWindow

__all__ = [
    "BoundedWindow",
    "CancelReason",
    "FetchError",
    "InputError",
    "KeyboardBusyError",
    "PipelineCoordinator",
    "PipelineSettings",
    "RenderError",
    "Sample",
    "SessionResult",
    "SessionState",
    "StopReason",
    "Symbol",
    "TickerChartError",
    "WindowSnapshot",
]
