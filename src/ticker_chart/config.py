from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .channel import RENDER_POLICIES
from .price_source import EXMO_TICKER_URL


@dataclass(frozen=True)
class Config:
    api_url: str
    cadence_seconds: float
    window_capacity: int
    chart_width: int
    chart_height: int
    chart_precision: int
    chart_color: str | None
    fetch_timeout_seconds: float
    fetch_max_retries: int
    render_policy: str
    exit_on_error: bool
    log_level: str
    log_path: str



def _bool_from_env(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}



def _int_from_env(name: str, default: str, minimum: int) -> int:
    raw = os.getenv(name, default).strip()
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value



def _positive_float_from_env(name: str, default: str) -> float:
    raw = os.getenv(name, default).strip()
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value



def load_config() -> Config:
    load_dotenv()

    render_policy = os.getenv("TICKER_RENDER_POLICY", "latest").strip().lower()
    if render_policy not in RENDER_POLICIES:
        raise ValueError(f"TICKER_RENDER_POLICY must be one of {', '.join(RENDER_POLICIES)}")

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"LOG_LEVEL is not a valid logging level: {log_level}")

    return Config(
        api_url=os.getenv("TICKER_API_URL", EXMO_TICKER_URL).strip(),
        cadence_seconds=_positive_float_from_env("TICKER_CADENCE_SECONDS", "1.0"),
        window_capacity=_int_from_env("TICKER_WINDOW_CAPACITY", "120", 1),
        chart_width=_int_from_env("TICKER_CHART_WIDTH", "100", 1),
        chart_height=_int_from_env("TICKER_CHART_HEIGHT", "10", 1),
        chart_precision=_int_from_env("TICKER_CHART_PRECISION", "3", 0),
        chart_color=os.getenv("TICKER_CHART_COLOR", "red").strip() or None,
        fetch_timeout_seconds=_positive_float_from_env("TICKER_FETCH_TIMEOUT_SECONDS", "5.0"),
        fetch_max_retries=_int_from_env("TICKER_FETCH_MAX_RETRIES", "2", 0),
        render_policy=render_policy,
        exit_on_error=_bool_from_env(os.getenv("TICKER_EXIT_ON_ERROR"), False),
        log_level=log_level,
        log_path=os.getenv("TICKER_LOG_PATH", "logs/ticker_chart.log").strip(),
    )
