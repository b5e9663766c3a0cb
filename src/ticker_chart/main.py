from __future__ import annotations

import asyncio
import logging
import os
import sys

from rich.console import Console

from .config import Config, load_config
from .frame_sink import RichFrameSink
from .keyboard import KeyboardInput
from .menu import Menu
from .pipeline import PipelineCoordinator, PipelineSettings
from .price_source import ExmoPriceSource

logger = logging.getLogger(__name__)


def configure_logging(config: Config) -> None:
    log_dir = os.path.dirname(config.log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        filename=config.log_path,
    )


def build_menu(config: Config, sink: RichFrameSink) -> Menu:
    source = ExmoPriceSource(
        url=config.api_url,
        timeout_seconds=config.fetch_timeout_seconds,
        max_retries=config.fetch_max_retries,
    )
    coordinator = PipelineCoordinator(
        source=source,
        sink=sink,
        keyboard_factory=KeyboardInput,
        settings=PipelineSettings(
            cadence_seconds=config.cadence_seconds,
            window_capacity=config.window_capacity,
            render_policy=config.render_policy,
            chart_width=config.chart_width,
            chart_height=config.chart_height,
            precision=config.chart_precision,
            chart_color=config.chart_color,
        ),
    )
    return Menu(
        coordinator=coordinator,
        sink=sink,
        keyboard_factory=KeyboardInput,
        exit_on_error=config.exit_on_error,
    )


async def run(config: Config | None = None) -> int:
    config = config or load_config()
    sink = RichFrameSink()
    menu = build_menu(config, sink)

    with sink:
        code = await menu.run()

    if code != 0 and menu.last_error is not None:
        Console(stderr=True).print(f"[bold red]error:[/bold red] {menu.last_error}", markup=True, highlight=False)
    return code


def cli() -> None:
    try:
        config = load_config()
    except ValueError as exc:
        Console(stderr=True).print(f"[bold red]config error:[/bold red] {exc}")
        sys.exit(2)

    configure_logging(config)
    logger.info("Starting ticker chart api=%s cadence=%.2fs", config.api_url, config.cadence_seconds)
    try:
        code = asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    cli()
