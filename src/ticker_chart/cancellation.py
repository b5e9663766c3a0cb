from __future__ import annotations

import logging
from typing import AsyncIterator

from .errors import InputError
from .keyboard import BACKSPACE_KEYS
from .models import CancelReason, KeyEvent

logger = logging.getLogger(__name__)


class CancellationWatcher:
    def __init__(self, cancel_keys: frozenset[str] = BACKSPACE_KEYS) -> None:
        self.cancel_keys = cancel_keys
        self.error: Exception | None = None

    async def watch(self, key_events: AsyncIterator[KeyEvent]) -> CancelReason:
        async for event in key_events:
            if event.error is not None:
                self.error = event.error
                logger.error("[Cancel] Keyboard input failed: %s", event.error)
                return CancelReason.INPUT_ERROR

            if event.key in self.cancel_keys:
                logger.info("[Cancel] Cancel requested by user")
                return CancelReason.USER_REQUESTED

        self.error = InputError("keyboard event stream ended")
        logger.error("[Cancel] Keyboard event stream ended")
        return CancelReason.INPUT_ERROR
