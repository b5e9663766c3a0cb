from __future__ import annotations

import asyncio
import logging
import math
import random
from abc import ABC, abstractmethod

import httpx

from .errors import FetchError
from .models import Symbol

logger = logging.getLogger(__name__)

EXMO_TICKER_URL = "https://api.exmo.com/v1.1/ticker"


class PriceSource(ABC):
    @abstractmethod
    async def fetch(self, symbol: Symbol) -> float:
        raise NotImplementedError


class ExmoPriceSource(PriceSource):
    """Average pair price from the Exmo public ticker, retried with backoff."""

    def __init__(
        self,
        *,
        url: str = EXMO_TICKER_URL,
        timeout_seconds: float = 5.0,
        max_retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self._transport = transport

    @staticmethod
    def _backoff_seconds(attempt: int) -> float:
        return min(2.0, (0.35 * (2**attempt)) + random.uniform(0.05, 0.25))

    @staticmethod
    def _parse_price(body: object, symbol: Symbol) -> float:
        if not isinstance(body, dict):
            raise FetchError("ticker response is not an object", symbol=symbol.value)

        pair = body.get(symbol.pair)
        if not isinstance(pair, dict):
            raise FetchError(f"ticker response missing pair {symbol.pair}", symbol=symbol.value)

        avg = pair.get("avg")
        if avg is None:
            raise FetchError(f"ticker pair {symbol.pair} missing avg", symbol=symbol.value)

        try:
            price = float(avg)
        except (TypeError, ValueError) as exc:
            raise FetchError(f"ticker pair {symbol.pair} has invalid avg {avg!r}", symbol=symbol.value) from exc
        if not math.isfinite(price):
            raise FetchError(f"ticker pair {symbol.pair} has non-finite avg {avg!r}", symbol=symbol.value)
        return price

    async def _fetch_once(self, symbol: Symbol) -> float:
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(self.url, headers=headers)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"ticker http {exc.response.status_code} at {self.url}",
                symbol=symbol.value,
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"ticker request failed: {exc}", symbol=symbol.value) from exc
        except ValueError as exc:
            raise FetchError(f"ticker response is not valid json: {exc}", symbol=symbol.value) from exc

        return self._parse_price(body, symbol)

    async def fetch(self, symbol: Symbol) -> float:
        attempts = max(0, self.max_retries) + 1
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                return await asyncio.wait_for(self._fetch_once(symbol), timeout=self.timeout_seconds)
            except (FetchError, asyncio.TimeoutError) as exc:
                last_error = exc
                if attempt >= attempts - 1:
                    break
                delay = self._backoff_seconds(attempt)
                logger.warning(
                    "[PriceSource] %s fetch failed (%s); retry %s/%s in %.2fs",
                    symbol.pair,
                    str(exc) or "timeout",
                    attempt + 1,
                    attempts - 1,
                    delay,
                )
                await asyncio.sleep(delay)

        raise FetchError(
            f"{symbol.pair} price fetch failed after {attempts} attempt(s): {str(last_error) or 'timeout'}",
            symbol=symbol.value,
            attempts=attempts,
        ) from last_error
