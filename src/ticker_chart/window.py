from __future__ import annotations

from collections import deque
from typing import Deque

from .models import Sample, Symbol, WindowSnapshot

DEFAULT_CAPACITY = 120


class BoundedWindow:
    """Fixed-capacity price history; the oldest sample is evicted once full."""

    def __init__(self, symbol: Symbol, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.symbol = symbol
        self.capacity = capacity
        self._samples: Deque[Sample] = deque(maxlen=capacity)

    def append(self, sample: Sample) -> WindowSnapshot:
        if sample.symbol != self.symbol:
            raise ValueError(f"sample for {sample.symbol.value} does not belong to {self.symbol.value} window")
        self._samples.append(sample)
        return self.snapshot()

    def snapshot(self) -> WindowSnapshot:
        return WindowSnapshot(
            symbol=self.symbol,
            capacity=self.capacity,
            samples=tuple(self._samples),
        )

    def is_full(self) -> bool:
        return len(self._samples) == self.capacity

    def __len__(self) -> int:
        return len(self._samples)
