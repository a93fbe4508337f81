"""Rolling window of timestamped samples for the streaming satellite feed."""
from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import List

import dashboard_config as cfg


@dataclass(frozen=True)
class HistorySample:
    timestamp: str
    velocity: float
    altitude: float


class HistoryBuffer:
    """Fixed-capacity FIFO; the oldest sample is evicted on overflow."""

    def __init__(self, capacity: int = cfg.HISTORY_SIZE):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._lock = threading.Lock()
        self._samples: deque = deque(maxlen=capacity)

    def append(self, sample: HistorySample) -> None:
        with self._lock:
            self._samples.append(sample)

    def snapshot(self) -> List[HistorySample]:
        """Ordered copy of the current window, oldest first."""
        with self._lock:
            return list(self._samples)

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
