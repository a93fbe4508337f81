"""
Named display slots and per-source status reporting.

A slot is addressed by a stable string key:

- ``clock``              the live clock line
- ``metric:<key>``       a numeric readout (BTC price, EUR/USD, ...)
- ``source:<key>``       the availability line under each source's charts

Writers only ever touch the slots they own; the page thread reads them on
every rerun.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

CLOCK_SLOT = "clock"


def metric_slot(key: str) -> str:
    return f"metric:{key}"


def status_slot(source_key: str) -> str:
    return f"source:{source_key}"


@dataclass(frozen=True)
class Slot:
    text: str = ""
    is_error: bool = False


class DisplayBoard:
    """Holds the current text of every registered slot."""

    def __init__(self, keys: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._slots: Dict[str, Slot] = {}
        for key in keys:
            self.register(key)

    def register(self, key: str, text: str = "") -> None:
        with self._lock:
            self._slots.setdefault(key, Slot(text=text))

    def write(self, key: str, text: str, is_error: bool = False) -> bool:
        # Unknown slots are ignored, like a missing element on the page
        with self._lock:
            if key not in self._slots:
                return False
            self._slots[key] = Slot(text=text, is_error=is_error)
            return True

    def read(self, key: str) -> Optional[Slot]:
        with self._lock:
            return self._slots.get(key)

    def keys(self):
        with self._lock:
            return list(self._slots)


def report_ok(board: DisplayBoard, source_key: str, provider: str) -> None:
    board.write(status_slot(source_key), f"Source: {provider}", is_error=False)


def report_unavailable(board: DisplayBoard, source_key: str, label: str) -> None:
    board.write(status_slot(source_key), f"{label} unavailable", is_error=True)
