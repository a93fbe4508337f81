"""
Dashboard runtime: owns every piece the page reads and the loops that feed it.

Nothing here is process-global: the page keeps one shared instance, tests build
their own.
"""
from __future__ import annotations

import random
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime
from typing import Dict, List, Optional, Sequence

import requests

import dashboard_config as cfg
from dashboard_charts import DEFAULT_CHARTS, ChartConfig, ChartRegistry
from dashboard_format import format_clock
from dashboard_history import HistoryBuffer
from dashboard_logger import get_logger
from dashboard_scheduler import Scheduler
from dashboard_sources import SimulationFeed, SourceAdapter, SourceSpec, default_sources
from dashboard_status import CLOCK_SLOT, DisplayBoard, metric_slot, status_slot

log = get_logger("runtime")

CLOCK_TASK = "clock"
REFRESH_TASK = "refresh"
STREAM_TASK = "stream"
SIMULATION_TASK = "simulation"
SIMULATION_CHART_TASK = "simulation_charts"


def _log_crash(source_key: str, future: Future):
    # Nobody reads fire-and-forget futures, so a crash would vanish without this
    error = future.exception()
    if error is not None:
        log.error("%s update crashed", source_key, exc_info=error)


class DashboardRuntime:
    def __init__(
        self,
        sources: Optional[Sequence[SourceSpec]] = None,
        charts: Sequence[ChartConfig] = DEFAULT_CHARTS,
        session: Optional[requests.Session] = None,
        simulation: bool = cfg.SIMULATION_ENABLED,
        locale: Optional[str] = None,
        rng: Optional[random.Random] = None,
        scheduler: Optional[Scheduler] = None,
        max_workers: int = cfg.FETCH_WORKERS,
    ):
        self.locale = locale or cfg.LOCALE
        self.registry = ChartRegistry(charts)
        self.board = DisplayBoard([CLOCK_SLOT])
        self.history = HistoryBuffer(cfg.HISTORY_SIZE)
        # None gives every adapter its own session
        self.session = session

        self.adapters: Dict[str, SourceAdapter] = {}
        for spec in (default_sources() if sources is None else sources):
            self.adapters[spec.key] = SourceAdapter(
                spec,
                self.registry,
                self.board,
                session=self.session,
                history=self.history if spec.streaming else None,
                locale=self.locale,
            )
            self._register_slots(spec.key, spec.metric_keys)

        self.simulation: Optional[SimulationFeed] = None
        if simulation:
            self.simulation = SimulationFeed(self.registry, self.board, rng=rng, locale=self.locale)
            self._register_slots(self.simulation.key, self.simulation.metric_keys)

        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="fetch")
        self.scheduler = scheduler or Scheduler()
        self._schedule()

    def _register_slots(self, source_key: str, metric_keys: Sequence[str]):
        self.board.register(status_slot(source_key), "Loading…")
        for key in metric_keys:
            self.board.register(metric_slot(key), "—")

    def _schedule(self):
        self.scheduler.add(CLOCK_TASK, cfg.CLOCK_INTERVAL_S, self.tick_clock)
        self.scheduler.add(REFRESH_TASK, cfg.REFRESH_INTERVAL_S, self.refresh_all)
        if self.streaming_adapters:
            self.scheduler.add(STREAM_TASK, cfg.STREAM_INTERVAL_S, self.refresh_stream)
        if self.simulation is not None:
            self.scheduler.add(SIMULATION_TASK, cfg.SIMULATION_INTERVAL_S,
                               self.simulation.update_metrics)
            self.scheduler.add(SIMULATION_CHART_TASK, cfg.SIMULATION_CHART_INTERVAL_S,
                               self.simulation.update_charts)

    @property
    def polled_adapters(self) -> List[SourceAdapter]:
        return [a for a in self.adapters.values() if not a.spec.streaming]

    @property
    def streaming_adapters(self) -> List[SourceAdapter]:
        return [a for a in self.adapters.values() if a.spec.streaming]

    # ----------------------------- Tasks ----------------------------- #

    def tick_clock(self, moment: Optional[datetime] = None) -> str:
        text = f"Last update: {format_clock(moment, self.locale)}"
        self.board.write(CLOCK_SLOT, text)
        return text

    def _submit(self, adapters: Sequence[SourceAdapter], wait_for: bool) -> List[Future]:
        futures = []
        for adapter in adapters:
            future = self.executor.submit(adapter.update)
            future.add_done_callback(lambda f, key=adapter.key: _log_crash(key, f))
            futures.append(future)
        if wait_for:
            wait(futures)
        return futures

    def refresh_all(self, wait: bool = False) -> List[Future]:
        """Fire every polled source; returns without waiting unless asked."""
        return self._submit(self.polled_adapters, wait)

    def refresh_stream(self, wait: bool = False) -> List[Future]:
        return self._submit(self.streaming_adapters, wait)

    # ----------------------------- Lifecycle ----------------------------- #

    def start(self):
        log.info("starting dashboard runtime (%d sources)", len(self.adapters))
        self.scheduler.start()

    def stop(self):
        self.scheduler.stop()
        self.executor.shutdown(wait=False)
        log.info("dashboard runtime stopped")
