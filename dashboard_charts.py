"""
Chart registry: one renderable chart per metric family.

Each entry owns its labels and data series. Adapters swap them wholesale with
``replace_data``; the page thread turns a snapshot into a plotly figure on each
rerun. The revision counter goes up on every swap so the page can tell a fresh
draw from a repeat.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

BAR = "bar"
LINE = "line"            # single filled line
DUAL_LINE = "dual_line"  # two filled lines, second on a right-hand axis

KINDS = (BAR, LINE, DUAL_LINE)

AXIS_COLOR = "#94a3b8"
LEGEND_COLOR = "#e2e8f0"


@dataclass(frozen=True)
class ChartConfig:
    key: str
    title: str
    kind: str
    series_names: Tuple[str, ...]
    colors: Tuple[str, ...] = field(default=())

    def __post_init__(self):
        if self.kind not in KINDS:
            raise ValueError(f"unknown chart kind: {self.kind!r}")
        expected = 2 if self.kind == DUAL_LINE else 1
        if len(self.series_names) != expected:
            raise ValueError(
                f"{self.kind} chart {self.key!r} needs {expected} series, "
                f"got {len(self.series_names)}"
            )


class ChartEntry:
    def __init__(self, config: ChartConfig):
        self.config = config
        self._lock = threading.Lock()
        self._labels: List[str] = []
        self._series: List[List[float]] = [[] for _ in config.series_names]
        self.revision = 0

    def replace_data(self, labels: Sequence[str], *series: Sequence[float]) -> None:
        if len(series) != len(self.config.series_names):
            raise ValueError(
                f"chart {self.config.key!r} takes {len(self.config.series_names)} "
                f"series, got {len(series)}"
            )
        for values in series:
            if len(values) != len(labels):
                raise ValueError(
                    f"chart {self.config.key!r}: {len(labels)} labels but "
                    f"{len(values)} values"
                )
        new_labels = [str(label) for label in labels]
        new_series = [[float(v) for v in values] for values in series]
        with self._lock:
            self._labels = new_labels
            self._series = new_series
            self.revision += 1

    def snapshot(self) -> Tuple[List[str], List[List[float]]]:
        with self._lock:
            return list(self._labels), [list(values) for values in self._series]

    def is_empty(self) -> bool:
        with self._lock:
            return not self._labels


class ChartRegistry:
    def __init__(self, configs: Sequence[ChartConfig] = ()):
        self._entries: Dict[str, ChartEntry] = {}
        for config in configs:
            self.construct(config)

    def construct(self, config: ChartConfig) -> ChartEntry:
        if config.key in self._entries:
            raise ValueError(f"chart {config.key!r} already registered")
        entry = ChartEntry(config)
        self._entries[config.key] = entry
        return entry

    def get(self, key: str) -> ChartEntry:
        return self._entries[key]

    def replace_data(self, key: str, labels: Sequence[str], *series: Sequence[float]) -> None:
        self.get(key).replace_data(labels, *series)

    def keys(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def figure(self, key: str, height: int = 300) -> go.Figure:
        entry = self.get(key)
        labels, series = entry.snapshot()
        return build_figure(entry.config, labels, series, height=height)


def _color(config: ChartConfig, index: int):
    return config.colors[index] if index < len(config.colors) else None


def build_figure(config: ChartConfig, labels: List[str], series: List[List[float]],
                 height: int = 300) -> go.Figure:
    if config.kind == BAR:
        name = config.series_names[0]
        df = pd.DataFrame({"label": labels, name: series[0]})
        fig = px.bar(df, x="label", y=name, title=config.title, height=height)
        color = _color(config, 0)
        if color:
            fig.update_traces(marker_color=color)
    else:
        fig = go.Figure()
        for i, name in enumerate(config.series_names):
            fig.add_trace(
                go.Scatter(
                    x=labels,
                    y=series[i],
                    name=name,
                    mode="lines",
                    fill="tozeroy",
                    line=dict(color=_color(config, i), shape="spline"),
                    yaxis="y2" if i == 1 else "y",
                )
            )
        fig.update_layout(title=config.title, height=height)
        if config.kind == DUAL_LINE:
            fig.update_layout(
                yaxis2=dict(
                    title=config.series_names[1],
                    overlaying="y",
                    side="right",
                    tickfont=dict(color=AXIS_COLOR),
                ),
                yaxis_title=config.series_names[0],
            )
    fig.update_layout(
        xaxis=dict(showgrid=True, title=None, tickfont=dict(color=AXIS_COLOR)),
        yaxis=dict(type="linear", showgrid=True, zeroline=True,
                   tickfont=dict(color=AXIS_COLOR)),
        legend=dict(font=dict(color=LEGEND_COLOR)),
        uirevision="keep",  # preserve zoom/viewport
        transition=dict(duration=200),
    )
    return fig


# ----------------------------- Chart catalogue ----------------------------- #

DEFAULT_CHARTS: Tuple[ChartConfig, ...] = (
    ChartConfig("crypto_price", "Crypto prices (USD)", BAR, ("Price (USD)",), ("#38bdf8",)),
    ChartConfig("crypto_change", "24h change (%)", BAR, ("24h change (%)",), ("#a78bfa",)),
    ChartConfig("fx_rates", "EUR exchange rates", BAR, ("Rate",), ("#34d399",)),
    ChartConfig("weather_temperature", "Temperature (°C)", LINE, ("Temperature (°C)",), ("#f97316",)),
    ChartConfig("weather_wind", "Wind (km/h)", LINE, ("Wind (km/h)",), ("#60a5fa",)),
    ChartConfig("earthquakes", "Strongest earthquakes (24h)", BAR, ("Magnitude",), ("#f87171",)),
    ChartConfig("air_quality", "Air quality", BAR, ("Value",), ("#facc15",)),
    ChartConfig("launches", "Upcoming launches per year", BAR, ("Launches",), ("#c084fc",)),
    ChartConfig("bikes", "Bike-share availability", BAR, ("Free bikes",), ("#4ade80",)),
    ChartConfig("satellite", "ISS telemetry", DUAL_LINE, ("Velocity (km/h)", "Altitude (km)"),
                ("#38bdf8", "#f472b6")),
    ChartConfig("sim_flights", "Active flights", LINE, ("Active flights",), ("#38bdf8",)),
    ChartConfig("sim_crime", "Crimes / min", BAR, ("Crimes / min",), ("#f87171",)),
)
