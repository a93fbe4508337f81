"""
Source adapters: fetch → validate → transform → render → report status.

Every external feed is one ``SourceSpec`` row (endpoint, query, transform,
bound charts). A single ``SourceAdapter`` class runs the cycle for any row.
Transforms are pure functions from the decoded JSON payload to a
``RenderUpdate``; anything they cannot read counts as an unavailable source.
"""
from __future__ import annotations

import random
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd
import requests

import dashboard_config as cfg
from dashboard_charts import ChartRegistry
from dashboard_format import format_hour_minute, format_number
from dashboard_history import HistoryBuffer, HistorySample
from dashboard_logger import get_logger
from dashboard_status import DisplayBoard, metric_slot, report_ok, report_unavailable

log = get_logger("sources")

# Payload shapes we could not read are reported the same way as network errors
PAYLOAD_ERRORS = (KeyError, TypeError, ValueError, IndexError, AttributeError)

ChartData = Tuple[List[str], Tuple[List[float], ...]]


class SourceUnavailable(Exception):
    """Fetch or decode failed; the source shows as unavailable this cycle."""


@dataclass(frozen=True)
class RenderUpdate:
    charts: Dict[str, ChartData] = field(default_factory=dict)
    # metric key -> (value, fractional digits)
    metrics: Dict[str, Tuple[float, int]] = field(default_factory=dict)
    sample: Optional[HistorySample] = None


@dataclass(frozen=True)
class SourceSpec:
    key: str
    label: str
    provider: str
    endpoint: str
    transform: Callable[[Any], RenderUpdate]
    chart_keys: Tuple[str, ...]
    params: Mapping[str, Any] = field(default_factory=dict)
    metric_keys: Tuple[str, ...] = ()
    streaming: bool = False


# ----------------------------- Transforms ----------------------------- #

def transform_crypto(payload: Sequence[Dict[str, Any]],
                     assets: Sequence[str] = cfg.CRYPTO_ASSETS) -> RenderUpdate:
    by_id = {coin["id"]: coin for coin in payload}
    selected = [by_id[asset] for asset in assets if asset in by_id]
    if not selected:
        raise ValueError("none of the tracked assets are listed")
    labels = [str(coin["symbol"]).upper() for coin in selected]
    prices = [float(coin["current_price"]) for coin in selected]
    changes = [float(coin.get("price_change_percentage_24h") or 0) for coin in selected]
    metrics = {}
    if "bitcoin" in by_id:
        metrics["btc_price"] = (float(by_id["bitcoin"]["current_price"]), 0)
    return RenderUpdate(
        charts={
            "crypto_price": (labels, (prices,)),
            "crypto_change": (labels, (changes,)),
        },
        metrics=metrics,
    )


def transform_fx(payload: Dict[str, Any]) -> RenderUpdate:
    rates = payload["rates"]
    labels = list(rates)
    values = [float(rates[code]) for code in labels]
    return RenderUpdate(
        charts={"fx_rates": (labels, (values,))},
        metrics={"eur_usd": (float(rates["USD"]), 3)},
    )


def transform_weather(payload: Dict[str, Any], hours: int = cfg.WEATHER_HOURS) -> RenderUpdate:
    hourly = payload["hourly"]
    times = hourly["time"][:hours]
    labels = [t[11:16] for t in times]
    temperature = [float(v) for v in hourly["temperature_2m"][:hours]]
    wind = [float(v) for v in hourly["wind_speed_10m"][:hours]]
    if not len(temperature) == len(wind) == len(labels):
        raise ValueError(
            f"hourly arrays differ in length: {len(labels)} times, "
            f"{len(temperature)} temperatures, {len(wind)} winds"
        )
    return RenderUpdate(
        charts={
            "weather_temperature": (labels, (temperature,)),
            "weather_wind": (labels, (wind,)),
        }
    )


def strongest_quakes(features: Sequence[Dict[str, Any]],
                     limit: int = cfg.QUAKES_TOP_N) -> List[Dict[str, Any]]:
    """Drop unrated quakes, strongest first; ties keep feed order."""
    rated = [f for f in features if f["properties"].get("mag") is not None]
    # sorted() is stable, so equal magnitudes stay in feed order
    rated = sorted(rated, key=lambda f: f["properties"]["mag"], reverse=True)
    return rated[:limit]


def transform_earthquakes(payload: Dict[str, Any]) -> RenderUpdate:
    top = strongest_quakes(payload["features"])
    labels = [str(f["properties"].get("place") or "Unknown").split(",")[0] for f in top]
    magnitudes = [float(f["properties"]["mag"]) for f in top]
    return RenderUpdate(
        charts={"earthquakes": (labels, (magnitudes,))},
        metrics={"quake_count": (float(payload["metadata"]["count"]), 0)},
    )


def transform_air(payload: Dict[str, Any], limit: int = cfg.AIR_TOP_N) -> RenderUpdate:
    results = payload["results"][:limit]
    labels = [r.get("city") or r.get("location") or "Unknown" for r in results]
    values = []
    for r in results:
        measurements = r.get("measurements") or []
        values.append(float(measurements[0].get("value") or 0) if measurements else 0.0)
    return RenderUpdate(charts={"air_quality": (labels, (values,))})


def launches_per_year(launches: Sequence[Dict[str, Any]]) -> Dict[str, int]:
    """Count launches by UTC year, keys in ascending order; undated launches are skipped."""
    if not launches:
        return {}
    dates = pd.to_datetime(
        pd.Series([launch.get("date_utc") for launch in launches]),
        utc=True,
        format="ISO8601",
    ).dropna()
    counts = dates.dt.year.astype(str).value_counts().sort_index()
    return {str(year): int(n) for year, n in counts.items()}


def transform_launches(payload: Sequence[Dict[str, Any]]) -> RenderUpdate:
    per_year = launches_per_year(payload)
    labels = list(per_year)
    counts = [float(per_year[year]) for year in labels]
    return RenderUpdate(
        charts={"launches": (labels, (counts,))},
        metrics={"launch_count": (float(sum(per_year.values())), 0)},
    )


def transform_bikes(payload: Dict[str, Any], limit: int = cfg.BIKES_TOP_N) -> RenderUpdate:
    stations = payload["network"]["stations"]
    top = sorted(stations, key=lambda s: s.get("free_bikes") or 0, reverse=True)[:limit]
    labels = [str(s["name"]) for s in top]
    values = [float(s.get("free_bikes") or 0) for s in top]
    return RenderUpdate(charts={"bikes": (labels, (values,))})


def transform_satellite(payload: Dict[str, Any]) -> RenderUpdate:
    sample = HistorySample(
        timestamp=format_hour_minute(float(payload["timestamp"])),
        velocity=float(payload["velocity"]),
        altitude=float(payload["altitude"]),
    )
    return RenderUpdate(sample=sample)


def default_sources() -> Tuple[SourceSpec, ...]:
    return (
        SourceSpec(
            key="crypto", label="Crypto prices", provider="CoinGecko",
            endpoint=cfg.CRYPTO_URL, transform=transform_crypto,
            params={"vs_currency": "usd", "ids": ",".join(cfg.CRYPTO_ASSETS)},
            chart_keys=("crypto_price", "crypto_change"), metric_keys=("btc_price",),
        ),
        SourceSpec(
            key="fx", label="FX rates", provider="Frankfurter",
            endpoint=cfg.FX_URL, transform=transform_fx,
            params={"from": cfg.FX_BASE, "to": ",".join(cfg.FX_SYMBOLS)},
            chart_keys=("fx_rates",), metric_keys=("eur_usd",),
        ),
        SourceSpec(
            key="weather", label="Weather", provider="Open-Meteo",
            endpoint=cfg.WEATHER_URL, transform=transform_weather,
            params={
                "latitude": cfg.WEATHER_LATITUDE,
                "longitude": cfg.WEATHER_LONGITUDE,
                "hourly": "temperature_2m,wind_speed_10m",
                "forecast_hours": cfg.WEATHER_HOURS,
            },
            chart_keys=("weather_temperature", "weather_wind"),
        ),
        SourceSpec(
            key="earthquakes", label="Earthquakes", provider="USGS",
            endpoint=cfg.QUAKES_URL, transform=transform_earthquakes,
            chart_keys=("earthquakes",), metric_keys=("quake_count",),
        ),
        SourceSpec(
            key="air", label="Air quality", provider="OpenAQ",
            endpoint=cfg.AIR_URL, transform=transform_air,
            params={"limit": cfg.AIR_TOP_N, "order_by": "lastUpdated", "sort": "desc"},
            chart_keys=("air_quality",),
        ),
        SourceSpec(
            key="launches", label="Launches", provider="SpaceX API",
            endpoint=cfg.LAUNCHES_URL, transform=transform_launches,
            chart_keys=("launches",), metric_keys=("launch_count",),
        ),
        SourceSpec(
            key="bikes", label="Bike-share", provider="CityBikes",
            endpoint=cfg.BIKES_URL, transform=transform_bikes,
            chart_keys=("bikes",),
        ),
        SourceSpec(
            key="satellite", label="ISS telemetry", provider="Where the ISS at?",
            endpoint=cfg.SATELLITE_URL, transform=transform_satellite,
            chart_keys=("satellite",), streaming=True,
        ),
    )


# ----------------------------- Adapter ----------------------------- #

def new_session() -> requests.Session:
    # One per adapter: fetches for different sources run on different threads
    session = requests.Session()
    session.headers["User-Agent"] = cfg.USER_AGENT
    return session


class SourceAdapter:
    def __init__(
        self,
        spec: SourceSpec,
        registry: ChartRegistry,
        board: DisplayBoard,
        session: Optional[requests.Session] = None,
        history: Optional[HistoryBuffer] = None,
        locale: Optional[str] = None,
        timeout: Optional[float] = cfg.REQUEST_TIMEOUT_S,
    ):
        if spec.streaming and history is None:
            raise ValueError(f"streaming source {spec.key!r} needs a history buffer")
        self.spec = spec
        self.registry = registry
        self.board = board
        self.session = session or new_session()
        self.history = history
        self.locale = locale
        self.timeout = timeout
        self._inflight = threading.Lock()

    @property
    def key(self) -> str:
        return self.spec.key

    def fetch(self) -> Any:
        try:
            resp = self.session.get(self.spec.endpoint, params=dict(self.spec.params),
                                    timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            raise SourceUnavailable(str(e)) from e

    def update(self) -> bool:
        """Run one cycle. False when the source failed or a cycle is already running."""
        if not self._inflight.acquire(blocking=False):
            log.debug("%s: previous update still in flight, tick dropped", self.key)
            return False
        try:
            try:
                payload = self.fetch()
                update = self.spec.transform(payload)
                self.check(update)
            except SourceUnavailable as e:
                log.warning("%s unavailable: %s", self.key, e)
                report_unavailable(self.board, self.key, self.spec.label)
                return False
            except PAYLOAD_ERRORS as e:
                log.warning("%s: unexpected payload (%s: %s)", self.key, type(e).__name__, e)
                report_unavailable(self.board, self.key, self.spec.label)
                return False
            self.apply(update)
            report_ok(self.board, self.key, self.spec.provider)
            return True
        finally:
            self._inflight.release()

    def check(self, update: RenderUpdate) -> None:
        """Reject an update that would only partly fit its charts."""
        for chart_key, (labels, series) in update.charts.items():
            config = self.registry.get(chart_key).config
            if len(series) != len(config.series_names):
                raise ValueError(
                    f"{chart_key}: {len(series)} series for {len(config.series_names)} slots"
                )
            for values in series:
                if len(values) != len(labels):
                    raise ValueError(
                        f"{chart_key}: {len(labels)} labels but {len(values)} values"
                    )

    def apply(self, update: RenderUpdate) -> None:
        charts = dict(update.charts)
        if update.sample is not None and self.history is not None:
            self.history.append(update.sample)
            window = self.history.snapshot()
            charts[self.spec.chart_keys[0]] = (
                [s.timestamp for s in window],
                ([s.velocity for s in window], [s.altitude for s in window]),
            )
        for chart_key, (labels, series) in charts.items():
            self.registry.replace_data(chart_key, labels, *series)
        for metric_key, (value, digits) in update.metrics.items():
            self.board.write(metric_slot(metric_key), format_number(value, digits, self.locale))


# ----------------------------- Simulated feed ----------------------------- #

SIM_METRICS = {
    "flights": 235120.0,
    "crime": 18450.0,
    "billionaires": 2640.0,
    "ownership": 12900.0,
}
SIM_FLIGHT_LABELS = ["00:00", "04:00", "08:00", "12:00", "16:00", "20:00"]
SIM_FLIGHT_START = [190.0, 210.0, 260.0, 280.0, 265.0, 230.0]
SIM_REGIONS = ["Americas", "Europe", "Africa", "Asia", "Oceania"]
SIM_CRIME_START = [120.0, 98.0, 140.0, 160.0, 45.0]


class SimulationFeed:
    """Local random walk; same update contract as a SourceAdapter, no network."""

    key = "simulation"
    label = "Simulation"
    provider = "Simulation"
    chart_keys = ("sim_flights", "sim_crime")
    metric_keys = tuple(SIM_METRICS)

    def __init__(self, registry: ChartRegistry, board: DisplayBoard,
                 rng: Optional[random.Random] = None, locale: Optional[str] = None):
        self.registry = registry
        self.board = board
        self.rng = rng or random.Random()
        self.locale = locale
        self.metrics = dict(SIM_METRICS)
        self.flights = list(SIM_FLIGHT_START)
        self.crime = list(SIM_CRIME_START)

    def step_metrics(self) -> None:
        for key, value in self.metrics.items():
            drift = (self.rng.random() - 0.4) * 150
            self.metrics[key] = max(0.0, value + drift)

    def step_charts(self) -> None:
        self.flights = [max(150.0, v + (self.rng.random() - 0.5) * 20) for v in self.flights]
        self.crime = [max(30.0, v + (self.rng.random() - 0.5) * 15) for v in self.crime]

    def update_metrics(self) -> bool:
        """Headline counters tick."""
        self.step_metrics()
        for key, value in self.metrics.items():
            self.board.write(metric_slot(key), format_number(value, 0, self.locale))
        report_ok(self.board, self.key, self.provider)
        return True

    def update_charts(self) -> bool:
        """Flights and crime charts tick, on their own cadence."""
        self.step_charts()
        self.registry.replace_data("sim_flights", SIM_FLIGHT_LABELS, self.flights)
        self.registry.replace_data("sim_crime", SIM_REGIONS, self.crime)
        report_ok(self.board, self.key, self.provider)
        return True

    def update(self) -> bool:
        return self.update_metrics() and self.update_charts()
