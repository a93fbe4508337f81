"""
Streamlit live dashboard for public APIs

Features
- Crypto prices, FX rates, weather, earthquakes, air quality, launches,
  bike-share availability and ISS telemetry, each polled on its own timer
- Live clock, headline metrics and a status line per source
- ISS telemetry streams into a rolling 10-sample window
- Optional local random-walk feed (see dashboard_config.SIMULATION_ENABLED)

Run locally
  pip install -e .
  streamlit run dashboard.py

Notes
- Fetches run on a background scheduler thread + worker pool shared by all
  tabs (st.cache_resource); each page rerun only reads what they last wrote.
- A failed source keeps its last good chart and shows "<source> unavailable".
"""
from __future__ import annotations

from typing import Sequence

import streamlit as st
from streamlit_autorefresh import st_autorefresh

import dashboard_config as cfg
from dashboard_runtime import DashboardRuntime
from dashboard_status import CLOCK_SLOT, metric_slot, status_slot

METRIC_LABELS = {
    "btc_price": "BTC (USD)",
    "eur_usd": "EUR → USD",
    "quake_count": "Earthquakes (24h)",
    "launch_count": "Upcoming launches",
    "flights": "Flights",
    "crime": "Crime",
    "billionaires": "Billionaires",
    "ownership": "Ownership",
}

# ----------------------------- Streamlit App ----------------------------- #

st.set_page_config(page_title=cfg.PAGE_TITLE, layout="wide")

# Rerun while the page is open so the clock and charts stay live
st_autorefresh(interval=cfg.PAGE_REFRESH_MS, key="_autorefresh")

@st.cache_resource
def shared_runtime() -> DashboardRuntime:
    # One scheduler + worker pool per server process, shared by every open tab
    runtime = DashboardRuntime()
    runtime.start()
    return runtime


rt = shared_runtime()


def slot_text(key: str, default: str = "") -> str:
    slot = rt.board.read(key)
    return slot.text if slot else default


def render_status(source_key: str):
    slot = rt.board.read(status_slot(source_key))
    if slot is None:
        return
    if slot.is_error:
        st.markdown(f":red[{slot.text}]")
    else:
        st.caption(slot.text)


def render_charts(chart_keys: Sequence[str]):
    cols = st.columns(len(chart_keys))
    for col, key in zip(cols, chart_keys):
        with col:
            entry = rt.registry.get(key)
            if entry.is_empty():
                st.info(f"{entry.config.title}: waiting for data…")
                continue
            st.plotly_chart(rt.registry.figure(key), use_container_width=True, key=f"chart_{key}")


def render_metrics():
    keys = [k for k in METRIC_LABELS if rt.board.read(metric_slot(k)) is not None]
    if not keys:
        return
    cols = st.columns(len(keys))
    for col, key in zip(cols, keys):
        with col:
            st.metric(METRIC_LABELS[key], slot_text(metric_slot(key), "—"))


st.title(cfg.PAGE_TITLE)
st.caption(slot_text(CLOCK_SLOT))
render_metrics()

for adapter in rt.adapters.values():
    st.subheader(adapter.spec.label)
    render_charts(adapter.spec.chart_keys)
    render_status(adapter.key)

if rt.simulation is not None:
    st.subheader(rt.simulation.label)
    render_charts(rt.simulation.chart_keys)
    render_status(rt.simulation.key)
