"""Test configuration and shared fixtures."""

import pytest

from dashboard_charts import DEFAULT_CHARTS, ChartRegistry
from dashboard_status import DisplayBoard
from fakes import FakeSession


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def registry():
    return ChartRegistry(DEFAULT_CHARTS)


@pytest.fixture
def board():
    return DisplayBoard()


@pytest.fixture
def crypto_payload():
    return [
        {"id": "ethereum", "symbol": "eth", "current_price": 3400.5,
         "price_change_percentage_24h": -1.25},
        {"id": "bitcoin", "symbol": "btc", "current_price": 63456.7,
         "price_change_percentage_24h": 2.5},
        {"id": "dogecoin", "symbol": "doge", "current_price": 0.12,
         "price_change_percentage_24h": 4.0},
        {"id": "solana", "symbol": "sol", "current_price": 145.0,
         "price_change_percentage_24h": None},
        {"id": "cardano", "symbol": "ada", "current_price": 0.45,
         "price_change_percentage_24h": 0.8},
        {"id": "ripple", "symbol": "xrp", "current_price": 0.52,
         "price_change_percentage_24h": -0.3},
    ]


@pytest.fixture
def fx_payload():
    return {
        "amount": 1.0,
        "base": "EUR",
        "date": "2024-06-03",
        "rates": {"CAD": 1.4851, "CHF": 0.9712, "GBP": 0.8512, "JPY": 170.12, "USD": 1.08345},
    }
