import dataclasses
import threading

import requests

import dashboard_config as cfg
from dashboard_history import HistoryBuffer
from dashboard_sources import RenderUpdate, SourceAdapter, default_sources
from dashboard_status import metric_slot, status_slot
from fakes import FakeResponse


def spec_for(key):
    return next(spec for spec in default_sources() if spec.key == key)


def make_adapter(key, registry, board, session, history=None, locale="en_US"):
    spec = spec_for(key)
    board.register(status_slot(key))
    for metric in spec.metric_keys:
        board.register(metric_slot(metric))
    return SourceAdapter(spec, registry, board, session=session, history=history, locale=locale)


def test_fx_failure_then_success_overwrites_status(registry, board, session, fx_payload):
    fx = make_adapter("fx", registry, board, session)
    session.reply(cfg.FX_URL, requests.ConnectionError("dns failure"))

    assert fx.update() is False
    slot = board.read(status_slot("fx"))
    assert slot.text == "FX rates unavailable"
    assert slot.is_error is True
    assert registry.get("fx_rates").is_empty()

    session.replies[cfg.FX_URL] = [FakeResponse(fx_payload)]
    assert fx.update() is True
    slot = board.read(status_slot("fx"))
    assert slot.text == "Source: Frankfurter"
    assert slot.is_error is False
    assert board.read(metric_slot("eur_usd")).text == "1.083"


def test_request_uses_fixed_query(registry, board, session, fx_payload):
    fx = make_adapter("fx", registry, board, session)
    session.reply(cfg.FX_URL, FakeResponse(fx_payload))
    fx.update()

    url, params, timeout = session.calls[0]
    assert url == cfg.FX_URL
    assert params == {"from": "EUR", "to": "USD,GBP,JPY,CHF,CAD"}
    assert timeout == cfg.REQUEST_TIMEOUT_S


def test_http_error_keeps_last_good_chart(registry, board, session, fx_payload):
    fx = make_adapter("fx", registry, board, session)
    session.reply(cfg.FX_URL, FakeResponse(fx_payload), FakeResponse(status_code=503))

    assert fx.update() is True
    before = registry.get("fx_rates").snapshot()
    revision = registry.get("fx_rates").revision

    assert fx.update() is False
    assert registry.get("fx_rates").snapshot() == before
    assert registry.get("fx_rates").revision == revision
    assert board.read(metric_slot("eur_usd")).text == "1.083"
    assert board.read(status_slot("fx")).is_error


def test_bad_json_and_bad_shape_are_unavailable(registry, board, session):
    quakes = make_adapter("earthquakes", registry, board, session)

    session.reply(cfg.QUAKES_URL, FakeResponse(bad_json=True))
    assert quakes.update() is False
    assert board.read(status_slot("earthquakes")).text == "Earthquakes unavailable"

    session.replies[cfg.QUAKES_URL] = [FakeResponse({"type": "FeatureCollection"})]
    assert quakes.update() is False
    assert registry.get("earthquakes").is_empty()


def test_crypto_update_is_idempotent(registry, board, session, crypto_payload):
    crypto = make_adapter("crypto", registry, board, session)
    session.reply(cfg.CRYPTO_URL, FakeResponse(crypto_payload))

    crypto.update()
    first = (registry.get("crypto_price").snapshot(), registry.get("crypto_change").snapshot())
    crypto.update()
    second = (registry.get("crypto_price").snapshot(), registry.get("crypto_change").snapshot())

    assert first == second
    assert len(second[0][0]) == 5
    assert board.read(metric_slot("btc_price")).text == "63,457"


def test_satellite_window_keeps_latest_ten(registry, board, session):
    history = HistoryBuffer(10)
    sat = make_adapter("satellite", registry, board, session, history=history)
    for i in range(12):
        session.reply(cfg.SATELLITE_URL, FakeResponse(
            {"timestamp": 1717423509 + 60 * i, "velocity": 27000.0 + i, "altitude": 400.0 + i}))
    for _ in range(12):
        assert sat.update() is True

    velocities = [s.velocity for s in history.snapshot()]
    assert velocities == [27000.0 + i for i in range(2, 12)]

    labels, (chart_velocity, chart_altitude) = registry.get("satellite").snapshot()
    assert chart_velocity == velocities
    assert chart_altitude == [400.0 + i for i in range(2, 12)]
    assert len(labels) == 10


def test_satellite_failure_leaves_window_alone(registry, board, session):
    history = HistoryBuffer(10)
    sat = make_adapter("satellite", registry, board, session, history=history)
    session.reply(cfg.SATELLITE_URL,
                  FakeResponse({"timestamp": 1717423509, "velocity": 1.0, "altitude": 2.0}),
                  FakeResponse({"velocity": 1.0}))
    assert sat.update() is True
    assert sat.update() is False
    assert len(history) == 1


def test_tick_dropped_while_previous_is_in_flight(registry, board):
    started = threading.Event()
    release = threading.Event()

    class SlowSession:
        calls = 0

        def get(self, url, params=None, timeout=None):
            SlowSession.calls += 1
            started.set()
            release.wait(5)
            raise requests.Timeout("slow")

    bikes = make_adapter("bikes", registry, board, SlowSession())
    worker = threading.Thread(target=bikes.update)
    worker.start()
    assert started.wait(5)

    assert bikes.update() is False
    release.set()
    worker.join(5)
    assert SlowSession.calls == 1
    assert board.read(status_slot("bikes")).text == "Bike-share unavailable"


def weather_payload(temperatures, winds):
    return {
        "hourly": {
            "time": [f"2024-06-03T{h:02d}:00" for h in range(12)],
            "temperature_2m": temperatures,
            "wind_speed_10m": winds,
        }
    }


def test_uneven_weather_arrays_change_nothing(registry, board, session):
    weather = make_adapter("weather", registry, board, session)
    session.reply(cfg.WEATHER_URL,
                  FakeResponse(weather_payload([1.0] * 12, [2.0] * 12)),
                  FakeResponse(weather_payload([9.0] * 12, [3.0] * 4)))

    assert weather.update() is True
    assert weather.update() is False

    assert registry.get("weather_temperature").snapshot()[1] == [[1.0] * 12]
    assert registry.get("weather_wind").snapshot()[1] == [[2.0] * 12]
    assert registry.get("weather_temperature").revision == 1
    slot = board.read(status_slot("weather"))
    assert slot.text == "Weather unavailable"
    assert slot.is_error


def test_update_that_does_not_fit_its_chart_is_rejected(registry, board, session, fx_payload):
    fx = make_adapter("fx", registry, board, session)
    bad = RenderUpdate(
        charts={"fx_rates": (["USD", "GBP"], ([1.0],))},
        metrics={"eur_usd": (1.1, 3)},
    )
    fx.spec = dataclasses.replace(fx.spec, transform=lambda payload: bad)
    session.reply(cfg.FX_URL, FakeResponse(fx_payload))

    assert fx.update() is False
    assert registry.get("fx_rates").is_empty()
    assert board.read(metric_slot("eur_usd")).text == ""
    assert board.read(status_slot("fx")).is_error


def test_launch_count_matches_dated_launches(registry, board, session):
    launches = make_adapter("launches", registry, board, session)
    session.reply(cfg.LAUNCHES_URL, FakeResponse([
        {"date_utc": "2024-06-01T00:00:00.000Z"},
        {"date_utc": None},
        {"date_utc": "2025-01-01T00:00:00.000Z"},
    ]))

    assert launches.update() is True
    labels, (counts,) = registry.get("launches").snapshot()
    assert labels == ["2024", "2025"]
    assert board.read(metric_slot("launch_count")).text == str(int(sum(counts))) == "2"
