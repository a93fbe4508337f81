# Central configuration for the public-API dashboard
# Adjust these settings as needed; the page itself has no settings controls.

# Page title shown in the browser tab and header
PAGE_TITLE = "World Pulse Dashboard"

# Locale used for number and date formatting (Babel locale identifier)
LOCALE = "fr_FR"

# Logging level for the application logger
LOG_LEVEL = "INFO"

## Refresh cadences in seconds
CLOCK_INTERVAL_S = 1.0
REFRESH_INTERVAL_S = 60.0
STREAM_INTERVAL_S = 5.0
SIMULATION_INTERVAL_S = 5.0
SIMULATION_CHART_INTERVAL_S = 4.0

# Page rerun interval in milliseconds (keeps the clock readout live)
PAGE_REFRESH_MS = 1000

# How often the scheduler loop checks for due tasks (seconds)
SCHEDULER_RESOLUTION_S = 0.2

# Rolling window size for the satellite feed
HISTORY_SIZE = 10

# Per-request timeout in seconds; None leaves it to the transport
REQUEST_TIMEOUT_S = 20.0
USER_AGENT = "world-pulse-dashboard/1.0"

# Worker threads for fire-and-forget fetches
FETCH_WORKERS = 9

# Local random-walk feed (headline counters + two demo charts)
SIMULATION_ENABLED = True

# ----------------------------- Sources ----------------------------- #

CRYPTO_URL = "https://api.coingecko.com/api/v3/coins/markets"
CRYPTO_ASSETS = ("bitcoin", "ethereum", "solana", "cardano", "ripple")

FX_URL = "https://api.frankfurter.app/latest"
FX_BASE = "EUR"
FX_SYMBOLS = ("USD", "GBP", "JPY", "CHF", "CAD")

WEATHER_URL = "https://api.open-meteo.com/v1/forecast"
WEATHER_LATITUDE = 48.8566
WEATHER_LONGITUDE = 2.3522
WEATHER_HOURS = 12

QUAKES_URL = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/all_day.geojson"
QUAKES_TOP_N = 8

AIR_URL = "https://api.openaq.org/v2/latest"
AIR_TOP_N = 5

LAUNCHES_URL = "https://api.spacexdata.com/v4/launches/upcoming"

BIKES_URL = "https://api.citybik.es/v2/networks/velib"
BIKES_TOP_N = 6

SATELLITE_URL = "https://api.wheretheiss.at/v1/satellites/25544"
