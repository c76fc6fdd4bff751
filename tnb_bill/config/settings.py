# tnb_bill/config/settings.py

import os

# --- Environment ---
# TNB_APP_ENV=dev pre-fills the sample bill and keeps cached rates longer
ENV_DEV = "dev"
ENV_PROD = "prod"
APP_ENV = os.getenv("TNB_APP_ENV", ENV_PROD).lower()

# --- Currency ---
CURRENCY_LABEL = "RM"
SEN_PER_RM = 100.0

# --- Rate tables ---
# Packaged JSON document unless overridden (e.g. to test a draft schedule)
TARIFF_RATES_PATH = os.getenv("TNB_TARIFF_RATES_PATH") or None

# ICPT surcharge basis for the legacy tariff:
#   "total_usage"            -> surcharge rate x whole monthly usage
#   "excess_above_threshold" -> surcharge rate x usage above 1500 kWh
ICPT_BASIS_TOTAL_USAGE = "total_usage"
ICPT_BASIS_EXCESS = "excess_above_threshold"
DEFAULT_ICPT_BASIS = os.getenv("TNB_ICPT_BASIS", ICPT_BASIS_TOTAL_USAGE).lower()

# --- Calculator input defaults ---
DEFAULT_USAGE_KWH = 0.0
DEFAULT_REGIME = "current"
DEFAULT_TOU_ENABLED = False
DEFAULT_TOU_PEAK_PCT = 30.0
# The general tariff side of a ToU comparison ignores the split; 50% is
# passed through only so the request stays valid.
GENERAL_TARIFF_PEAK_PCT = 50.0
DEFAULT_SOLAR_ENABLED = False
DEFAULT_SOLAR_EXCESS_KWH = 0.0
DEFAULT_AFA_SEN_PER_KWH = 0.0

# Dev-only sample bill (matches a real 778 kWh statement with 474 kWh export)
DEV_DEFAULT_USAGE_KWH = 778.0
DEV_DEFAULT_SOLAR_EXCESS_KWH = 474.0

# UI bounds
MAX_USAGE_KWH = 10_000.0
AFA_SLIDER_MIN_SEN = -3.0
AFA_SLIDER_MAX_SEN = 3.0
AFA_SLIDER_STEP_SEN = 0.01

# ToU sweep (peak share of usage, %)
TOU_SWEEP_STEP_PCT = 5

# --- Live AFA rate ---
# Endpoint returning {"afa_rate": <RM/kWh>, "afa_rate_raw": <signed RM/kWh>, ...}
AFA_API_URL = os.getenv("TNB_AFA_API_URL") or None
LIVE_RATE_REQUEST_TIMEOUT_S = 10
AFA_CACHE_TTL_S = (
    60 * 60 * 24 if APP_ENV == ENV_DEV else 60 * 60 * 6
)  # 24h in dev, 6h in prod
LIVE_RATE_USER_AGENT = "TnbBillEstimator/0.1"

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Display ---
MONEY_FMT = "RM {:,.2f}"
