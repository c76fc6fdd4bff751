# tnb_bill/core/live_rates.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional

import requests

from tnb_bill.config import settings

logger = logging.getLogger(__name__)

# Larger magnitudes mean the feed sent sen instead of RM
_MAX_ABS_AFA_RM_PER_KWH = 1.0


# ---------------------------------------------------------
# Data model
# ---------------------------------------------------------


@dataclass(slots=True)
class AfaRate:
    sen_per_kwh: float  # signed; negative is a rebate
    effective_date: Optional[date] = None
    source_url: str = ""
    fetched_at_utc: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class LiveRateError(RuntimeError):
    """Raised when the live AFA rate cannot be fetched or understood."""


def _parse_effective_date(raw: Any) -> Optional[date]:
    if not raw:
        return None
    try:
        return datetime.strptime(str(raw)[:10], "%Y-%m-%d").date()
    except ValueError:
        logger.info("Ignoring unparseable AFA effective date %r", raw)
        return None


def parse_afa_payload(payload: Mapping[str, Any], source_url: str = "") -> AfaRate:
    """
    Convert an AFA payload into an AfaRate.

    `afa_rate_raw` carries the sign (negative = rebate); `afa_rate` is the
    unsigned magnitude some endpoints send instead. Both are RM/kWh.
    """
    if not isinstance(payload, Mapping):
        raise LiveRateError(f"Unexpected AFA payload: {payload!r}")

    raw = payload.get("afa_rate_raw")
    if raw is None:
        raw = payload.get("afa_rate")
    if raw is None:
        raise LiveRateError(f"AFA payload has no rate field: {dict(payload)}")

    try:
        rm_per_kwh = float(raw)
    except (TypeError, ValueError) as exc:
        raise LiveRateError(f"AFA rate is not numeric: {raw!r}") from exc

    if abs(rm_per_kwh) > _MAX_ABS_AFA_RM_PER_KWH:
        raise LiveRateError(f"AFA rate {rm_per_kwh} RM/kWh is out of range")

    return AfaRate(
        sen_per_kwh=round(rm_per_kwh * settings.SEN_PER_RM, 4),
        effective_date=_parse_effective_date(payload.get("effective_date")),
        source_url=source_url,
    )


# ---------------------------------------------------------
# Public API
# ---------------------------------------------------------


def fetch_afa_rate(url: Optional[str] = None) -> AfaRate:
    """
    Fetch the current AFA rate.

    UI (layout.py) is responsible for:
    - caching via st.cache_data
    - handling LiveRateError and keeping the manual slider value
    """
    url = url or settings.AFA_API_URL
    if not url:
        raise LiveRateError("No AFA endpoint configured (set TNB_AFA_API_URL)")

    try:
        resp = requests.get(
            url,
            headers={"User-Agent": settings.LIVE_RATE_USER_AGENT},
            timeout=settings.LIVE_RATE_REQUEST_TIMEOUT_S,
        )
        resp.raise_for_status()
        payload = resp.json()
    except (requests.RequestException, ValueError) as exc:
        raise LiveRateError(f"Failed to fetch AFA rate: {exc}") from exc

    rate = parse_afa_payload(payload, source_url=url)
    logger.info(
        "Fetched AFA rate %.4f sen/kWh (effective %s) from %s",
        rate.sen_per_kwh,
        rate.effective_date or "n/a",
        url,
    )
    return rate
