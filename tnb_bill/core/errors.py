# tnb_bill/core/errors.py
from __future__ import annotations


class BillingError(Exception):
    """Base class for errors raised by the billing engine."""


class InvalidInputError(BillingError, ValueError):
    """Raised when a bill request cannot be computed (negative usage, bad %, ...)."""


class MalformedRateTableError(BillingError):
    """Raised when the rate-table document or one of its tier strings is unusable."""
