# tnb_bill/ui/style.py

from __future__ import annotations

"""
UI / visual style constants for the calculator.

Keep anything purely presentational in here (colours, line widths),
and keep tariff / domain constants in tnb_bill/config/settings.py.
"""

# ---------------------------------------------------------------------------
# Chart line widths
# ---------------------------------------------------------------------------

LINE_WIDTH_PRIMARY = 2.0


# ---------------------------------------------------------------------------
# Colour palette
# ---------------------------------------------------------------------------

COLOR_CHARGE = "#1f77b4"  # blue, anything added to the bill
COLOR_CREDIT = "#2ca02c"  # green, rebates and solar credit
COLOR_TAX = "#d62728"  # red, levy and service tax
COLOR_GENERAL = "#7f7f7f"  # grey, general tariff reference line
COLOR_TOU = "#ff7f0e"  # orange, ToU line

# Breakdown fields that reduce the bill and are shown as negative bars
CREDIT_FIELDS = ("efficiency_rebate", "solar_credit")
TAX_FIELDS = ("legacy_levy", "legacy_tax", "current_levy", "current_tax")
