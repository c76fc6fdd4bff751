# scripts/compare_reference_bills.py
import sys
from pathlib import Path

# Ensure project root is on sys.path when run without an install
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tnb_bill.config import settings  # noqa: E402
from tnb_bill.core.bill_engine import calculate_bill  # noqa: E402
from tnb_bill.core.bill_models import BillRequest  # noqa: E402

# Real legacy-tariff statements: (label, usage kWh, solar export kWh, billed RM)
REFERENCE_BILLS = [
    ("Statement A (778 kWh, NEM)", 778.0, 474.0, 92.10),
    ("Statement B (1906 kWh, NEM)", 1906.0, 585.0, 911.62),
]


def print_comparison(icpt_basis: str) -> None:
    """
    Print the estimated legacy total for each reference statement next to
    what was actually billed, for one ICPT surcharge basis.
    """
    print(f"\n=== ICPT basis: {icpt_basis} ===")
    print("-" * 80)
    print(f"{'Statement':32}  {'Billed':>10}  {'Estimated':>10}  {'Diff':>10}")
    print("-" * 80)

    for label, usage_kwh, solar_kwh, billed in REFERENCE_BILLS:
        request = BillRequest(
            usage_kwh=usage_kwh,
            regime="legacy",
            solar_enabled=solar_kwh > 0,
            solar_excess_kwh=solar_kwh,
        )
        result = calculate_bill(request, icpt_basis=icpt_basis)
        estimated = result.breakdown.total_amount
        print(
            f"{label:32}  {billed:10.2f}  {estimated:10.2f}  "
            f"{estimated - billed:+10.2f}"
        )


if __name__ == "__main__":
    for basis in (settings.ICPT_BASIS_TOTAL_USAGE, settings.ICPT_BASIS_EXCESS):
        print_comparison(basis)
