"""Bill amount formula.

Market rate is quoted per 100 kg of dry rubber and one litre of latex is
taken as one kilogram. All inputs are quantized before use so the same
stored inputs always re-derive the same stored amounts.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
GRAM = Decimal("0.001")
RATE_PLACES = Decimal("0.0001")
HUNDRED = Decimal(100)

# Largest values the bills table columns can hold.
MAX_MEASUREMENT = Decimal("9999999999.99")
MAX_BARREL_COUNT = 2_147_483_647
AMOUNT_LIMITS = {
    "latex_weight": Decimal("9999999999.99"),
    "dry_rubber": Decimal("999999999.999"),
    "per_kg_rate": Decimal("99999999.9999"),
    "total_amount": Decimal("999999999999.99"),
    "per_barrel_amount": Decimal("999999999999.99"),
}


@dataclass(frozen=True)
class BillAmounts:
    latex_volume: Decimal
    drc_percent: Decimal
    market_rate: Decimal
    latex_weight: Decimal
    dry_rubber: Decimal
    per_kg_rate: Decimal
    total_amount: Decimal
    per_barrel_amount: Decimal


def quantize_input(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_bill_amounts(
    *,
    latex_volume: Decimal,
    drc_percent: Decimal,
    market_rate: Decimal,
    barrel_count: int,
) -> BillAmounts:
    volume = quantize_input(latex_volume)
    drc = quantize_input(drc_percent)
    rate = quantize_input(market_rate)

    latex_weight = volume
    dry_rubber = (latex_weight * drc / HUNDRED).quantize(GRAM, rounding=ROUND_HALF_UP)
    per_kg_rate = (rate / HUNDRED).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)
    # Computed from the exact product, not the rounded intermediates.
    total = (volume * drc * rate / (HUNDRED * HUNDRED)).quantize(CENT, rounding=ROUND_HALF_UP)
    per_barrel = (total / Decimal(int(barrel_count))).quantize(CENT, rounding=ROUND_HALF_UP)

    return BillAmounts(
        latex_volume=volume,
        drc_percent=drc,
        market_rate=rate,
        latex_weight=latex_weight,
        dry_rubber=dry_rubber,
        per_kg_rate=per_kg_rate,
        total_amount=total,
        per_barrel_amount=per_barrel,
    )
