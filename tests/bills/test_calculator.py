from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from src.latex_manager.latex_manager.bills.calculator import compute_bill_amounts
from src.latex_manager.latex_manager.bills.numbering import month_prefix, next_bill_number


def test_reference_bill_amounts():
    amounts = compute_bill_amounts(
        latex_volume=Decimal("1200"),
        drc_percent=Decimal("12"),
        market_rate=Decimal("110"),
        barrel_count=3,
    )

    assert amounts.latex_weight == Decimal("1200.00")
    assert amounts.dry_rubber == Decimal("144.000")
    assert amounts.per_kg_rate == Decimal("1.1000")
    assert amounts.total_amount == Decimal("158.40")
    assert amounts.per_barrel_amount == Decimal("52.80")


def test_total_rounds_half_up_to_cents():
    amounts = compute_bill_amounts(
        latex_volume=Decimal("1"), drc_percent=Decimal("50"), market_rate=Decimal("1"), barrel_count=1
    )
    assert amounts.total_amount == Decimal("0.01")


def test_rederiving_from_stored_inputs_reproduces_amounts():
    first = compute_bill_amounts(
        latex_volume=Decimal("333.333"),
        drc_percent=Decimal("33.335"),
        market_rate=Decimal("77.777"),
        barrel_count=7,
    )
    again = compute_bill_amounts(
        latex_volume=first.latex_volume,
        drc_percent=first.drc_percent,
        market_rate=first.market_rate,
        barrel_count=7,
    )

    assert again == first
    assert first.total_amount >= 0


def test_bill_numbers_follow_month_sequence():
    now = datetime(2026, 3, 2, 9, 0, 0)

    assert month_prefix(now) == "BILL-202603-"
    assert next_bill_number(now, None) == "BILL-202603-0001"
    assert next_bill_number(now, "BILL-202603-0041") == "BILL-202603-0042"
    # Last month's sequence does not carry over.
    assert next_bill_number(now, "BILL-202602-0099") == "BILL-202603-0001"
