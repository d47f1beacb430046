from datetime import datetime, timezone

import pytest

from app.models.billing import InvoiceLineItem
from app.models.budget import BudgetLineItem
from app.services.totals import budget_totals, due_date_for, invoice_line_amount, invoice_total


def _item(amount, marked=False, status="incomplete"):
    return BudgetLineItem(id=f"item-{amount}", name="x", amount=amount, is_marked=marked, status=status)


def test_empty_budget_totals_equal_starting_amount():
    totals = budget_totals(1500.0, [])
    assert totals.unmarked_total == 1500.0
    assert totals.final_total == 1500.0


def test_marked_items_only_count_in_final_total():
    items = [_item(-100.0), _item(-250.0, marked=True), _item(40.0)]
    totals = budget_totals(1000.0, items)
    assert totals.unmarked_total == pytest.approx(940.0)
    assert totals.final_total == pytest.approx(690.0)


@pytest.mark.parametrize(
    "amounts, marks",
    [
        ([10.0, -20.5, 3.25], [True, False, True]),
        ([0.0, 0.0], [False, True]),
        ([-99.99, 45.5, -0.01, 12.0], [True, True, False, False]),
    ],
)
def test_difference_is_sum_of_marked_amounts(amounts, marks):
    items = [_item(amount, marked) for amount, marked in zip(amounts, marks)]
    totals = budget_totals(200.0, items)
    marked_sum = sum(amount for amount, marked in zip(amounts, marks) if marked)
    assert totals.final_total - totals.unmarked_total == pytest.approx(marked_sum)


def test_status_does_not_affect_totals():
    complete = budget_totals(0.0, [_item(-50.0, status="complete")])
    incomplete = budget_totals(0.0, [_item(-50.0, status="incomplete")])
    assert complete == incomplete


def test_accepts_stored_mappings():
    totals = budget_totals(10.0, [{"amount": -5.0, "is_marked": True}, {"amount": 2.0}])
    assert totals.unmarked_total == 12.0
    assert totals.final_total == 7.0


def test_invoice_total_sums_hours_times_rate():
    items = [
        InvoiceLineItem(id="a", description="Design", hours=2.5, rate=80.0, amount=invoice_line_amount(2.5, 80.0)),
        InvoiceLineItem(id="b", description="Build", hours=10, rate=95.0, amount=invoice_line_amount(10, 95.0)),
    ]
    assert invoice_total(items) == pytest.approx(1150.0)


def test_due_date_is_thirty_days_out():
    created = datetime(2026, 1, 15, tzinfo=timezone.utc)
    assert due_date_for(created) == datetime(2026, 2, 14, tzinfo=timezone.utc)
