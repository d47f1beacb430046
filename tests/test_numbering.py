from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest

from app.api.errors import CounterConflictError
from app.models.billing import InvoiceCounter
from app.services import numbering
from app.services.numbering import (
    allocate_invoice_number,
    describe_counter,
    get_invoice_counter,
    next_counter_state,
    set_invoice_counter,
)

from conftest import OWNER


MARCH = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def test_next_state_starts_and_rolls_over():
    assert next_counter_state(None, 2026) == (2026, 1)
    assert next_counter_state((2026, 7), 2026) == (2026, 8)
    assert next_counter_state((2025, 412), 2026) == (2026, 1)


def test_sequential_allocations(session):
    numbers = [allocate_invoice_number(session, "user-1", MARCH) for _ in range(3)]
    assert numbers == ["INV-2026-0001", "INV-2026-0002", "INV-2026-0003"]
    assert get_invoice_counter(session, "user-1") == InvoiceCounter(year=2026, count=3)


def test_counters_are_per_user(session):
    allocate_invoice_number(session, "user-1", MARCH)
    assert allocate_invoice_number(session, "user-2", MARCH) == "INV-2026-0001"


def test_new_year_restarts_at_one(session):
    allocate_invoice_number(session, "user-1", datetime(2025, 12, 31, 23, 59, tzinfo=timezone.utc))
    allocate_invoice_number(session, "user-1", datetime(2025, 12, 31, 23, 59, tzinfo=timezone.utc))
    number = allocate_invoice_number(session, "user-1", datetime(2026, 1, 1, 0, 0, tzinfo=timezone.utc))
    assert number == "INV-2026-0001"


def test_operator_set_counter_continues_from_count(session):
    set_invoice_counter(session, "user-1", InvoiceCounter(year=2026, count=41))
    assert allocate_invoice_number(session, "user-1", MARCH) == "INV-2026-0042"


def test_counter_in_past_year_restarts(session):
    set_invoice_counter(session, "user-1", InvoiceCounter(year=2024, count=99))
    assert allocate_invoice_number(session, "user-1", MARCH) == "INV-2026-0001"


def test_numbers_past_9999_are_not_truncated(session):
    set_invoice_counter(session, "user-1", InvoiceCounter(year=2026, count=9999))
    assert allocate_invoice_number(session, "user-1", MARCH) == "INV-2026-10000"


def test_describe_counter_previews_next_number(session):
    view = describe_counter(session, "user-1", MARCH)
    assert view.count == 0
    assert view.current_number is None
    assert view.next_number == "INV-2026-0001"

    allocate_invoice_number(session, "user-1", MARCH)
    view = describe_counter(session, "user-1", MARCH)
    assert view.current_number == "INV-2026-0001"
    assert view.next_number == "INV-2026-0002"


def test_concurrent_allocations_are_distinct(session_factory):
    workers = 8

    def allocate(_):
        db = session_factory()
        try:
            return allocate_invoice_number(db, "user-1", MARCH)
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=workers) as pool:
        numbers = list(pool.map(allocate, range(workers)))

    assert len(set(numbers)) == workers
    assert set(numbers) == {f"INV-2026-{n:04d}" for n in range(1, workers + 1)}


def test_allocation_gives_up_after_repeated_conflicts(session, monkeypatch):
    set_invoice_counter(session, "user-1", InvoiceCounter(year=2026, count=5))
    monkeypatch.setattr(numbering, "_write_counter", lambda *args: False)

    with pytest.raises(CounterConflictError) as caught:
        allocate_invoice_number(session, "user-1", MARCH)

    assert caught.value.code == "COUNTER_CONFLICT"
    assert caught.value.status_code == 409
    assert caught.value.details == {"attempts": numbering.MAX_ALLOCATION_ATTEMPTS}
    assert numbering.MAX_ALLOCATION_ATTEMPTS == 25
    assert get_invoice_counter(session, "user-1") == InvoiceCounter(year=2026, count=5)


def test_counter_conflict_error_envelope(client, monkeypatch):
    client_id = client.post("/v1/clients", json={"name": "Acme", "email": "ap@acme.test"}, headers=OWNER).json()["id"]
    monkeypatch.setattr(numbering, "_write_counter", lambda *args: False)

    response = client.post(
        "/v1/invoices",
        json={"client_id": client_id, "line_items": [{"description": "Work", "hours": 1, "rate": 50}]},
        headers=OWNER,
    )
    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "COUNTER_CONFLICT"
    assert error["details"] == {"attempts": 25}

    assert client.get("/v1/invoices", headers=OWNER).json()["total"] == 0
    assert client.get("/v1/settings/invoice-counter", headers=OWNER).json()["count"] == 0
