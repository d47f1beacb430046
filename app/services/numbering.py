"""Sequential, year-scoped invoice numbers.

Each user owns one counter row ``{year, count}``. An allocation reads the row
and writes the successor back with a conditional statement, so two callers
that read the same state cannot both win: the loser sees zero affected rows
(or a primary key clash on first use), rolls back and reads again.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..api.errors import CounterConflictError
from ..core.logging import get_logger
from ..models.billing import InvoiceCounter, InvoiceCounterView
from ..storage.tables import InvoiceCounterRow
from ..utils.ids import format_invoice_number

logger = get_logger(__name__)

MAX_ALLOCATION_ATTEMPTS = 25


def next_counter_state(stored: Optional[Tuple[int, int]], current_year: int) -> Tuple[int, int]:
    """Successor of the stored ``(year, count)`` for an allocation in ``current_year``."""
    if stored is None:
        return current_year, 1
    year, count = stored
    if year != current_year:
        return current_year, 1
    return current_year, count + 1


def _read_counter(session: Session, user_id: str) -> Optional[Tuple[int, int]]:
    row = session.execute(
        select(InvoiceCounterRow.year, InvoiceCounterRow.count).where(
            InvoiceCounterRow.user_id == user_id
        )
    ).first()
    if row is None:
        return None
    return row.year, row.count


def _write_counter(
    session: Session,
    user_id: str,
    stored: Optional[Tuple[int, int]],
    new_state: Tuple[int, int],
) -> bool:
    """Compare-and-set; False when another allocation got there first."""
    year, count = new_state
    if stored is None:
        try:
            session.execute(insert(InvoiceCounterRow).values(user_id=user_id, year=year, count=count))
            session.commit()
        except IntegrityError:
            session.rollback()
            return False
        return True

    old_year, old_count = stored
    result = session.execute(
        update(InvoiceCounterRow)
        .where(
            InvoiceCounterRow.user_id == user_id,
            InvoiceCounterRow.year == old_year,
            InvoiceCounterRow.count == old_count,
        )
        .values(year=year, count=count)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        session.rollback()
        return False
    session.commit()
    return True


def allocate_invoice_number(session: Session, user_id: str, now: datetime) -> str:
    """Return the user's next ``INV-<year>-<0000>`` number and persist the counter."""
    current_year = now.year

    for attempt in range(1, MAX_ALLOCATION_ATTEMPTS + 1):
        stored = _read_counter(session, user_id)
        new_state = next_counter_state(stored, current_year)
        if _write_counter(session, user_id, stored, new_state):
            number = format_invoice_number(*new_state)
            logger.info(
                "invoice_number_allocated",
                user_id=user_id,
                invoice_number=number,
                attempt=attempt,
            )
            return number
        logger.debug("invoice_counter_contended", user_id=user_id, attempt=attempt)

    raise CounterConflictError(MAX_ALLOCATION_ATTEMPTS)


def get_invoice_counter(session: Session, user_id: str) -> Optional[InvoiceCounter]:
    stored = _read_counter(session, user_id)
    if stored is None:
        return None
    return InvoiceCounter(year=stored[0], count=stored[1])


def set_invoice_counter(session: Session, user_id: str, counter: InvoiceCounter) -> InvoiceCounter:
    """Operator renumbering: the next allocation in ``counter.year`` is ``count + 1``."""
    session.merge(InvoiceCounterRow(user_id=user_id, year=counter.year, count=counter.count))
    session.commit()
    logger.info("invoice_counter_updated", user_id=user_id, year=counter.year, count=counter.count)
    return counter


def describe_counter(session: Session, user_id: str, now: datetime) -> InvoiceCounterView:
    """Counter as shown on the settings screen, with a preview of the next number."""
    counter = get_invoice_counter(session, user_id)
    if counter is None:
        return InvoiceCounterView(
            year=now.year,
            count=0,
            current_number=None,
            next_number=format_invoice_number(now.year, 1),
        )

    next_year, next_count = next_counter_state((counter.year, counter.count), now.year)
    return InvoiceCounterView(
        year=counter.year,
        count=counter.count,
        current_number=format_invoice_number(counter.year, counter.count) if counter.count else None,
        next_number=format_invoice_number(next_year, next_count),
    )
