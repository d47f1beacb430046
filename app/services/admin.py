"""User directory and aggregate stats for super admins."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.limits import AdminClient, AdminClientList, AdminDashboardStats
from ..storage.tables import UserRow
from .limits import resolve_limits, usage_summary


def is_super_admin(email: Optional[str], allow_list: frozenset) -> bool:
    return bool(email) and email.strip().lower() in allow_list


def touch_user(session: Session, uid: str, email: Optional[str], now: datetime) -> None:
    """Record that ``uid`` was seen; creates the directory entry on first sight."""
    row = session.get(UserRow, uid)
    if row is None:
        session.add(UserRow(uid=uid, email=email, created_at=now, last_seen_at=now))
        try:
            session.commit()
        except IntegrityError:
            # Another request registered the same user first.
            session.rollback()
            row = session.get(UserRow, uid)
        else:
            return

    if row is not None:
        row.last_seen_at = now
        if email:
            row.email = email
        session.commit()


def list_clients(session: Session, now: datetime) -> AdminClientList:
    rows = list(session.scalars(select(UserRow).order_by(UserRow.email, UserRow.uid)))
    return AdminClientList(
        clients=[
            AdminClient(
                uid=row.uid,
                email=row.email,
                display_name=row.display_name,
                limits=resolve_limits(session, row.uid),
                usage=usage_summary(session, row.uid, now),
            )
            for row in rows
        ]
    )


def user_exists(session: Session, uid: str) -> bool:
    return session.get(UserRow, uid) is not None


def dashboard_stats(session: Session, now: datetime) -> AdminDashboardStats:
    """Seen today counts from UTC midnight; week and month are trailing 7 and 30 days."""
    now = now.astimezone(timezone.utc)
    start_of_day = datetime(now.year, now.month, now.day, tzinfo=timezone.utc)

    def seen_since(moment: datetime) -> int:
        return int(
            session.execute(
                select(func.count()).select_from(UserRow).where(UserRow.last_seen_at >= moment)
            ).scalar_one()
        )

    total = int(session.execute(select(func.count()).select_from(UserRow)).scalar_one())
    return AdminDashboardStats(
        total_users=total,
        logged_in_today=seen_since(start_of_day),
        logged_in_this_week=seen_since(now - timedelta(days=7)),
        logged_in_this_month=seen_since(now - timedelta(days=30)),
    )
