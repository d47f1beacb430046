"""Wall clock. Routes read it from ``app.state.clock`` so tests can pin time."""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
