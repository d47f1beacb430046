"""Display formatting shared by the PDF and email renderers."""
from datetime import datetime


def format_currency(amount: float) -> str:
    """``1234.5`` -> ``$1,234.50``; negatives keep the sign in front."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_long_date(value: datetime) -> str:
    """``October 18, 2026``"""
    return f"{value.strftime('%B')} {value.day}, {value.year}"
