"""ID generators and the INV-YYYY-#### invoice number format"""
import uuid


def new_id() -> str:
    return str(uuid.uuid4())


def format_invoice_number(year: int, count: int) -> str:
    return f"INV-{year}-{count:04d}"
