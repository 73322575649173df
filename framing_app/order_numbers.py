"""
Customer order numbers — YYYY-NNNN, restarting at 0001 every calendar year.

The next number is one above the highest number already used that year,
so deleting an order never hands out a duplicate of a later one.
"""

from datetime import datetime

from sqlalchemy.orm import Session

from . import models


def parse_sequence(order_number: str, year: int) -> int:
    """Sequence part of ``order_number`` when it belongs to ``year``, else 0."""
    prefix = f"{year}-"
    if not order_number or not order_number.startswith(prefix):
        return 0
    try:
        return int(order_number[len(prefix):])
    except ValueError:
        return 0


def format_order_number(year: int, sequence: int) -> str:
    return f"{year}-{str(sequence).zfill(4)}"


def generate_order_number(db: Session, now: datetime = None) -> str:
    year = (now or datetime.utcnow()).year
    numbers = (
        db.query(models.CustomerOrder.order_number)
        .filter(models.CustomerOrder.order_number.like(f"{year}-%"))
        .all()
    )
    highest = max((parse_sequence(n, year) for (n,) in numbers), default=0)
    return format_order_number(year, highest + 1)
