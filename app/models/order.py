from enum import Enum
from typing import Iterable

DEFAULT_LOCALE = "th"
PICKUP_TIME_NOT_SPECIFIED = "ไม่ได้ระบุ"
QTY_UNIT = "ชิ้น"

THAI_ERA_OFFSET = 543


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"

    @classmethod
    def values(cls):
        return [s.value for s in cls]


def format_qty(qty) -> str:
    if isinstance(qty, float) and qty.is_integer():
        return str(int(qty))
    return str(qty)


def describe_item(item) -> str:
    """Render one line item the way the sheet expects it.

    "ไข่ไก่ (Egg) x 2 ชิ้น" when both names exist, "Egg x 2 ชิ้น" otherwise.
    """
    names = dict(item.display_names)
    primary = names.pop(DEFAULT_LOCALE, None)
    others = list(names.values())
    if primary is None and others:
        primary = others.pop(0)
    label = primary or ""
    if others:
        label = f"{label} ({', '.join(others)})"
    return f"{label} x {format_qty(item.qty)} {QTY_UNIT}"


def describe_items(items: Iterable) -> str:
    return ", ".join(describe_item(item) for item in items)


def total_price(items: Iterable) -> float:
    return sum(item.qty * item.price for item in items)


def format_thai_datetime(value, tz) -> str:
    """Format like th-TH locale: D/M/BBBB HH:MM:SS with the Buddhist-era year."""
    local = value.astimezone(tz)
    return f"{local.day}/{local.month}/{local.year + THAI_ERA_OFFSET} {local.strftime('%H:%M:%S')}"
