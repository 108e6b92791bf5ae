"""Number formatting shared by the exports and the UI."""
import math
import re
from typing import Union

Number = Union[str, int, float, None]


def _to_float(value: Number) -> float:
    if value is None or value == "":
        return 0.0
    if isinstance(value, str):
        try:
            return float(parse_number(value) or 0)
        except ValueError:
            return 0.0
    return float(value)


def format_currency(amount: Number) -> str:
    """Whole-dollar currency, truncated toward zero: 1234.9 → $1,234."""
    num = math.trunc(_to_float(amount))
    if num < 0:
        return f"-${abs(num):,}"
    return f"${num:,}"


def format_money(amount: Number) -> str:
    """Currency with cents, for cost views."""
    num = _to_float(amount)
    if num < 0:
        return f"-${abs(num):,.2f}"
    return f"${num:,.2f}"


def format_margin(margin: Number) -> tuple[str, bool]:
    """Signed percentage text and whether the margin is non-negative."""
    num = _to_float(margin)
    sign = "+" if num >= 0 else ""
    return f"{sign}{num:.2f}%", num >= 0


def format_number_with_commas(value: Number) -> str:
    num = _to_float(value)
    if num == int(num):
        return f"{int(num):,}"
    return f"{num:,.2f}".rstrip("0").rstrip(".")


def parse_number(value: str) -> str:
    """Strip commas, currency symbols and anything else but digits, '.' and '-'."""
    return re.sub(r"[^0-9.\-]", "", value or "")
