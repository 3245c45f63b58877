from __future__ import annotations

import secrets
import string
import time
from datetime import datetime, timedelta

_BASE36 = string.digits + string.ascii_lowercase


def to_base36(n: int) -> str:
    if n < 0:
        raise ValueError("base36 encoding needs a non-negative integer")
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_BASE36[r])
    return "".join(reversed(out))


def generate_id(prefix: str = "ID") -> str:
    """PREFIX-<ms timestamp>-<random>, base36 and uppercased.

    Unique with high probability inside one store; not a global identifier.
    """
    stamp = to_base36(time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{prefix}-{stamp}-{suffix}".upper()


def day_key(moment: datetime) -> str:
    return moment.strftime("%y%m%d")


def format_order_number(day: str, seq: int) -> str:
    return f"{day}-{seq:03d}"


def _split_minutes(delta: timedelta) -> tuple[int, int]:
    total = max(int(delta.total_seconds() // 60), 0)
    return divmod(total, 60)


def format_duration(delta: timedelta) -> str:
    hours, minutes = _split_minutes(delta)
    return f"{hours}h {minutes}m"


def format_waiting(delta: timedelta) -> str:
    hours, minutes = _split_minutes(delta)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"

