from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Countdown:
    days: int
    hours: int
    minutes: int
    seconds: int


def get_countdown(target: datetime, now: datetime | None = None) -> Countdown:
    """Tiempo restante hasta `target`; se queda en 0 cuando ya ha pasado."""
    now = now or datetime.now(target.tzinfo)
    total = max(0, int((target - now).total_seconds()))
    days, rest = divmod(total, 24 * 60 * 60)
    hours, rest = divmod(rest, 60 * 60)
    minutes, seconds = divmod(rest, 60)
    return Countdown(days, hours, minutes, seconds)
