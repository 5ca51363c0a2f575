"""
Recurrence Expansion.

Turns "every Monday and Thursday at 10:00 for eight weeks" into concrete
candidate slots. The sequence is lazy, finite and consumed once, in order.
"""

from datetime import timedelta
from typing import Iterator, Optional

from models import CandidateSlot, DayOfWeek, RecurrenceSpec

from .config import EngineConfig


def expand_recurrence(
    spec: RecurrenceSpec,
    config: Optional[EngineConfig] = None
) -> Iterator[CandidateSlot]:
    """
    Yield ``date x time_slots`` for every stepped date that passes the weekday
    filter. The filter also applies to DAILY stepping ("every weekday").
    """
    config = config or EngineConfig()
    step = timedelta(days=config.step_days(spec.frequency))
    allowed = set(spec.days_of_week)

    current = spec.start_date
    while current <= spec.end_date:
        if not allowed or DayOfWeek.from_date(current) in allowed:
            for template in spec.time_slots:
                yield CandidateSlot(
                    date=current,
                    time=template.time,
                    duration_minutes=template.duration_minutes
                )
        current += step


def count_candidates(spec: RecurrenceSpec, config: Optional[EngineConfig] = None) -> int:
    """Size of the expansion, without keeping it around."""
    return sum(1 for _ in expand_recurrence(spec, config))
