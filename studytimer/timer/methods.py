"""
Timer method catalog — the preset work/break schedules plus the custom timer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..errors import InvalidSessionError

CUSTOM_METHOD_ID = "custom"

# Custom timer bounds (minutes)
MAX_STUDY_MINUTES = 480
MAX_BREAK_MINUTES = 60
MAX_CYCLES = 12


@dataclass(frozen=True)
class TimerMethod:
    id: str
    name: str
    duration: int
    break_duration: int
    description: str


TIMER_METHODS: List[TimerMethod] = [
    TimerMethod(
        id="pomodoro",
        name="Pomodoro Technique",
        duration=25,
        break_duration=5,
        description="Short focused bursts with quick breaks to prevent burnout "
                    "and maintain high productivity",
    ),
    TimerMethod(
        id="fifty-ten",
        name="50/10 Method",
        duration=50,
        break_duration=10,
        description="Extended focus sessions designed for sustained productivity "
                    "without overwhelming the brain",
    ),
    TimerMethod(
        id="ninety-fifteen",
        name="90/15 Method",
        duration=90,
        break_duration=15,
        description="Deep work based on ultradian rhythms - natural cycles of "
                    "high and low alertness",
    ),
    TimerMethod(
        id="two-hour",
        name="2-Hour Deep Work",
        duration=120,
        break_duration=30,
        description="Maximum concentration sessions for tasks requiring minimal interruptions",
    ),
    TimerMethod(
        id=CUSTOM_METHOD_ID,
        name="Custom Timer",
        duration=0,
        break_duration=0,
        description="Choose from preset variations or design your own schedule",
    ),
]

_BY_ID = {m.id: m for m in TIMER_METHODS}


def get_method(method_id: str) -> Optional[TimerMethod]:
    return _BY_ID.get(method_id)


def resolve_schedule(
    method_id: str,
    study_minutes: Optional[int] = None,
    break_minutes: Optional[int] = None,
    cycles: int = 1,
) -> Tuple[int, Optional[int], int]:
    """
    Fill in a schedule from the method preset where the caller left gaps,
    then check it against the custom timer bounds.

    Returns (study_minutes, break_minutes, cycles).
    """
    method = get_method(method_id)
    if method is None:
        raise InvalidSessionError(f"Unknown timer method {method_id!r}")

    is_preset = method.id != CUSTOM_METHOD_ID
    if study_minutes is None:
        if not is_preset:
            raise InvalidSessionError("The custom timer needs study_minutes")
        study_minutes = method.duration
    if break_minutes is None and is_preset:
        break_minutes = method.break_duration
    if break_minutes is None and cycles > 1:
        raise InvalidSessionError("Repeating cycles need a break_minutes value")

    if not 0 < study_minutes <= MAX_STUDY_MINUTES:
        raise InvalidSessionError(
            f"Study duration must be 1-{MAX_STUDY_MINUTES} minutes, got {study_minutes}"
        )
    if break_minutes is not None and not 0 <= break_minutes <= MAX_BREAK_MINUTES:
        raise InvalidSessionError(
            f"Break duration must be 0-{MAX_BREAK_MINUTES} minutes, got {break_minutes}"
        )
    if not 1 <= cycles <= MAX_CYCLES:
        raise InvalidSessionError(f"Cycles must be 1-{MAX_CYCLES}, got {cycles}")
    return study_minutes, break_minutes, cycles
