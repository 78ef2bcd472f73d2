"""
Completion Recorder — builds the canonical record of a finished session.

The recorded duration always comes from time actually elapsed when the
session ended, never from the duration originally requested.
"""

from __future__ import annotations

import math
import uuid

from .state import CompletionData, CompletionType, TimerState


def elapsed_seconds(state: TimerState) -> int:
    return max(0, int(state.total_duration * 60) - state.time_left)


def build_completion(state: TimerState, completion_type: CompletionType) -> CompletionData:
    if completion_type == CompletionType.COMPLETED:
        minutes = state.total_duration
    else:
        minutes = elapsed_seconds(state) / 60
    return CompletionData(
        record_id=uuid.uuid4().hex,
        method=state.method or "custom",
        duration=max(1, _round_half_up(minutes)),
        break_duration=state.break_duration,
        cycles=state.cycles,
        total_duration=state.total_duration,
        completion_type=completion_type,
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
