"""
Study segment planning — splits a session into contiguous study/break blocks.

Two planning modes:

    Heuristic  no break length given; the block pattern is picked from the
               session size (short single block, 25/5, 50/10, or 90/15).
    Explicit   break length and cycle count given; the session is
               study, break, study, ..., study with no trailing break.

All times are minutes from session start. Segments are half-open
[start, end) intervals that tile [0, total) exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..errors import InvalidSessionError


class SegmentType(str, Enum):
    STUDY = "study"
    BREAK = "break"


@dataclass(frozen=True)
class StudySegment:
    start: float
    end: float
    type: SegmentType

    @property
    def length(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class SegmentInfo:
    segment: StudySegment
    remaining_minutes: float
    is_study: bool
    is_break: bool


@dataclass(frozen=True)
class SessionStats:
    study_time: float
    break_time: float
    total_time: float
    study_segment_count: int
    break_segment_count: int
    study_percentage: int


# (study block, break block) per heuristic size tier
_TIER_MEDIUM = (25, 5)       # 30 < total <= 45
_TIER_LONG = (50, 10)        # 45 < total <= 75
_TIER_EXTENDED = (90, 15)    # total > 75
_EXTENDED_BREAK_RATIO = 0.17


def total_session_minutes(
    study_minutes: float,
    break_minutes: Optional[float] = None,
    cycles: int = 1,
) -> float:
    """Total length of a session, dropping the break after the final cycle."""
    _validate(study_minutes, break_minutes, cycles)
    if break_minutes is None or cycles == 1:
        return study_minutes
    return (study_minutes + break_minutes) * cycles - break_minutes


def calculate_segments(
    study_minutes: float,
    break_minutes: Optional[float] = None,
    cycles: int = 1,
) -> List[StudySegment]:
    _validate(study_minutes, break_minutes, cycles)
    if break_minutes is None:
        return calculate_heuristic_segments(study_minutes)

    if cycles == 1 or break_minutes == 0:
        # single-cycle sessions are study-only
        return [StudySegment(0, study_minutes * cycles, SegmentType.STUDY)]

    segments: List[StudySegment] = []
    current = 0.0
    for i in range(cycles):
        segments.append(StudySegment(current, current + study_minutes, SegmentType.STUDY))
        current += study_minutes
        if i < cycles - 1:
            segments.append(StudySegment(current, current + break_minutes, SegmentType.BREAK))
            current += break_minutes
    return segments


def calculate_heuristic_segments(total_minutes: float) -> List[StudySegment]:
    """
    Pick a study/break rhythm from the session size:

        <= 30 min   one study block, short trailing break from 20 min
        <= 45 min   25/5 Pomodoro pairs
        <= 75 min   50/10 pairs
        longer      90-minute deep work blocks, break = min(15, 17% of block)
    """
    if total_minutes <= 0:
        raise InvalidSessionError(f"Session length must be positive, got {total_minutes}")

    if total_minutes <= 30:
        if total_minutes < 20:
            return [StudySegment(0, total_minutes, SegmentType.STUDY)]
        split = max(total_minutes - 5, total_minutes * 0.8)
        return [
            StudySegment(0, split, SegmentType.STUDY),
            StudySegment(split, total_minutes, SegmentType.BREAK),
        ]

    if total_minutes <= 45:
        study_block, break_block = _TIER_MEDIUM
    elif total_minutes <= 75:
        study_block, break_block = _TIER_LONG
    else:
        study_block, break_block = _TIER_EXTENDED

    segments: List[StudySegment] = []
    current = 0.0
    while current < total_minutes:
        study_len = min(study_block, total_minutes - current)
        segments.append(StudySegment(current, current + study_len, SegmentType.STUDY))
        current += study_len

        if current < total_minutes:
            break_len = min(break_block, total_minutes - current)
            if study_block == _TIER_EXTENDED[0]:
                break_len = min(break_len, study_len * _EXTENDED_BREAK_RATIO)
            segments.append(StudySegment(current, current + break_len, SegmentType.BREAK))
            current += break_len

    # Clip so the last block never runs past the session
    last = segments[-1]
    if last.end > total_minutes:
        segments[-1] = StudySegment(last.start, total_minutes, last.type)
    return segments


def locate_segment(
    segments: List[StudySegment], elapsed_minutes: float
) -> Optional[SegmentInfo]:
    """Return the segment containing *elapsed_minutes*, or None once the session is over."""
    for segment in segments:
        if segment.start <= elapsed_minutes < segment.end:
            return SegmentInfo(
                segment=segment,
                remaining_minutes=segment.end - elapsed_minutes,
                is_study=segment.type == SegmentType.STUDY,
                is_break=segment.type == SegmentType.BREAK,
            )
    return None


def session_stats(segments: List[StudySegment]) -> SessionStats:
    study = [s for s in segments if s.type == SegmentType.STUDY]
    breaks = [s for s in segments if s.type == SegmentType.BREAK]
    study_time = sum(s.length for s in study)
    break_time = sum(s.length for s in breaks)
    total = study_time + break_time
    return SessionStats(
        study_time=study_time,
        break_time=break_time,
        total_time=total,
        study_segment_count=len(study),
        break_segment_count=len(breaks),
        study_percentage=int(study_time / total * 100 + 0.5) if total else 0,
    )


def _validate(study_minutes: float, break_minutes: Optional[float], cycles: int) -> None:
    if study_minutes <= 0:
        raise InvalidSessionError(f"Study duration must be positive, got {study_minutes}")
    if break_minutes is not None and break_minutes < 0:
        raise InvalidSessionError(f"Break duration cannot be negative, got {break_minutes}")
    if cycles < 1:
        raise InvalidSessionError(f"Cycle count must be at least 1, got {cycles}")
