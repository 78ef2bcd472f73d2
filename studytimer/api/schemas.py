"""
Pydantic schemas for the FastAPI local API.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..timer.methods import MAX_BREAK_MINUTES, MAX_CYCLES, MAX_STUDY_MINUTES

# ── Timer ──────────────────────────────────────────────────────────────────

class TimerStartRequest(BaseModel):
    method: str = Field("custom", description="pomodoro | fifty-ten | ninety-fifteen | two-hour | custom")
    study_minutes: Optional[int] = Field(
        None, ge=1, le=MAX_STUDY_MINUTES,
        description="Work segment length; defaults to the method preset",
    )
    break_minutes: Optional[int] = Field(None, ge=0, le=MAX_BREAK_MINUTES)
    cycles: int = Field(1, ge=1, le=MAX_CYCLES)


class PendingTransitionOut(BaseModel):
    from_type: str
    to_type: str
    transition_time: float


class CompletionOut(BaseModel):
    record_id: str
    method: str
    duration: int
    break_duration: Optional[int]
    cycles: int
    total_duration: float
    completion_type: str


class TimerStateOut(BaseModel):
    is_active: bool
    is_paused: bool
    is_break: bool
    is_running: bool
    method: Optional[str]
    study_duration: int
    break_duration: Optional[int]
    cycles: int
    total_duration: float
    time_left: int
    start_time: Optional[float]
    current_segment_type: Optional[str]
    pending_transition: Optional[PendingTransitionOut]
    completion_data: Optional[CompletionOut]


class TimerMethodOut(BaseModel):
    id: str
    name: str
    duration: int
    break_duration: int
    description: str


# ── Segments ───────────────────────────────────────────────────────────────

class SegmentOut(BaseModel):
    start: float
    end: float
    type: str


class CurrentSegmentOut(BaseModel):
    segment: SegmentOut
    remaining_minutes: float
    is_study: bool
    is_break: bool


class SegmentStatsOut(BaseModel):
    study_time: float
    break_time: float
    total_time: float
    study_segment_count: int
    break_segment_count: int
    study_percentage: int


class SegmentOverviewOut(BaseModel):
    segments: List[SegmentOut]
    current: Optional[CurrentSegmentOut]
    stats: Optional[SegmentStatsOut]


# ── Sessions ───────────────────────────────────────────────────────────────

class CompletionSaveRequest(BaseModel):
    topic: str = Field("", max_length=200)
    notes: str = Field("", max_length=5000)


class StoredSessionOut(BaseModel):
    id: int
    record_id: str
    duration: int
    study_topic: str
    notes: str
    method: str
    break_duration: Optional[int]
    cycles: int
    total_duration: float
    completion_status: str
    method_variation: str
    created_at: float


class SessionStatsOut(BaseModel):
    total_study_time: int
    total_sessions: int
    average_session_length: int
    this_week_time: int
    this_week_sessions: int
    current_streak: int
    longest_streak: int
