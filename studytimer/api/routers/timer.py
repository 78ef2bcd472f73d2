"""
/timer — drive the study timer state machine and acknowledge finished sessions.
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ...api.schemas import (
    CompletionOut,
    CompletionSaveRequest,
    CurrentSegmentOut,
    PendingTransitionOut,
    SegmentOut,
    SegmentOverviewOut,
    SegmentStatsOut,
    StoredSessionOut,
    TimerMethodOut,
    TimerStartRequest,
    TimerStateOut,
)
from ...errors import CompletionPendingError, InvalidSessionError, SessionStoreError
from ...timer.methods import TIMER_METHODS, resolve_schedule
from ...timer.segments import StudySegment, session_stats
from ...timer.state import CompletionData, TimerState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/timer", tags=["timer"])


def _get_timer(request: Request):
    return request.app.state.timer


def _get_sessions(request: Request):
    return request.app.state.sessions


def _completion_out(c: CompletionData) -> CompletionOut:
    return CompletionOut(
        record_id=c.record_id,
        method=c.method,
        duration=c.duration,
        break_duration=c.break_duration,
        cycles=c.cycles,
        total_duration=c.total_duration,
        completion_type=c.completion_type.value,
    )


def _state_out(s: TimerState) -> TimerStateOut:
    p = s.pending_transition
    return TimerStateOut(
        is_active=s.is_active,
        is_paused=s.is_paused,
        is_break=s.is_break,
        is_running=s.is_running(),
        method=s.method,
        study_duration=s.study_duration,
        break_duration=s.break_duration,
        cycles=s.cycles,
        total_duration=s.total_duration,
        time_left=s.time_left,
        start_time=s.start_time,
        current_segment_type=s.current_segment_type.value if s.current_segment_type else None,
        pending_transition=PendingTransitionOut(
            from_type=p.from_type.value,
            to_type=p.to_type.value,
            transition_time=p.transition_time,
        ) if p else None,
        completion_data=_completion_out(s.completion_data) if s.completion_data else None,
    )


def _segment_out(seg: StudySegment) -> SegmentOut:
    return SegmentOut(start=seg.start, end=seg.end, type=seg.type.value)


# ── State ───────────────────────────────────────────────────────────────────

@router.get("", response_model=TimerStateOut)
def get_timer(timer=Depends(_get_timer)):
    return _state_out(timer.snapshot())


@router.get("/methods", response_model=List[TimerMethodOut])
def list_methods():
    return [TimerMethodOut(**m.__dict__) for m in TIMER_METHODS]


@router.get("/segments", response_model=SegmentOverviewOut)
def get_segments(timer=Depends(_get_timer)):
    """Segment plan of the active session, the segment in progress, and plan totals."""
    segments = timer.segments()
    current = timer.current_segment()
    stats = session_stats(segments) if segments else None
    return SegmentOverviewOut(
        segments=[_segment_out(s) for s in segments],
        current=CurrentSegmentOut(
            segment=_segment_out(current.segment),
            remaining_minutes=current.remaining_minutes,
            is_study=current.is_study,
            is_break=current.is_break,
        ) if current else None,
        stats=SegmentStatsOut(**stats.__dict__) if stats else None,
    )


# ── Commands ────────────────────────────────────────────────────────────────

@router.post("/start", response_model=TimerStateOut)
def start_timer(req: TimerStartRequest, timer=Depends(_get_timer)):
    try:
        study, brk, cycles = resolve_schedule(
            req.method, req.study_minutes, req.break_minutes, req.cycles
        )
        state = timer.start_timer(study, req.method, break_minutes=brk, cycles=cycles)
    except CompletionPendingError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except InvalidSessionError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _state_out(state)


@router.post("/pause", response_model=TimerStateOut)
def pause_timer(timer=Depends(_get_timer)):
    """Toggle pause."""
    return _state_out(timer.pause_timer())


@router.post("/resume", response_model=TimerStateOut)
def resume_timer(timer=Depends(_get_timer)):
    return _state_out(timer.resume_timer())


@router.post("/stop", response_model=TimerStateOut)
def stop_timer(timer=Depends(_get_timer)):
    return _state_out(timer.stop_timer())


@router.post("/reset", response_model=TimerStateOut)
def reset_timer(timer=Depends(_get_timer)):
    return _state_out(timer.reset_timer())


@router.post("/transition/confirm", response_model=TimerStateOut)
def confirm_transition(timer=Depends(_get_timer)):
    return _state_out(timer.confirm_transition())


@router.post("/transition/cancel", response_model=TimerStateOut)
def cancel_transition(timer=Depends(_get_timer)):
    return _state_out(timer.cancel_transition())


# ── Completion ──────────────────────────────────────────────────────────────

@router.get("/completion", response_model=CompletionOut)
def get_completion(timer=Depends(_get_timer)):
    record = timer.snapshot().completion_data
    if record is None:
        raise HTTPException(status_code=404, detail="No finished session to acknowledge")
    return _completion_out(record)


@router.post("/completion", response_model=StoredSessionOut, status_code=status.HTTP_201_CREATED)
def save_completion(
    req: CompletionSaveRequest,
    timer=Depends(_get_timer),
    sessions=Depends(_get_sessions),
):
    """
    Log the finished session with an optional topic and notes, then clear it.
    On a store failure the record is kept so the client can retry.
    """
    record = timer.snapshot().completion_data
    if record is None:
        raise HTTPException(status_code=404, detail="No finished session to acknowledge")
    try:
        stored = sessions.save(record, topic=req.topic, notes=req.notes)
    except SessionStoreError as exc:
        logger.warning("Saving session %s failed: %s", record.record_id, exc)
        raise HTTPException(
            status_code=503,
            detail="Unable to save your study session. Please try again.",
        )
    timer.clear_completion_data()
    return StoredSessionOut(**stored.__dict__)


@router.delete("/completion")
def dismiss_completion(timer=Depends(_get_timer)):
    record = timer.clear_completion_data()
    if record is None:
        raise HTTPException(status_code=404, detail="No finished session to acknowledge")
    return {"status": "dismissed"}
