"""
/sessions — the log of saved study sessions and profile statistics.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ...api.schemas import SessionStatsOut, StoredSessionOut
from ...errors import SessionStoreError

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _get_sessions(request: Request):
    return request.app.state.sessions


@router.get("", response_model=List[StoredSessionOut])
def list_sessions(
    limit: int = Query(default=200, le=1000),
    sessions=Depends(_get_sessions),
):
    try:
        rows = sessions.list_all(limit=limit)
    except SessionStoreError as exc:
        raise HTTPException(status_code=503, detail=f"Failed to load sessions: {exc}")
    return [StoredSessionOut(**s.__dict__) for s in rows]


@router.get("/stats", response_model=SessionStatsOut)
def get_stats(sessions=Depends(_get_sessions)):
    """Totals, 7-day window and daily streaks across all saved sessions."""
    try:
        stats = sessions.stats()
    except SessionStoreError as exc:
        raise HTTPException(status_code=503, detail=f"Failed to load sessions: {exc}")
    return SessionStatsOut(**stats.__dict__)


@router.delete("")
def clear_sessions(sessions=Depends(_get_sessions)):
    try:
        sessions.clear()
    except SessionStoreError as exc:
        raise HTTPException(status_code=503, detail=f"Failed to clear sessions: {exc}")
    return {"status": "cleared"}
