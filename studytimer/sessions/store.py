"""
Session Store — append-only SQLite log of completed study sessions,
plus the aggregate statistics shown on the profile page.
"""

from __future__ import annotations

import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Set

from ..errors import SessionStoreError
from ..timer.state import CompletionData

DEFAULT_TOPIC = "No topic specified"
DEFAULT_NOTES = "No notes provided"

_COLUMNS = (
    "id, record_id, duration, study_topic, notes, method, break_duration, "
    "cycles, total_duration, completion_status, method_variation, created_at"
)


@dataclass
class StoredSession:
    id: Optional[int]
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


@dataclass
class SessionStats:
    total_study_time: int           # minutes
    total_sessions: int
    average_session_length: int     # minutes, rounded
    this_week_time: int
    this_week_sessions: int
    current_streak: int             # consecutive UTC days up to today/yesterday
    longest_streak: int


class SessionStore:
    """Thread-safe SQLite-backed session store."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._init_db()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def save(self, record: CompletionData, topic: str = "", notes: str = "") -> StoredSession:
        """
        Persist a completion record. Saving the same record twice returns the
        original row, so callers may retry freely after a failure.
        """
        session = StoredSession(
            id=None,
            record_id=record.record_id,
            duration=record.duration,
            study_topic=topic.strip() or DEFAULT_TOPIC,
            notes=notes.strip() or DEFAULT_NOTES,
            method=record.method,
            break_duration=record.break_duration,
            cycles=record.cycles,
            total_duration=record.total_duration,
            completion_status=record.completion_type.value,
            method_variation=f"{record.duration}/{record.break_duration or 0}",
            created_at=time.time(),
        )
        with self._conn() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO study_sessions
                    (record_id, duration, study_topic, notes, method, break_duration,
                     cycles, total_duration, completion_status, method_variation, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session.record_id,
                    session.duration,
                    session.study_topic,
                    session.notes,
                    session.method,
                    session.break_duration,
                    session.cycles,
                    session.total_duration,
                    session.completion_status,
                    session.method_variation,
                    session.created_at,
                ),
            )
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM study_sessions WHERE record_id = ?",
                (record.record_id,),
            ).fetchone()
        return StoredSession(*row)

    def clear(self) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM study_sessions")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list_all(self, limit: int = 1000) -> List[StoredSession]:
        """Sessions newest first."""
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM study_sessions ORDER BY created_at DESC, id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [StoredSession(*row) for row in rows]

    def stats(self, now: Optional[float] = None) -> SessionStats:
        if now is None:
            now = time.time()
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT duration, created_at FROM study_sessions"
            ).fetchall()

        total_time = sum(d for d, _ in rows)
        total = len(rows)
        week_ago = now - 7 * 24 * 3600
        week = [d for d, ts in rows if ts > week_ago]

        days = {_utc_day(ts) for _, ts in rows}
        current, longest = _streaks(days, _utc_day(now))

        return SessionStats(
            total_study_time=total_time,
            total_sessions=total,
            average_session_length=int(total_time / total + 0.5) if total else 0,
            this_week_time=sum(week),
            this_week_sessions=len(week),
            current_streak=current,
            longest_streak=longest,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS study_sessions (
                    id                INTEGER PRIMARY KEY AUTOINCREMENT,
                    record_id         TEXT    NOT NULL UNIQUE,
                    duration          INTEGER NOT NULL,
                    study_topic       TEXT    NOT NULL,
                    notes             TEXT    NOT NULL,
                    method            TEXT    NOT NULL,
                    break_duration    INTEGER,
                    cycles            INTEGER NOT NULL DEFAULT 1,
                    total_duration    REAL    NOT NULL,
                    completion_status TEXT    NOT NULL,
                    method_variation  TEXT    NOT NULL,
                    created_at        REAL    NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_created ON study_sessions(created_at)"
            )

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        except sqlite3.Error as exc:
            raise SessionStoreError(f"Cannot open session database: {exc}") from exc
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            raise SessionStoreError(str(exc)) from exc
        finally:
            conn.close()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _utc_day(ts: float) -> date:
    return datetime.fromtimestamp(ts, tz=timezone.utc).date()


def _streaks(days: Set[date], today: date) -> tuple[int, int]:
    """(current, longest) runs of consecutive study days."""
    if not days:
        return 0, 0

    longest = 0
    run = 0
    prev: Optional[date] = None
    for day in sorted(days):
        run = run + 1 if prev is not None and day - prev == timedelta(days=1) else 1
        longest = max(longest, run)
        prev = day

    # The current streak survives until a full day is missed
    cursor = today if today in days else today - timedelta(days=1)
    current = 0
    while cursor in days:
        current += 1
        cursor -= timedelta(days=1)
    return current, longest
