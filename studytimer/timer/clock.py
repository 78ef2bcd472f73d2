"""
Study Timer — the single owner of TimerState.

All mutation goes through the public methods below, serialized by one lock
(API handlers run in a threadpool, ticks run on the event loop). Every state
change is written to local storage so a restart can reconstruct the session.

Time is tracked against `start_time`, an epoch-ms anchor refreshed on every
tick and resume, rather than by counting ticks: a tick consumes one timer
second per full cadence interval since the anchor, and a restart subtracts
the wall time spent away.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from ..actions.notifications import NotificationSink, NullNotifier, ToneKind
from ..config import config
from ..errors import CompletionPendingError
from ..settings import get_settings
from .completion import build_completion
from .segments import (
    SegmentInfo,
    SegmentType,
    StudySegment,
    calculate_segments,
    locate_segment,
    total_session_minutes,
)
from .state import (
    TIMER_STORAGE_KEY,
    CompletionData,
    CompletionType,
    LocalStorage,
    TimerState,
    decode_state,
    encode_state,
)
from .transitions import TransitionDetector, fire_alert

logger = logging.getLogger(__name__)


def _wall_clock_ms() -> float:
    return time.time() * 1000


class StudyTimer:
    """
    Usage:
        timer = StudyTimer(LocalStorage(path), notifier=DesktopNotifier())
        timer.restore()
        timer.start_timer(25, "pomodoro", break_minutes=5, cycles=4)
        timer.tick()            # called by TimerRunner at tick_interval_ms()
    """

    def __init__(
        self,
        storage: LocalStorage,
        notifier: Optional[NotificationSink] = None,
        settings: Callable[[], Dict[str, bool]] = get_settings,
        now_ms: Callable[[], float] = _wall_clock_ms,
    ):
        self._lock = threading.RLock()
        self._storage = storage
        self._notifier = notifier or NullNotifier()
        self._settings = settings
        self._now = now_ms
        self._detector = TransitionDetector(self._notifier, settings)
        self._segments: List[StudySegment] = []
        self.state = TimerState()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def snapshot(self) -> TimerState:
        with self._lock:
            return copy.deepcopy(self.state)

    def is_running(self) -> bool:
        with self._lock:
            return self.state.is_running()

    def segments(self) -> List[StudySegment]:
        with self._lock:
            return list(self._segments)

    def current_segment(self) -> Optional[SegmentInfo]:
        with self._lock:
            s = self.state
            if not s.is_active or not self._segments:
                return None
            elapsed_minutes = (s.total_duration * 60 - s.time_left) / 60
            return locate_segment(self._segments, elapsed_minutes)

    def tick_interval_ms(self) -> int:
        if self._settings().get("development_mode", False):
            return config.dev_tick_ms
        return config.normal_tick_ms

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def restore(self) -> TimerState:
        """Load the persisted snapshot and reconcile it with the time spent away."""
        with self._lock:
            raw = self._storage.get_item(TIMER_STORAGE_KEY)
            if raw is None:
                self.state = TimerState()
                return self.snapshot()

            try:
                state = decode_state(raw)
                segments = self._plan(state) if state.is_active else []
            except (ValueError, TypeError) as exc:
                logger.warning("Discarding corrupt timer snapshot: %s", exc)
                self._storage.remove_item(TIMER_STORAGE_KEY)
                self.state = TimerState()
                return self.snapshot()

            self.state = state
            self._segments = segments

            if state.is_active and not state.is_paused:
                now = self._now()
                elapsed = max(0, int((now - state.start_time) // 1000))
                time_left = state.time_left - elapsed
                if time_left <= 0:
                    logger.info("Session finished while the service was down")
                    state.time_left = 0
                    self._complete()
                else:
                    logger.info("Resuming session: %ds elapsed while down, %ds left",
                                elapsed, time_left)
                    state.time_left = time_left
                    state.start_time = now

            self._persist()
            return self.snapshot()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_timer(
        self,
        study_minutes: int,
        method: str,
        break_minutes: Optional[int] = None,
        cycles: int = 1,
    ) -> TimerState:
        with self._lock:
            if self.state.completion_data is not None:
                raise CompletionPendingError(
                    "The previous session has not been saved or dismissed yet"
                )
            total = total_session_minutes(study_minutes, break_minutes, cycles)
            segments = calculate_segments(study_minutes, break_minutes, cycles)
            if self.state.is_active:
                logger.info("Replacing active %s session", self.state.method)

            self.state = TimerState(
                is_active=True,
                method=method,
                study_duration=study_minutes,
                break_duration=break_minutes,
                cycles=cycles,
                total_duration=total,
                time_left=int(round(total * 60)),
                start_time=self._now(),
                current_segment_type=SegmentType.STUDY,
            )
            self._segments = segments
            logger.info("Started %s session: %s min total, %d segment(s)",
                        method, total, len(segments))
            self._persist()
            return self.snapshot()

    def pause_timer(self) -> TimerState:
        """Toggle pause. Ignored while idle or while a transition awaits confirmation."""
        with self._lock:
            s = self.state
            if not s.is_active or s.pending_transition is not None:
                return self.snapshot()
            if s.is_paused:
                s.is_paused = False
                s.start_time = self._now()
            else:
                s.is_paused = True
            self._persist()
            return self.snapshot()

    def resume_timer(self) -> TimerState:
        with self._lock:
            s = self.state
            if s.is_active and s.is_paused and s.pending_transition is None:
                s.is_paused = False
                s.start_time = self._now()
                self._persist()
            return self.snapshot()

    def stop_timer(self) -> TimerState:
        """Stop the session, recording what was actually studied. Safe to call when idle."""
        with self._lock:
            s = self.state
            if s.is_active and s.time_left > 0:
                self._finalize(CompletionType.MANUAL_STOP)
            else:
                self.state = TimerState(completion_data=s.completion_data)
                self._segments = []
            self._persist()
            return self.snapshot()

    def reset_timer(self) -> TimerState:
        """Rewind the session to its full length, inactive, without recording it."""
        with self._lock:
            s = self.state
            self.state = TimerState(
                method=s.method,
                study_duration=s.study_duration,
                break_duration=s.break_duration,
                cycles=s.cycles,
                total_duration=s.total_duration,
                time_left=int(round(s.total_duration * 60)),
                completion_data=s.completion_data,
            )
            self._segments = []
            self._persist()
            return self.snapshot()

    def confirm_transition(self) -> TimerState:
        with self._lock:
            s = self.state
            pending = s.pending_transition
            if pending is None:
                return self.snapshot()
            s.current_segment_type = pending.to_type
            s.is_break = pending.to_type == SegmentType.BREAK
            s.pending_transition = None
            s.is_paused = False
            s.start_time = self._now()
            logger.info("Transition to %s confirmed", pending.to_type.value)
            self._persist()
            return self.snapshot()

    def cancel_transition(self) -> TimerState:
        """Resume without entering the new segment type."""
        with self._lock:
            s = self.state
            if s.pending_transition is None:
                return self.snapshot()
            s.pending_transition = None
            s.is_paused = False
            s.start_time = self._now()
            self._persist()
            return self.snapshot()

    def clear_completion_data(self) -> Optional[CompletionData]:
        with self._lock:
            record = self.state.completion_data
            self.state.completion_data = None
            self._persist()
            return record

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> TimerState:
        with self._lock:
            s = self.state
            if not s.is_running():
                return self.snapshot()

            now = self._now()
            interval = self.tick_interval_ms()
            since = now - s.start_time if s.start_time is not None else 0
            steps = max(1, int(since // interval))
            s.time_left = max(0, s.time_left - steps)
            s.start_time = now - max(0, since - steps * interval)

            if s.time_left == 0:
                self._complete()
            else:
                self._detector.check(s, self._segments, now)

            self._persist()
            return self.snapshot()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _finalize(self, completion_type: CompletionType) -> CompletionData:
        record = build_completion(self.state, completion_type)
        self.state = TimerState(completion_data=record)
        self._segments = []
        logger.info("Session %s: %d min (%s)", completion_type.value,
                    record.duration, record.method)
        return record

    def _complete(self) -> CompletionData:
        """Finalize a session that ran out and announce it."""
        record = self._finalize(CompletionType.COMPLETED)
        fire_alert(
            self._notifier,
            self._settings(),
            "Session Complete!",
            f"Great job! You studied for {record.duration} minutes. "
            "Time to log what you learned.",
            ToneKind.COMPLETE,
            require_interaction=True,
        )
        return record

    def _plan(self, state: TimerState) -> List[StudySegment]:
        return calculate_segments(state.study_duration, state.break_duration, state.cycles)

    def _persist(self) -> None:
        try:
            if self.state.is_idle() and self.state.completion_data is None:
                self._storage.remove_item(TIMER_STORAGE_KEY)
            else:
                self._storage.set_item(TIMER_STORAGE_KEY, encode_state(self.state))
        except OSError as exc:
            logger.warning("Could not persist timer state: %s", exc)
