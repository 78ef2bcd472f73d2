"""
Transition Detector — notices when elapsed time crosses into a new segment.

Runs inside every tick. On a crossing it either commits the new segment type
(auto mode) or freezes the clock with a pending transition until the user
confirms (confirm mode). Alerts fire at detection time in both modes.

Each crossing is identified by the start minute of the segment being entered.
That minute is remembered on the state, so a crossing never alerts or prompts
twice, including after the user dismisses it with cancel_transition().
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from ..actions.notifications import NotificationSink, ToneKind
from .segments import SegmentInfo, SegmentType, StudySegment, locate_segment
from .state import PendingTransition, TimerState

logger = logging.getLogger(__name__)


class TransitionDetector:

    def __init__(
        self,
        notifier: NotificationSink,
        settings: Callable[[], Dict[str, bool]],
    ):
        self._notifier = notifier
        self._settings = settings

    def check(
        self, state: TimerState, segments: List[StudySegment], now_ms: float
    ) -> Optional[SegmentInfo]:
        """
        Compare the segment at the current elapsed time with the last known one.
        Mutates *state* on a crossing and returns the entered segment, else None.
        """
        if not state.break_duration or state.time_left <= 0:
            return None

        elapsed_minutes = (state.total_duration * 60 - state.time_left) / 60
        info = locate_segment(segments, elapsed_minutes)
        if info is None or info.segment.type == state.current_segment_type:
            return None

        transition_minute = info.segment.start
        if state.last_transition_minute == transition_minute:
            return None  # already handled
        state.last_transition_minute = transition_minute

        from_type = state.current_segment_type or SegmentType.STUDY
        to_type = info.segment.type
        settings = self._settings()

        if settings.get("auto_breaks", True):
            state.current_segment_type = to_type
            state.is_break = to_type == SegmentType.BREAK
            logger.info("Segment transition %s -> %s at minute %.2f",
                        from_type.value, to_type.value, transition_minute)
        else:
            state.is_paused = True
            state.pending_transition = PendingTransition(
                from_type=from_type,
                to_type=to_type,
                transition_time=now_ms,
            )
            logger.info("Segment transition %s -> %s pending confirmation",
                        from_type.value, to_type.value)

        self._alert(to_type, info.segment, settings)
        return info

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def _alert(self, to_type: SegmentType, segment: StudySegment, settings: Dict[str, bool]) -> None:
        minutes = int(round(segment.length))
        if to_type == SegmentType.BREAK:
            title = "Break Time!"
            body = f"Time for a {minutes} minute break. Rest and recharge!"
            tone = ToneKind.BREAK
        else:
            title = "Study Time!"
            body = f"Back to studying for {minutes} minutes. Stay focused!"
            tone = ToneKind.STUDY
        fire_alert(self._notifier, settings, title, body, tone)


def fire_alert(
    notifier: NotificationSink,
    settings: Dict[str, bool],
    title: str,
    body: str,
    tone: ToneKind,
    require_interaction: bool = False,
) -> None:
    """Fire-and-forget notification + tone; sink failures never reach the clock."""
    if settings.get("desktop_notifications", False):
        try:
            notifier.notify(title, body, require_interaction=require_interaction)
        except Exception as exc:
            logger.warning("Notification failed: %s", exc)
    if settings.get("sound_enabled", True):
        try:
            notifier.play_tone(tone)
        except Exception as exc:
            logger.warning("Tone playback failed: %s", exc)
