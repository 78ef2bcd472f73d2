"""Tests for segment transition detection in auto and confirm modes."""

from __future__ import annotations

from studytimer.actions.notifications import ToneKind
from studytimer.timer.segments import SegmentType


def _advance_to_minute(timer, clock, minute: float):
    """Tick one second at a time until the session has run *minute* minutes."""
    s = timer.snapshot()
    target_left = int(s.total_duration * 60 - minute * 60)
    while timer.snapshot().time_left > target_left and timer.snapshot().is_running():
        clock.advance(1000)
        timer.tick()


class TestAutoMode:
    def test_study_to_break_commits_immediately(self, timer, clock, notifier):
        timer.start_timer(25, "pomodoro", break_minutes=5, cycles=2)
        _advance_to_minute(timer, clock, 25)
        s = timer.snapshot()
        assert s.current_segment_type == SegmentType.BREAK
        assert s.is_break
        assert not s.is_paused
        assert s.pending_transition is None
        assert notifier.tones == [ToneKind.BREAK]

    def test_break_to_study(self, timer, clock, notifier):
        timer.start_timer(25, "pomodoro", break_minutes=5, cycles=2)
        _advance_to_minute(timer, clock, 30)
        s = timer.snapshot()
        assert s.current_segment_type == SegmentType.STUDY
        assert not s.is_break
        assert notifier.tones == [ToneKind.BREAK, ToneKind.STUDY]

    def test_each_transition_alerts_once(self, timer, clock, notifier):
        timer.start_timer(25, "pomodoro", break_minutes=5, cycles=3)
        _advance_to_minute(timer, clock, 27)
        assert notifier.tones.count(ToneKind.BREAK) == 1
        assert timer.snapshot().last_transition_minute == 25

    def test_desktop_notification_when_enabled(self, timer, clock, notifier, settings):
        settings["desktop_notifications"] = True
        timer.start_timer(25, "pomodoro", break_minutes=5, cycles=2)
        _advance_to_minute(timer, clock, 25)
        title, body, sticky = notifier.notifications[0]
        assert title == "Break Time!"
        assert "5 minute break" in body
        assert sticky is False

    def test_sound_disabled_plays_nothing(self, timer, clock, notifier, settings):
        settings["sound_enabled"] = False
        timer.start_timer(25, "pomodoro", break_minutes=5, cycles=2)
        _advance_to_minute(timer, clock, 26)
        assert notifier.tones == []
        assert timer.snapshot().is_break

    def test_single_cycle_never_transitions(self, timer, clock, notifier):
        timer.start_timer(25, "pomodoro", break_minutes=5, cycles=1)
        _advance_to_minute(timer, clock, 24)
        assert timer.snapshot().current_segment_type == SegmentType.STUDY
        assert notifier.tones == []

    def test_heuristic_session_has_no_detection(self, timer, clock, notifier):
        timer.start_timer(30, "custom")
        _advance_to_minute(timer, clock, 27)
        assert timer.snapshot().current_segment_type == SegmentType.STUDY
        assert notifier.tones == []

    def test_failing_notifier_does_not_stop_clock(self, timer, clock, notifier, settings):
        def boom(*args, **kwargs):
            raise RuntimeError("no audio device")

        notifier.play_tone = boom
        settings["desktop_notifications"] = True
        notifier.notify = boom
        timer.start_timer(25, "pomodoro", break_minutes=5, cycles=2)
        _advance_to_minute(timer, clock, 26)
        s = timer.snapshot()
        assert s.is_break
        assert s.time_left == (55 - 26) * 60


class TestConfirmMode:
    def _cross_into_break(self, timer, clock, settings):
        settings["auto_breaks"] = False
        timer.start_timer(25, "pomodoro", break_minutes=5, cycles=3)
        _advance_to_minute(timer, clock, 25)

    def test_crossing_freezes_clock(self, timer, clock, settings):
        self._cross_into_break(timer, clock, settings)
        s = timer.snapshot()
        assert s.is_paused
        assert s.current_segment_type == SegmentType.STUDY
        assert s.pending_transition.from_type == SegmentType.STUDY
        assert s.pending_transition.to_type == SegmentType.BREAK
        assert s.pending_transition.transition_time == clock.now

    def test_clock_stays_frozen_until_confirmed(self, timer, clock, settings):
        self._cross_into_break(timer, clock, settings)
        left = timer.snapshot().time_left
        for _ in range(30):
            clock.advance(1000)
            timer.tick()
        assert timer.snapshot().time_left == left

    def test_alert_fires_at_detection(self, timer, clock, settings, notifier):
        self._cross_into_break(timer, clock, settings)
        assert notifier.tones == [ToneKind.BREAK]
        timer.confirm_transition()
        assert notifier.tones == [ToneKind.BREAK]

    def test_confirm_commits_and_resumes(self, timer, clock, settings):
        self._cross_into_break(timer, clock, settings)
        clock.advance(45_000)
        s = timer.confirm_transition()
        assert s.current_segment_type == SegmentType.BREAK
        assert s.is_break
        assert not s.is_paused
        assert s.pending_transition is None
        assert s.start_time == clock.now
        left = s.time_left
        clock.advance(1000)
        assert timer.tick().time_left == left - 1

    def test_pause_ignored_while_pending(self, timer, clock, settings):
        self._cross_into_break(timer, clock, settings)
        s = timer.pause_timer()
        assert s.is_paused
        assert s.pending_transition is not None

    def test_cancel_resumes_without_committing(self, timer, clock, settings, notifier):
        self._cross_into_break(timer, clock, settings)
        s = timer.cancel_transition()
        assert not s.is_paused
        assert s.pending_transition is None
        assert s.current_segment_type == SegmentType.STUDY
        # the same crossing is not raised again during the break
        _advance_to_minute(timer, clock, 29)
        s = timer.snapshot()
        assert not s.is_paused
        assert s.pending_transition is None
        assert notifier.tones == [ToneKind.BREAK]

    def test_cancelled_session_prompts_at_next_break(self, timer, clock, settings):
        self._cross_into_break(timer, clock, settings)
        timer.cancel_transition()
        _advance_to_minute(timer, clock, 55)
        s = timer.snapshot()
        assert s.is_paused
        assert s.pending_transition.to_type == SegmentType.BREAK

    def test_confirm_without_pending_is_noop(self, timer):
        timer.start_timer(25, "pomodoro", break_minutes=5, cycles=2)
        before = timer.snapshot()
        assert timer.confirm_transition() == before

    def test_stop_during_pending_records_elapsed(self, timer, clock, settings):
        self._cross_into_break(timer, clock, settings)
        s = timer.stop_timer()
        assert s.completion_data.duration == 25
        assert s.pending_transition is None
