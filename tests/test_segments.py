"""Tests for segment planning, total duration and segment lookup."""

import pytest

from studytimer.errors import InvalidSessionError
from studytimer.timer.methods import resolve_schedule
from studytimer.timer.segments import (
    SegmentType,
    calculate_heuristic_segments,
    calculate_segments,
    locate_segment,
    session_stats,
    total_session_minutes,
)


def _assert_tiles(segments, total):
    assert segments[0].start == 0
    assert segments[0].type == SegmentType.STUDY
    for prev, nxt in zip(segments, segments[1:]):
        assert prev.end == pytest.approx(nxt.start)
    for s in segments:
        assert s.end > s.start
    assert segments[-1].end == pytest.approx(total)


class TestTotalDuration:
    def test_three_cycles_drop_final_break(self):
        assert total_session_minutes(25, 5, 3) == 85

    def test_single_cycle_ignores_break(self):
        assert total_session_minutes(25, 5, 1) == 25

    def test_no_break_is_study_time(self):
        assert total_session_minutes(40) == 40

    def test_zero_break_multiplies_study(self):
        assert total_session_minutes(30, 0, 3) == 90

    @pytest.mark.parametrize("study,brk,cycles", [(0, 5, 1), (-5, None, 1), (25, -1, 2), (25, 5, 0)])
    def test_invalid_input_raises(self, study, brk, cycles):
        with pytest.raises(InvalidSessionError):
            total_session_minutes(study, brk, cycles)


class TestExplicitSegments:
    def test_three_cycle_pattern(self):
        segs = calculate_segments(25, 5, 3)
        assert [s.type for s in segs] == [
            SegmentType.STUDY, SegmentType.BREAK,
            SegmentType.STUDY, SegmentType.BREAK,
            SegmentType.STUDY,
        ]
        assert [(s.start, s.end) for s in segs] == [
            (0, 25), (25, 30), (30, 55), (55, 60), (60, 85),
        ]

    def test_single_cycle_is_study_only(self):
        segs = calculate_segments(50, 10, 1)
        assert len(segs) == 1
        assert segs[0].type == SegmentType.STUDY
        assert segs[0].end == 50

    def test_zero_break_is_one_block(self):
        segs = calculate_segments(20, 0, 4)
        assert len(segs) == 1
        assert segs[0].end == 80

    @pytest.mark.parametrize("study,brk,cycles", [
        (25, 5, 2), (25, 5, 4), (50, 10, 3), (90, 15, 2), (120, 30, 5), (1, 60, 12),
    ])
    def test_explicit_plans_tile_session(self, study, brk, cycles):
        segs = calculate_segments(study, brk, cycles)
        _assert_tiles(segs, total_session_minutes(study, brk, cycles))
        assert segs[-1].type == SegmentType.STUDY


class TestHeuristicSegments:
    def test_short_session_is_single_block(self):
        segs = calculate_heuristic_segments(15)
        assert len(segs) == 1
        assert segs[0].end == 15

    def test_twenty_minutes_gets_trailing_break(self):
        segs = calculate_heuristic_segments(20)
        assert [(s.start, s.end, s.type) for s in segs] == [
            (0, 16, SegmentType.STUDY),
            (16, 20, SegmentType.BREAK),
        ]

    def test_thirty_minutes_gets_trailing_break(self):
        segs = calculate_heuristic_segments(30)
        assert [(s.start, s.end, s.type) for s in segs] == [
            (0, 25, SegmentType.STUDY),
            (25, 30, SegmentType.BREAK),
        ]

    def test_forty_minutes_uses_pomodoro_pairs(self):
        segs = calculate_heuristic_segments(40)
        assert [(s.start, s.end) for s in segs] == [(0, 25), (25, 30), (30, 40)]

    def test_sixty_minutes_uses_fifty_ten(self):
        segs = calculate_heuristic_segments(60)
        assert [(s.start, s.end) for s in segs] == [(0, 50), (50, 60)]

    def test_long_session_break_capped_at_fifteen(self):
        segs = calculate_heuristic_segments(200)
        assert segs[0].end == 90
        assert segs[1].type == SegmentType.BREAK
        assert segs[1].length == pytest.approx(15)

    @pytest.mark.parametrize("total", [5, 20, 21, 29, 30, 31, 45, 46, 75, 76, 100, 180, 480])
    def test_heuristic_plans_tile_session(self, total):
        _assert_tiles(calculate_heuristic_segments(total), total)

    def test_missing_break_uses_heuristic(self):
        assert calculate_segments(60) == calculate_heuristic_segments(60)


class TestLocateSegment:
    segments = calculate_segments(25, 5, 3)

    def test_start_of_session_is_study(self):
        info = locate_segment(self.segments, 0)
        assert info.is_study
        assert info.remaining_minutes == 25

    def test_boundary_belongs_to_next_segment(self):
        info = locate_segment(self.segments, 25)
        assert info.is_break
        assert info.segment.start == 25

    def test_mid_break_remaining(self):
        info = locate_segment(self.segments, 27.5)
        assert info.is_break
        assert info.remaining_minutes == pytest.approx(2.5)

    def test_end_of_session_returns_none(self):
        assert locate_segment(self.segments, 85) is None
        assert locate_segment(self.segments, 120) is None

    def test_just_before_end_is_last_segment(self):
        info = locate_segment(self.segments, 84.99)
        assert info.segment.start == 60

    def test_negative_elapsed_returns_none(self):
        assert locate_segment(self.segments, -1) is None


def test_session_stats():
    stats = session_stats(calculate_segments(25, 5, 3))
    assert stats.study_time == 75
    assert stats.break_time == 10
    assert stats.total_time == 85
    assert stats.study_segment_count == 3
    assert stats.break_segment_count == 2
    assert stats.study_percentage == 88


class TestResolveSchedule:
    def test_preset_fills_everything(self):
        assert resolve_schedule("pomodoro", cycles=3) == (25, 5, 3)

    def test_preset_break_kept_when_minutes_given(self):
        study, brk, cycles = resolve_schedule("pomodoro", study_minutes=25, cycles=3)
        assert brk == 5
        assert total_session_minutes(study, brk, cycles) == 85

    def test_explicit_break_overrides_preset(self):
        assert resolve_schedule("fifty-ten", 40, 0, 2) == (40, 0, 2)

    def test_custom_requires_minutes(self):
        with pytest.raises(InvalidSessionError):
            resolve_schedule("custom")

    def test_custom_without_break_stays_heuristic(self):
        assert resolve_schedule("custom", study_minutes=45) == (45, None, 1)

    def test_unknown_method_rejected_even_with_minutes(self):
        with pytest.raises(InvalidSessionError):
            resolve_schedule("siesta", study_minutes=25)

    def test_cycles_without_break_rejected(self):
        with pytest.raises(InvalidSessionError):
            resolve_schedule("custom", study_minutes=25, cycles=3)

    @pytest.mark.parametrize("study,brk,cycles", [(481, 5, 2), (25, 61, 2), (25, 5, 13)])
    def test_bounds(self, study, brk, cycles):
        with pytest.raises(InvalidSessionError):
            resolve_schedule("custom", study, brk, cycles)
