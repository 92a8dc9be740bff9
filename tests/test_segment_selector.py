from reelcut.models.job import Constraints
from reelcut.models.segment import CandidateSegment
from reelcut.services.clip_synthesizer import synthesize_clips
from reelcut.services.segment_selector import resolve_overlaps, select_segments


def seg(start, end, score):
    return CandidateSegment(start_time=start, end_time=end, score=score)


def test_overlapping_candidates_keep_higher_scoring_first_pick():
    constraints = Constraints(
        target_clip_count=1,
        min_duration_seconds=15,
        max_duration_seconds=60,
        virality_threshold=70,
    )

    selected = select_segments([seg(10, 40, 9.2), seg(20, 50, 8.0)], constraints)

    assert len(selected) == 1
    assert selected[0].start_time == 10
    assert selected[0].duration == 30


def test_short_segment_is_dropped_despite_high_score():
    constraints = Constraints(min_duration_seconds=15, max_duration_seconds=60)

    selected = select_segments([seg(100, 105, 9.9), seg(200, 230, 7.5)], constraints)

    assert [s.start_time for s in selected] == [200]


def test_below_threshold_and_too_long_are_filtered():
    constraints = Constraints(virality_threshold=80, min_duration_seconds=10, max_duration_seconds=30)

    selected = select_segments(
        [seg(0, 20, 7.9), seg(30, 100, 9.5), seg(120, 140, 8.0)],
        constraints,
    )

    assert [(s.start_time, s.score) for s in selected] == [(120, 8.0)]


def test_duration_bounds_are_inclusive():
    constraints = Constraints(min_duration_seconds=15, max_duration_seconds=60, virality_threshold=0)

    selected = select_segments([seg(0, 15, 5), seg(100, 160, 6)], constraints)

    assert len(selected) == 2


def test_output_sorted_by_score_and_truncated_to_target():
    constraints = Constraints(target_clip_count=2, virality_threshold=0, min_duration_seconds=0)

    selected = select_segments(
        [seg(0, 20, 6.0), seg(100, 120, 9.0), seg(200, 220, 7.5)],
        constraints,
    )

    assert [s.score for s in selected] == [9.0, 7.5]


def test_truncation_happens_before_overlap_resolution():
    constraints = Constraints(target_clip_count=2, virality_threshold=0, min_duration_seconds=0)

    # The two best overlap; the third would fit but is cut by truncation first.
    selected = select_segments(
        [seg(0, 30, 9.0), seg(10, 40, 8.5), seg(100, 130, 8.0)],
        constraints,
    )

    assert [s.start_time for s in selected] == [0]


def test_overlap_prevention_disabled_keeps_overlaps():
    constraints = Constraints(overlap_prevention=False, virality_threshold=0, min_duration_seconds=0)

    selected = select_segments([seg(10, 40, 9.2), seg(20, 50, 8.0)], constraints)

    assert len(selected) == 2


def test_resolve_overlaps_is_greedy_by_start_time():
    # The early low-score segment blocks the higher-scoring one it overlaps.
    kept = resolve_overlaps([seg(15, 45, 9.5), seg(0, 20, 7.0), seg(50, 70, 8.0)])

    assert [(s.start_time, s.score) for s in kept] == [(50, 8.0), (0, 7.0)]


def test_touching_intervals_do_not_overlap():
    kept = resolve_overlaps([seg(0, 30, 8.0), seg(30, 60, 9.0)])

    assert [s.start_time for s in kept] == [30, 0]


def test_empty_input_gives_empty_selection():
    assert select_segments([], Constraints()) == []


def test_fractional_minimum_excludes_segment_that_rounds_below_it():
    constraints = Constraints(min_duration_seconds=15.4, max_duration_seconds=60, virality_threshold=0)

    assert seg(0, 15.45, 9.0).clip_duration == 15
    assert select_segments([seg(0, 15.45, 9.0)], constraints) == []


def test_fractional_maximum_excludes_segment_that_rounds_above_it():
    constraints = Constraints(min_duration_seconds=10, max_duration_seconds=30.6, virality_threshold=0)

    selected = select_segments([seg(0, 30.6, 9.0), seg(100, 130.2, 8.0)], constraints)

    assert [s.start_time for s in selected] == [100]


def test_synthesized_clip_durations_stay_within_fractional_bounds():
    bounds = [(15.4, 60), (10, 30.4), (12.5, 12.5), (14.6, 20.49), (0.2, 1.6)]
    spans = [0.4, 0.6, 1.5, 12.4, 12.5, 12.6, 14.5, 15.0, 15.45, 15.6, 20.4, 20.6, 30.3, 30.5, 59.9]

    for low, high in bounds:
        constraints = Constraints(
            min_duration_seconds=low,
            max_duration_seconds=high,
            virality_threshold=0,
            target_clip_count=50,
            overlap_prevention=False,
        )
        candidates = [seg(100 * i, 100 * i + span, 8.0) for i, span in enumerate(spans)]

        clips = synthesize_clips(select_segments(candidates, constraints), constraints, "uploads/talk.mp4")

        for clip in clips:
            assert low <= clip.duration <= high, (low, high, clip.start_time, clip.end_time)
