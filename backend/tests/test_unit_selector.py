"""Unit tests for weighted selection over probability tracks."""

import random
from collections import Counter
from decimal import Decimal

import pytest

from mysterybox.components.probability.selector import (
    Track,
    WeightedCandidate,
    clamp_weight,
    cumulative_bounds,
    resolve_track,
    select,
)
from mysterybox.platform.errors import InvalidTrack, NoEligibleCandidates


class _FixedRandom:
    """Stand-in for random.Random that always draws the same value in [0, 1)."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


def _cand(id_, real, gimmick=0, active=True):
    return WeightedCandidate(id=id_, is_active=active, real_weight=real, gimmick_weight=gimmick)


# ===================================================================
# Track resolution
# ===================================================================

class TestResolveTrack:

    def test_accepts_enum(self):
        assert resolve_track(Track.GIMMICK) is Track.GIMMICK

    @pytest.mark.parametrize("raw,expected", [("real", Track.REAL), (" Gimmick ", Track.GIMMICK)])
    def test_accepts_strings(self, raw, expected):
        assert resolve_track(raw) is expected

    @pytest.mark.parametrize("raw", ["", None, "fake", "REALITY"])
    def test_rejects_unknown(self, raw):
        with pytest.raises(InvalidTrack):
            resolve_track(raw)


# ===================================================================
# Weight clamping and interval construction
# ===================================================================

class TestWeights:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (Decimal("12.5"), 12.5),
            (-3, 0.0),
            (250, 100.0),
            (None, 0.0),
            ("abc", 0.0),
            (float("nan"), 0.0),
            (float("inf"), 0.0),
        ],
    )
    def test_clamp_weight(self, raw, expected):
        assert clamp_weight(raw) == expected

    def test_bounds_skip_inactive_and_are_contiguous(self):
        bounds, total = cumulative_bounds(
            [_cand(1, 10), _cand(2, 50, active=False), _cand(3, 30)], Track.REAL
        )
        assert bounds == [(1, 0.0, 10.0), (3, 10.0, 40.0)]
        assert total == 40.0

    def test_bounds_use_requested_track(self):
        bounds, total = cumulative_bounds([_cand(1, 10, 90), _cand(2, 90, 10)], Track.GIMMICK)
        assert bounds == [(1, 0.0, 90.0), (2, 90.0, 100.0)]
        assert total == 100.0


# ===================================================================
# select()
# ===================================================================

class TestSelect:

    def test_no_active_candidates_raises(self):
        with pytest.raises(NoEligibleCandidates):
            select([_cand(1, 50, active=False)], Track.REAL)

    def test_empty_list_raises(self):
        with pytest.raises(NoEligibleCandidates):
            select([], "real")

    def test_all_zero_weights_raise(self):
        with pytest.raises(NoEligibleCandidates):
            select([_cand(1, 0, 50), _cand(2, 0, 50)], Track.REAL)

    def test_draw_maps_to_half_open_interval(self):
        candidates = [_cand(1, 25), _cand(2, 25), _cand(3, 50)]
        assert select(candidates, Track.REAL, rng=_FixedRandom(0.0)) == 1
        assert select(candidates, Track.REAL, rng=_FixedRandom(0.2499)) == 1
        assert select(candidates, Track.REAL, rng=_FixedRandom(0.25)) == 2
        assert select(candidates, Track.REAL, rng=_FixedRandom(0.5)) == 3
        assert select(candidates, Track.REAL, rng=_FixedRandom(0.9999)) == 3

    def test_zero_weight_candidate_never_selected(self):
        candidates = [_cand(1, 0), _cand(2, 100), _cand(3, 0)]
        for value in (0.0, 0.3, 0.999999):
            assert select(candidates, Track.REAL, rng=_FixedRandom(value)) == 2

    def test_draw_at_total_returns_last_positive(self):
        candidates = [_cand(1, 40), _cand(2, 60), _cand(3, 0)]
        assert select(candidates, Track.REAL, rng=_FixedRandom(1.0)) == 2

    def test_weights_need_not_sum_to_100(self):
        candidates = [_cand(1, 1), _cand(2, 3)]
        assert select(candidates, Track.REAL, rng=_FixedRandom(0.24)) == 1
        assert select(candidates, Track.REAL, rng=_FixedRandom(0.26)) == 2

    def test_tracks_are_independent(self):
        candidates = [_cand(1, 100, 0), _cand(2, 0, 100)]
        assert select(candidates, Track.REAL) == 1
        assert select(candidates, Track.GIMMICK) == 2

    def test_distribution_roughly_follows_weights(self):
        rng = random.Random(1234)
        candidates = [_cand(1, 70), _cand(2, 20), _cand(3, 10)]
        counts = Counter(select(candidates, Track.REAL, rng=rng) for _ in range(20000))
        assert 0.67 < counts[1] / 20000 < 0.73
        assert 0.17 < counts[2] / 20000 < 0.23
        assert 0.08 < counts[3] / 20000 < 0.12

    def test_invalid_track_raises(self):
        with pytest.raises(InvalidTrack):
            select([_cand(1, 10)], "bogus")
