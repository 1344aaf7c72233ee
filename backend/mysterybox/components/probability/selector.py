"""Weighted random selection over (id, weight) candidates on a probability track."""

from __future__ import annotations

import enum
import math
import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Tuple

from ...platform.errors import InvalidTrack, NoEligibleCandidates

MAX_WEIGHT = 100.0

_rng = random.SystemRandom()


class Track(str, enum.Enum):
    REAL = "real"
    GIMMICK = "gimmick"


def resolve_track(value: "Track | str") -> Track:
    if isinstance(value, Track):
        return value
    try:
        return Track(str(value or "").strip().lower())
    except ValueError:
        raise InvalidTrack(track=value) from None


@dataclass(frozen=True)
class WeightedCandidate:
    id: int
    is_active: bool
    real_weight: Decimal | float
    gimmick_weight: Decimal | float

    def weight_for(self, track: Track) -> float:
        raw = self.real_weight if track is Track.REAL else self.gimmick_weight
        return clamp_weight(raw)


def clamp_weight(raw) -> float:
    try:
        value = float(raw if raw is not None else 0)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value <= 0:
        return 0.0
    return min(value, MAX_WEIGHT)


def cumulative_bounds(
    candidates: Iterable[WeightedCandidate], track: Track
) -> Tuple[List[Tuple[int, float, float]], float]:
    """Half-open [lower, upper) interval per active candidate, plus the total weight."""
    bounds: List[Tuple[int, float, float]] = []
    total = 0.0
    for candidate in candidates:
        if not candidate.is_active:
            continue
        weight = candidate.weight_for(track)
        bounds.append((candidate.id, total, total + weight))
        total += weight
    return bounds, total


def select(
    candidates: Iterable[WeightedCandidate],
    track: "Track | str",
    rng: random.Random | None = None,
) -> int:
    """Draw one candidate id with probability proportional to its weight on ``track``.

    Weights need not sum to 100 here. Zero-weight candidates own an empty
    interval and can never be drawn.
    """
    track = resolve_track(track)
    bounds, total = cumulative_bounds(candidates, track)
    if not bounds:
        raise NoEligibleCandidates("No active candidates to draw from", track=track.value)
    if total <= 0:
        raise NoEligibleCandidates("All active candidates have zero weight", track=track.value)

    draw = (rng or _rng).random() * total
    last_positive = None
    for candidate_id, lower, upper in bounds:
        if upper > lower:
            last_positive = candidate_id
            if lower <= draw < upper:
                return candidate_id
    # Rounding can put draw at exactly total.
    return last_positive
