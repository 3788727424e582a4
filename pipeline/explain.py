"""Human-readable explanations for a score breakdown."""

from __future__ import annotations

from typing import Sequence

from pipeline.weights import DIMENSION_FIELDS, EXPLAIN_BANDS, EXPLAIN_ORDER, WEIGHTS, round2
from schemas.matching import ScoreBreakdown


def tier(score: float, bands: Sequence[tuple[float, str]], fallback: str) -> str:
    """Return the label of the first band whose threshold the score meets.

    Bands must be ordered from highest threshold to lowest.
    """
    for threshold, label in bands:
        if score >= threshold:
            return label
    return fallback


def explain_score(breakdown: ScoreBreakdown) -> list[str]:
    """One sentence per scored dimension."""
    reasons = []
    for dimension in EXPLAIN_ORDER:
        bands, fallback = EXPLAIN_BANDS[dimension]
        score = getattr(breakdown, DIMENSION_FIELDS[dimension])
        reasons.append(tier(score, bands, fallback))
    return reasons


def weighted_contributions(breakdown: ScoreBreakdown) -> dict[str, float]:
    """Points each dimension adds to the total (penalties negative).

    Display only; scoring does not read this.
    """
    contributions = {
        dimension: round2(getattr(breakdown, field) * WEIGHTS[dimension])
        for dimension, field in DIMENSION_FIELDS.items()
    }
    contributions["penalties"] = 0.0 - round2(breakdown.penalties)
    return contributions
