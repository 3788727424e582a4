"""Creator matching: scores creators against a campaign.

Pure functions only: no storage access, no side effects. Every sub-score is
clamped to [0, 100] before weighting; brand safety penalties are subtracted
from the weighted total and the result is clamped again.

Inputs are assumed valid (see schemas.records); a campaign with
min_followers > max_followers or a negative follower count is not checked
here.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from pipeline.explain import explain_score
from pipeline.weights import (
    COUNTRY_PRIMARY_SCORE,
    COUNTRY_SECONDARY_SCORE,
    DIMENSION_FIELDS,
    FOLLOWER_OVER_BAND_SLOPE,
    FOLLOWER_UNDER_BAND_FACTOR,
    FULL_SCORE,
    GENDER_TIERS,
    NO_SCORE,
    THRESHOLDS,
    WEIGHTS,
    round2,
)
from schemas.matching import MatchResult, ScoreBreakdown
from schemas.records import Audience, BudgetRange, Campaign, Creator

logger = logging.getLogger(__name__)


def _clamp(value: float, low: float = NO_SCORE, high: float = FULL_SCORE) -> float:
    return max(low, min(high, value))


# ---------------------------------------------------------------------------
# Main scoring function
# ---------------------------------------------------------------------------

def score_creator(campaign: Campaign, creator: Creator) -> MatchResult:
    """Score a single creator against a campaign."""
    audience = creator.audience

    breakdown = ScoreBreakdown(
        niche_score=_clamp(calc_niche_score(campaign, creator)),
        country_score=_clamp(calc_country_score(campaign, audience)),
        engagement_score=_clamp(calc_engagement_score(creator)),
        watch_time_score=_clamp(calc_watch_time_score(campaign, creator)),
        follower_fit_score=_clamp(calc_follower_fit_score(campaign.budget_range, creator)),
        hook_alignment_score=_clamp(calc_hook_alignment_score(campaign, creator)),
        brand_safety_score=_clamp(calc_brand_safety_score(creator)),
        gender_score=_clamp(calc_gender_score(campaign, audience)),
        age_score=_clamp(calc_age_score(campaign, audience)),
        penalties=calc_penalties(creator),
    )

    return MatchResult(
        creator=creator,
        total_score=total_score(breakdown),
        breakdown=breakdown,
    )


def total_score(breakdown: ScoreBreakdown) -> float:
    """Weighted sum of the sub-scores minus penalties, clamped and rounded."""
    raw = sum(
        getattr(breakdown, field) * WEIGHTS[dimension]
        for dimension, field in DIMENSION_FIELDS.items()
    )
    return round2(_clamp(raw - breakdown.penalties))


def score_campaign_against_roster(
    campaign: Campaign,
    creators: Iterable[Creator],
    limit: Optional[int] = None,
    explain: bool = True,
) -> list[MatchResult]:
    """Rank creators for a campaign, best first.

    Ties keep their input order. With explain=True each result carries one
    reason per dimension.
    """
    results = []
    for creator in creators:
        result = score_creator(campaign, creator)
        if explain:
            result = result.model_copy(update={"reasons": explain_score(result.breakdown)})
        results.append(result)

    ranked = sorted(results, key=lambda r: -r.total_score)
    if limit is not None:
        ranked = ranked[:limit]

    logger.info(
        "Scored %d creators for campaign %s, returning %d",
        len(results), campaign.id, len(ranked),
    )
    return ranked


# ---------------------------------------------------------------------------
# Individual signal functions
# ---------------------------------------------------------------------------

def calc_niche_score(campaign: Campaign, creator: Creator) -> float:
    """Share of campaign niches the creator covers (case-insensitive)."""
    if not campaign.niches:
        return FULL_SCORE
    creator_niches = {n.lower() for n in creator.niches}
    matches = sum(1 for n in campaign.niches if n.lower() in creator_niches)
    return matches / len(campaign.niches) * 100


def calc_country_score(campaign: Campaign, audience: Audience) -> float:
    """Target country at the top of the audience list, elsewhere in it, or absent."""
    target = campaign.target_country.upper()
    tops = [c.upper() for c in audience.top_countries]
    if tops and tops[0] == target:
        return COUNTRY_PRIMARY_SCORE
    if target in tops:
        return COUNTRY_SECONDARY_SCORE
    return NO_SCORE


def calc_engagement_score(creator: Creator) -> float:
    """Engagement rate interpolated between the configured floor and ceiling."""
    floor = THRESHOLDS["min_engagement_rate"]
    ceiling = THRESHOLDS["max_engagement_rate"]
    rate = creator.engagement_rate
    if rate <= floor:
        return NO_SCORE
    if rate >= ceiling:
        return FULL_SCORE
    return (rate - floor) / (ceiling - floor) * 100


def calc_watch_time_score(campaign: Campaign, creator: Creator) -> float:
    """Meeting the campaign minimum is a full score; below it scales linearly."""
    minimum = campaign.min_avg_watch_time
    if minimum <= 0:
        return FULL_SCORE
    if creator.avg_watch_time >= minimum:
        return FULL_SCORE
    return creator.avg_watch_time / minimum * 100


def calc_follower_fit_score(budget_range: BudgetRange, creator: Creator) -> float:
    """Follower count against the campaign's budget band.

    Below the band the score ramps as followers/min * 80, so it stays under
    100 right up to the floor. Above the band it loses 50 points per 100%
    overshoot.
    """
    low, high = budget_range.min_followers, budget_range.max_followers
    followers = creator.followers
    if low <= followers <= high:
        return FULL_SCORE
    if followers < low:
        return min(FULL_SCORE, followers / low * FOLLOWER_UNDER_BAND_FACTOR)
    if high <= 0:
        return NO_SCORE
    return max(NO_SCORE, FULL_SCORE - (followers - high) / high * FOLLOWER_OVER_BAND_SLOPE)


def calc_hook_alignment_score(campaign: Campaign, creator: Creator) -> float:
    if not campaign.preferred_hook_types:
        return FULL_SCORE
    hook = creator.primary_hook_type.lower()
    if any(h.lower() == hook for h in campaign.preferred_hook_types):
        return FULL_SCORE
    return NO_SCORE


def calc_brand_safety_score(creator: Creator) -> float:
    return NO_SCORE if creator.brand_safety_flags else FULL_SCORE


def calc_gender_score(campaign: Campaign, audience: Audience) -> float:
    """Share of the audience in the targeted gender, bucketed into tiers."""
    if campaign.target_gender == "all":
        return FULL_SCORE
    fraction = getattr(audience.gender_split, campaign.target_gender, 0.0)
    for min_fraction, score in GENDER_TIERS:
        if fraction >= min_fraction:
            return score
    return NO_SCORE


def calc_age_score(campaign: Campaign, audience: Audience) -> float:
    return FULL_SCORE if audience.top_age_range == campaign.target_age_range else NO_SCORE


def calc_penalties(creator: Creator) -> float:
    """Absolute points deducted per brand safety flag."""
    return len(creator.brand_safety_flags) * THRESHOLDS["penalty_per_flag"]
