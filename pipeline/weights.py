"""Weight/threshold table for creator matching.

One versioned, read-only table. The scoring engine and the explainability
bands both read the cutoffs below, so a change here moves scores and their
explanations together.
"""

from __future__ import annotations

import math
from types import MappingProxyType

WEIGHTS_VERSION = "2024.1"

# Version of the brief output schema. Part of the cache fingerprint: bumping
# it makes every previously cached brief unreachable.
SCHEMA_VERSION = "2.0.0"

# ---------------------------------------------------------------------------
# Weights (positive dimensions, must sum to 1.0)
# ---------------------------------------------------------------------------
WEIGHTS = MappingProxyType({
    "niche": 0.25,
    "country": 0.20,
    "engagement": 0.12,
    "watch_time": 0.12,
    "follower_fit": 0.12,
    "hook_alignment": 0.10,
    "brand_safety": 0.05,
    "gender": 0.02,
    "age": 0.02,
})

if abs(sum(WEIGHTS.values()) - 1.0) > 1e-9:
    raise ValueError(f"WEIGHTS must sum to 1.0, got {sum(WEIGHTS.values())}")

# Breakdown field for each weighted dimension, in display order.
DIMENSION_FIELDS = MappingProxyType({
    "niche": "niche_score",
    "country": "country_score",
    "engagement": "engagement_score",
    "watch_time": "watch_time_score",
    "follower_fit": "follower_fit_score",
    "hook_alignment": "hook_alignment_score",
    "brand_safety": "brand_safety_score",
    "gender": "gender_score",
    "age": "age_score",
})

# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------
THRESHOLDS = MappingProxyType({
    "min_engagement_rate": 0.02,  # at or below scores 0
    "max_engagement_rate": 0.15,  # at or above scores 100
    "penalty_per_flag": 5.0,      # absolute points per brand safety flag
})

FULL_SCORE = 100.0
NO_SCORE = 0.0

# Country: target at rank 0 of the audience list vs. anywhere else in it.
COUNTRY_PRIMARY_SCORE = 100.0
COUNTRY_SECONDARY_SCORE = 60.0

# Gender: (min audience fraction, score), highest first.
GENDER_TIERS = (
    (0.7, 100.0),
    (0.5, 60.0),
    (0.4, 30.0),
)
GENDER_PARTIAL_SCORE = GENDER_TIERS[1][1]

# Follower fit outside the budget band.
FOLLOWER_UNDER_BAND_FACTOR = 80.0  # followers/min * factor, so never 100 below min
FOLLOWER_OVER_BAND_SLOPE = 50.0    # points lost per 100% over max

# Explanation cutoffs that are not scoring cutoffs.
NICHE_STRONG_SCORE = 80.0
ENGAGEMENT_HIGH_SCORE = 70.0
ENGAGEMENT_MODERATE_SCORE = 30.0
NEAR_MISS_SCORE = 60.0
ANY_ALIGNMENT_SCORE = 1.0

# ---------------------------------------------------------------------------
# Explanation bands: dimension -> ((threshold, label), ...), fallback
# ---------------------------------------------------------------------------
EXPLAIN_BANDS = MappingProxyType({
    "niche": (
        (
            (NICHE_STRONG_SCORE, "Strong niche alignment with campaign categories"),
            (ANY_ALIGNMENT_SCORE, "Partial niche overlap with campaign categories"),
        ),
        "No niche overlap with campaign categories",
    ),
    "country": (
        (
            (COUNTRY_PRIMARY_SCORE, "Primary audience country matches campaign target"),
            (ANY_ALIGNMENT_SCORE, "Target country appears in secondary audience countries"),
        ),
        "Audience country does not match campaign target",
    ),
    "engagement": (
        (
            (ENGAGEMENT_HIGH_SCORE, "High engagement rate"),
            (ENGAGEMENT_MODERATE_SCORE, "Moderate engagement rate"),
        ),
        "Below-average engagement rate",
    ),
    "watch_time": (
        (
            (FULL_SCORE, "Watch time meets or exceeds campaign minimum"),
            (NEAR_MISS_SCORE, "Watch time slightly below campaign minimum"),
        ),
        "Watch time significantly below campaign minimum",
    ),
    "follower_fit": (
        (
            (FULL_SCORE, "Follower count within campaign budget range"),
            (NEAR_MISS_SCORE, "Follower count close to campaign budget range"),
        ),
        "Follower count outside campaign budget range",
    ),
    "hook_alignment": (
        ((FULL_SCORE, "Hook style matches campaign preferred hooks"),),
        "Hook style does not match preferred campaign hooks",
    ),
    "gender": (
        (
            (GENDER_TIERS[0][1], "Audience gender aligns with campaign target"),
            (GENDER_PARTIAL_SCORE, "Audience gender partially aligns with campaign target"),
        ),
        "Audience gender does not align with campaign target",
    ),
    "age": (
        ((FULL_SCORE, "Audience age range matches campaign target"),),
        "Audience age range differs from campaign target",
    ),
    "brand_safety": (
        ((FULL_SCORE, "No brand safety concerns"),),
        "Brand safety flags detected, penalty applied",
    ),
})

# Order reasons are reported in.
EXPLAIN_ORDER = (
    "niche",
    "country",
    "engagement",
    "watch_time",
    "follower_fit",
    "hook_alignment",
    "gender",
    "age",
    "brand_safety",
)


def round2(value: float) -> float:
    """Round half up to 2 decimal places, as reported scores are."""
    return math.floor(value * 100 + 0.5) / 100
