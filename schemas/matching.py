"""Matching output schemas: per-dimension score breakdown and ranked result."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.records import Creator


class ScoreBreakdown(BaseModel):
    """Nine [0,100] sub-scores plus absolute penalty points."""
    model_config = ConfigDict(frozen=True)

    niche_score: float = Field(..., ge=0, le=100)
    country_score: float = Field(..., ge=0, le=100)
    engagement_score: float = Field(..., ge=0, le=100)
    watch_time_score: float = Field(..., ge=0, le=100)
    follower_fit_score: float = Field(..., ge=0, le=100)
    hook_alignment_score: float = Field(..., ge=0, le=100)
    brand_safety_score: float = Field(..., ge=0, le=100)
    gender_score: float = Field(..., ge=0, le=100)
    age_score: float = Field(..., ge=0, le=100)
    penalties: float = Field(default=0.0, ge=0, description="Points subtracted after weighting")


class MatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    creator: Creator
    total_score: float = Field(..., ge=0, le=100)
    breakdown: ScoreBreakdown
    reasons: Optional[list[str]] = None
