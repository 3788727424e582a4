"""Campaign and creator records: the inputs to matching and brief generation.

Records are loaded from storage (or seed JSON) and treated as immutable once
they are scored. Range checks happen here, at ingestion; the scoring engine
assumes well-formed values and does not re-validate them.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


TargetGender = Literal["male", "female", "all"]


# ---------------------------------------------------------------------------
# Nested value objects
# ---------------------------------------------------------------------------

class BudgetRange(BaseModel):
    """Follower band a campaign can afford."""
    model_config = ConfigDict(frozen=True)

    min_followers: int = Field(..., ge=0)
    max_followers: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> "BudgetRange":
        if self.min_followers > self.max_followers:
            raise ValueError(
                f"min_followers ({self.min_followers}) must be <= max_followers ({self.max_followers})"
            )
        return self


class GenderSplit(BaseModel):
    model_config = ConfigDict(frozen=True)

    female: float = Field(default=0.0, ge=0.0, le=1.0)
    male: float = Field(default=0.0, ge=0.0, le=1.0)


class Audience(BaseModel):
    """Who watches a creator."""
    model_config = ConfigDict(frozen=True)

    top_countries: list[str] = Field(
        default_factory=list, description="Country codes, most prevalent first"
    )
    gender_split: GenderSplit = Field(default_factory=GenderSplit)
    top_age_range: str = Field(default="", description="Dominant age bucket, e.g. '18-24'")


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class Campaign(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    brand: str
    objective: str = ""
    target_country: str
    target_gender: TargetGender = "all"
    target_age_range: str = ""
    niches: list[str] = Field(default_factory=list)
    preferred_hook_types: list[str] = Field(default_factory=list)
    min_avg_watch_time: float = Field(default=0.0, ge=0.0, description="Seconds")
    budget_range: BudgetRange
    tone: str = ""
    do_not_use_words: list[str] = Field(default_factory=list)


class Creator(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    country: str = ""
    niches: list[str] = Field(default_factory=list)
    followers: int = Field(..., ge=0)
    engagement_rate: float = Field(..., ge=0.0, le=1.0)
    avg_watch_time: float = Field(default=0.0, ge=0.0, description="Seconds")
    content_style: str = ""
    primary_hook_type: str = ""
    brand_safety_flags: list[str] = Field(
        default_factory=list, description="Empty list means clean"
    )
    audience: Audience = Field(default_factory=Audience)
    last_posts: list[Any] = Field(
        default_factory=list, description="Recent post summaries; not used by scoring"
    )
