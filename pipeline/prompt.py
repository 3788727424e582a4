"""Prompt construction for outreach brief generation.

The prompt text is the input to the cache fingerprint, so it must be
byte-stable for identical campaign/creator records: no timestamps, no
randomness, fixed key order.
"""

from __future__ import annotations

import json

from schemas.brief import CONTENT_IDEA_COUNT, HOOK_SUGGESTION_COUNT
from schemas.records import Campaign, Creator

SCHEMA_EXAMPLE = json.dumps(
    {
        "outreachMessage": "Hi [Creator Name], we love your content...",
        "contentIdeas": [
            "POV-style unboxing for maximum hook impact",
            "Day-in-the-life integration with the product",
            "Transformation before/after using the brand",
            "Trending audio remix featuring the product",
            "Behind-the-scenes collab with the brand team",
        ],
        "hookSuggestions": [
            "POV: You just discovered the only product you'll ever need...",
            "I tried [brand] for 7 days, here's what happened",
            "Wait until you see what [brand] sent me...",
        ],
    },
    indent=2,
    ensure_ascii=False,
)


def _num(value: float) -> int | float:
    """Whole numbers render without a trailing .0."""
    return int(value) if float(value).is_integer() else value


def _dump(obj: dict) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


def campaign_context(campaign: Campaign) -> dict:
    """The subset of a campaign the model needs."""
    budget = campaign.budget_range
    return {
        "brand": campaign.brand,
        "objective": campaign.objective,
        "niches": list(campaign.niches),
        "targetCountry": campaign.target_country,
        "targetGender": campaign.target_gender,
        "targetAgeRange": campaign.target_age_range,
        "preferredHookTypes": list(campaign.preferred_hook_types),
        "minAvgWatchTime": _num(campaign.min_avg_watch_time),
        "followerRange": f"{budget.min_followers:,}–{budget.max_followers:,}",
        "tone": campaign.tone,
        "doNotUseWords": list(campaign.do_not_use_words),
    }


def creator_context(creator: Creator) -> dict:
    """The subset of a creator the model needs."""
    audience = creator.audience
    return {
        "username": creator.username,
        "niches": list(creator.niches),
        "country": creator.country,
        "followers": creator.followers,
        "engagementRate": f"{creator.engagement_rate * 100:.1f}%",
        "avgWatchTime": f"{_num(creator.avg_watch_time)}s",
        "contentStyle": creator.content_style,
        "primaryHookType": creator.primary_hook_type,
        "audienceTopCountries": list(audience.top_countries),
        "audienceTopAgeRange": audience.top_age_range,
        "audienceGenderSplit": {
            "female": _num(audience.gender_split.female),
            "male": _num(audience.gender_split.male),
        },
    }


def build_brief_prompt(campaign: Campaign, creator: Creator) -> str:
    """Build the strict-JSON brief prompt for one campaign/creator pair."""
    avoid = ", ".join(campaign.do_not_use_words) or "none"

    return f"""You are a campaign brief writer for an influencer marketing platform.

Generate a campaign brief tailored to the following campaign and creator.

CAMPAIGN:
{_dump(campaign_context(campaign))}

CREATOR:
{_dump(creator_context(creator))}

INSTRUCTIONS:
- Respond with STRICT JSON only. No markdown. No explanations. No extra text.
- Your entire response must be a single valid JSON object.
- The JSON must exactly match this schema (no extra keys allowed):
{SCHEMA_EXAMPLE}

SCHEMA REQUIREMENTS:
- outreachMessage: string, a personalized opening message for the creator, referencing their username and content style
- contentIdeas: array of exactly {CONTENT_IDEA_COUNT} strings, specific and actionable content ideas for this creator + campaign combo
- hookSuggestions: array of exactly {HOOK_SUGGESTION_COUNT} strings, scroll-stopping hook lines matching the creator's primaryHookType style

TONE: {campaign.tone}
AVOID WORDS: {avoid}

OUTPUT ONLY THE JSON OBJECT."""


def build_repair_prompt(
    original_prompt: str,
    previous_output: str,
    validation_errors: list[str] | str,
) -> str:
    """Re-ask with the failed output and what was wrong with it."""
    if isinstance(validation_errors, str):
        errors_text = validation_errors
    else:
        errors_text = "\n".join(f"- {e}" for e in validation_errors)

    return f"""{original_prompt}

---
YOUR PREVIOUS RESPONSE WAS INVALID. Here is what was wrong:
{errors_text}

PREVIOUS OUTPUT:
{previous_output}

Fix the issues above and return ONLY the corrected JSON object. No explanations."""
