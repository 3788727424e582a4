"""Offline generation provider: deterministic, schema-valid JSON, no network.

Used when OPENAI_API_KEY is not set. It reads campaign/creator fields back out
of the prompt text, so the brief is contextually relevant without any model
call and identical prompts always produce identical output.
"""

from __future__ import annotations

import json
import re

from pipeline.llm import GenerationProvider

MOCK_PROVIDER_NAME = "mock"
MOCK_MODEL_NAME = "mock-v1"


def extract_from_prompt(prompt: str, key: str) -> str:
    """First string value for a JSON key in the prompt, or the key itself."""
    match = re.search(rf'"{re.escape(key)}":\s*"((?:[^"\\]|\\.)*)"', prompt)
    if not match:
        return key
    try:
        return json.loads(f'"{match.group(1)}"')
    except json.JSONDecodeError:
        return match.group(1)


def extract_list_from_prompt(prompt: str, key: str, default: str) -> str:
    """First string list for a JSON key, joined with ' & '."""
    match = re.search(rf'"{re.escape(key)}":\s*\[([^\]]+)\]', prompt)
    if not match:
        return default
    items = [item.strip().strip('"') for item in match.group(1).split(",")]
    items = [item for item in items if item]
    return " & ".join(items) or default


class MockProvider(GenerationProvider):
    name = MOCK_PROVIDER_NAME

    def __init__(self, model: str = MOCK_MODEL_NAME):
        self.model = model

    def generate(self, prompt: str) -> str:
        brand = extract_from_prompt(prompt, "brand")
        username = extract_from_prompt(prompt, "username")
        objective = extract_from_prompt(prompt, "objective")
        content_style = extract_from_prompt(prompt, "contentStyle")
        hook_type = extract_from_prompt(prompt, "primaryHookType")
        niches = extract_list_from_prompt(prompt, "niches", "your niche")
        brand_tag = re.sub(r"\s+", "", brand)

        brief = {
            "outreachMessage": (
                f"Hey @{username}! We've been following your {niches} content and love your "
                f"{content_style} style. It's exactly the energy {brand} is looking for. "
                f"We'd love to collaborate on our upcoming {objective} campaign and think your "
                f"audience would genuinely connect with what we're building. Let's chat!"
            ),
            "contentIdeas": [
                f'{hook_type}-style short: "What I actually use from {brand} every day", raw and authentic',
                f"{content_style} integration: day-in-the-life showing {brand} fitting naturally into your routine",
                f"Before/after transformation using {brand}'s product, narrated in your voice",
                f'"Testing {brand} for 7 days" mini-series documenting the honest experience',
                f"Collab teaser: behind-the-scenes of creating content with the {brand} team",
            ],
            "hookSuggestions": [
                f"POV: you finally found a {niches} brand that actually gets it… 👀",
                f"I tested {brand} for a week so you don't have to. Here's the truth",
                f"Wait until you see what {brand} just dropped 🔥 #{brand_tag}",
            ],
        }

        # Raw JSON string, exactly as a real model would return it
        return json.dumps(brief, ensure_ascii=False)
