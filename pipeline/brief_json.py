"""Parse, validate and repair provider output into a BriefOutput.

Each attempt moves through: generate -> parse -> validate. A failed parse or
schema check feeds the raw output and the error list into a repair prompt
for the next attempt. The budget is fixed (first attempt + N repairs); when
it runs out the whole operation fails with GenerationExhausted.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import ValidationError

import config
from pipeline.errors import GenerationExhausted, MalformedProviderOutput
from pipeline.llm import GenerationProvider
from pipeline.prompt import build_repair_prompt
from schemas.brief import BriefOutput

logger = logging.getLogger(__name__)

MAX_REPAIR_ATTEMPTS = config.BRIEF_MAX_REPAIR_ATTEMPTS


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    PARSE_FAILED = "parse_failed"
    SCHEMA_INVALID = "schema_invalid"


@dataclass
class BriefAttempt:
    """Result of checking one raw provider response."""
    outcome: AttemptOutcome
    brief: Optional[BriefOutput] = None
    errors: list[str] = field(default_factory=list)


def _strip_fences(raw: str) -> str:
    """Drop a surrounding ```json fence if the model added one."""
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```\w*\n?", "", cleaned)
        cleaned = re.sub(r"\n?```\s*$", "", cleaned)
    return cleaned.strip()


def format_validation_errors(exc: ValidationError) -> list[str]:
    """One 'path: message' line per issue, e.g. 'contentIdeas: List should have...'."""
    lines = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"]) or "(root)"
        lines.append(f"{path}: {err['msg']}")
    return lines


def check_brief(raw: str) -> BriefAttempt:
    """Parse and validate one raw response without raising."""
    try:
        data: Any = json.loads(_strip_fences(raw))
    except json.JSONDecodeError as exc:
        return BriefAttempt(
            outcome=AttemptOutcome.PARSE_FAILED,
            errors=[f"Response is not valid JSON: {exc}"],
        )

    try:
        brief = BriefOutput.model_validate(data)
    except ValidationError as exc:
        return BriefAttempt(
            outcome=AttemptOutcome.SCHEMA_INVALID,
            errors=format_validation_errors(exc),
        )

    return BriefAttempt(outcome=AttemptOutcome.SUCCESS, brief=brief)


def parse_brief(raw: str) -> BriefOutput:
    """Single-shot parse; raises MalformedProviderOutput on any problem."""
    result = check_brief(raw)
    if result.brief is None:
        raise MalformedProviderOutput(result.errors, raw=raw)
    return result.brief


def parse_brief_with_repair(
    prompt: str,
    provider: GenerationProvider,
    max_repairs: int = MAX_REPAIR_ATTEMPTS,
) -> BriefOutput:
    """Generate a validated BriefOutput, repairing invalid responses.

    Makes at most max_repairs + 1 provider calls and returns as soon as one
    response validates. Provider transport errors (LLMError) propagate
    unchanged; they are not treated as malformed output.
    """
    total_attempts = max_repairs + 1
    last_raw = ""
    last_errors: list[str] = []

    for attempt in range(total_attempts):
        if attempt == 0:
            active_prompt = prompt
        else:
            active_prompt = build_repair_prompt(prompt, last_raw, last_errors)

        last_raw = provider.generate(active_prompt)
        result = check_brief(last_raw)

        if result.outcome is AttemptOutcome.SUCCESS:
            logger.info(
                "Brief attempt %d/%d via %s: valid",
                attempt + 1, total_attempts, provider.name,
            )
            return result.brief

        last_errors = result.errors
        logger.warning(
            "Brief attempt %d/%d via %s: %s (%d error%s)",
            attempt + 1,
            total_attempts,
            provider.name,
            result.outcome.value,
            len(last_errors),
            "" if len(last_errors) == 1 else "s",
        )
        for err in last_errors:
            logger.debug("  %s", err)

    last_error = "\n".join(last_errors)
    logger.error("Brief generation exhausted after %d attempts: %s", total_attempts, last_error)
    raise GenerationExhausted(total_attempts, last_error)
