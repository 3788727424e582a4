"""Creator Match configuration: provider credentials, models, paths, limits."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
ROOT_DIR = Path(__file__).parent
DATA_DIR = ROOT_DIR / os.getenv("DATA_DIR", "data")
DB_PATH = Path(os.getenv("DB_PATH", str(ROOT_DIR / "creator_match.db")))

# ---------------------------------------------------------------------------
# Generation provider
#
# No OPENAI_API_KEY => the deterministic offline provider is used. Callers
# rely on this: an unset key means no network traffic at all.
# ---------------------------------------------------------------------------
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.4"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "2000"))
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

# Repairs beyond the first attempt (2 => 3 provider calls at most).
BRIEF_MAX_REPAIR_ATTEMPTS = int(os.getenv("BRIEF_MAX_REPAIR_ATTEMPTS", "2"))

# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------
DEFAULT_MATCH_LIMIT = int(os.getenv("DEFAULT_MATCH_LIMIT", "20"))
MAX_MATCH_LIMIT = 100

# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


@dataclass(frozen=True)
class Settings:
    """Snapshot of the values the pipeline needs, passed explicitly."""

    openai_api_key: str
    openai_model: str
    temperature: float
    max_tokens: int
    timeout_seconds: float
    max_repair_attempts: int
    db_path: Path
    data_dir: Path

    @property
    def live_provider(self) -> bool:
        return bool(self.openai_api_key)


def get_settings() -> Settings:
    """Return the current configuration as an immutable Settings object."""
    return Settings(
        openai_api_key=OPENAI_API_KEY,
        openai_model=OPENAI_MODEL,
        temperature=LLM_TEMPERATURE,
        max_tokens=LLM_MAX_TOKENS,
        timeout_seconds=LLM_TIMEOUT_SECONDS,
        max_repair_attempts=BRIEF_MAX_REPAIR_ATTEMPTS,
        db_path=DB_PATH,
        data_dir=DATA_DIR,
    )
