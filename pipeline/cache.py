"""Content-addressed cache for generated briefs.

The fingerprint is sha256(schema_version + prompt). The prompt already
encodes every campaign/creator field the model sees, and the schema version
goes in first, so bumping SCHEMA_VERSION orphans every earlier entry without
a migration.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from typing import Optional

from pipeline.storage import Store
from pipeline.weights import SCHEMA_VERSION
from schemas.brief import BriefOutput

logger = logging.getLogger(__name__)


def compute_prompt_hash(prompt: str, schema_version: str = SCHEMA_VERSION) -> str:
    digest = hashlib.sha256()
    digest.update(schema_version.encode("utf-8"))
    digest.update(prompt.encode("utf-8"))
    return digest.hexdigest()


class BriefCache:
    """Read/write contract over the store's ai_brief_cache table."""

    def __init__(self, store: Store):
        self.store = store
        self._locks: dict[tuple[str, str, str], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def get(self, campaign_id: str, creator_id: str, prompt_hash: str) -> Optional[BriefOutput]:
        row = self.store.get_cached_brief(campaign_id, creator_id, prompt_hash)
        if row is None:
            logger.info("Brief cache miss: %s/%s %s", campaign_id, creator_id, prompt_hash[:12])
            return None
        logger.info(
            "Brief cache hit: %s/%s %s (%s/%s)",
            campaign_id, creator_id, prompt_hash[:12], row["provider"], row["model"],
        )
        return BriefOutput.model_validate(row["response_json"])

    def put(
        self,
        campaign_id: str,
        creator_id: str,
        prompt_hash: str,
        brief: BriefOutput,
        provider_name: str,
        model_name: str,
    ):
        """Store a validated brief; overwrites an existing entry for the key."""
        self.store.upsert_cached_brief(
            campaign_id,
            creator_id,
            prompt_hash,
            brief.to_wire(),
            provider=provider_name,
            model=model_name,
        )

    def key_lock(self, campaign_id: str, creator_id: str, prompt_hash: str) -> threading.Lock:
        """Per-key lock so one process generates a given brief at most once at a time."""
        key = (campaign_id, creator_id, prompt_hash)
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock
