"""Service layer: ties storage, scoring and brief generation together.

Both the CLI and the HTTP server go through these two services. Providers,
stores and settings are passed in; nothing here reads configuration ad hoc.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import config
from pipeline.brief_json import parse_brief_with_repair
from pipeline.cache import BriefCache, compute_prompt_hash
from pipeline.errors import NotFound
from pipeline.llm import GenerationProvider
from pipeline.matching import score_campaign_against_roster
from pipeline.prompt import build_brief_prompt
from pipeline.storage import Store
from schemas.brief import BriefOutput
from schemas.matching import MatchResult
from schemas.records import Campaign, Creator

logger = logging.getLogger(__name__)


def load_campaign(store: Store, campaign_id: str) -> Campaign:
    campaign = store.get_campaign(campaign_id)
    if campaign is None:
        raise NotFound("campaign", campaign_id)
    return campaign


def load_creator(store: Store, creator_id: str) -> Creator:
    creator = store.get_creator(creator_id)
    if creator is None:
        raise NotFound("creator", creator_id)
    return creator


class MatchService:
    """Ranks the stored creator roster against one campaign."""

    def __init__(self, store: Store):
        self.store = store

    def get_top_creators_for_campaign(
        self,
        campaign_id: str,
        limit: int = config.DEFAULT_MATCH_LIMIT,
    ) -> tuple[Campaign, list[MatchResult]]:
        campaign = load_campaign(self.store, campaign_id)
        creators = self.store.iter_creators()
        results = score_campaign_against_roster(campaign, creators, limit=limit, explain=True)
        return campaign, results


class BriefService:
    """Generates (or serves from cache) the outreach brief for one pairing."""

    def __init__(
        self,
        store: Store,
        provider: GenerationProvider,
        max_repairs: int = config.BRIEF_MAX_REPAIR_ATTEMPTS,
        cache: Optional[BriefCache] = None,
    ):
        self.store = store
        self.provider = provider
        self.max_repairs = max_repairs
        self.cache = cache or BriefCache(store)

    def generate_brief(
        self,
        campaign_id: str,
        creator_id: str,
        force_refresh: bool = False,
    ) -> tuple[BriefOutput, bool]:
        """Return (brief, was_cached).

        Raises NotFound for unknown ids and GenerationExhausted when the
        repair budget runs out. With force_refresh the cache is not read,
        but the fresh result still overwrites the entry.
        """
        campaign = load_campaign(self.store, campaign_id)
        creator = load_creator(self.store, creator_id)

        prompt = build_brief_prompt(campaign, creator)
        prompt_hash = compute_prompt_hash(prompt)

        if not force_refresh:
            cached = self.cache.get(campaign_id, creator_id, prompt_hash)
            if cached is not None:
                return cached, True

        with self.cache.key_lock(campaign_id, creator_id, prompt_hash):
            # Another thread may have filled the entry while we waited.
            if not force_refresh:
                cached = self.cache.get(campaign_id, creator_id, prompt_hash)
                if cached is not None:
                    return cached, True

            start = time.time()
            brief = parse_brief_with_repair(prompt, self.provider, max_repairs=self.max_repairs)
            logger.info(
                "Generated brief for %s/%s via %s/%s in %.1fs",
                campaign_id, creator_id, self.provider.name, self.provider.model,
                time.time() - start,
            )

            self.cache.put(
                campaign_id,
                creator_id,
                prompt_hash,
                brief,
                provider_name=self.provider.name,
                model_name=self.provider.model,
            )

        return brief, False
