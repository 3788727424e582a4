"""Idempotent seed of campaign and creator records from JSON files."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import config
from pipeline.storage import Store
from schemas.records import Campaign, Creator

logger = logging.getLogger(__name__)


def _load_json_list(path: Path) -> list[dict]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array")
    return data


def seed_store(store: Store, data_dir: Path = config.DATA_DIR) -> dict[str, int]:
    """Upsert every record in campaigns.json and creators.json.

    Records are validated on the way in, so malformed seed data fails here
    rather than at scoring time. Returns counts per record type.
    """
    campaigns = [Campaign.model_validate(c) for c in _load_json_list(data_dir / "campaigns.json")]
    creators = [Creator.model_validate(c) for c in _load_json_list(data_dir / "creators.json")]

    store.init_db()

    logger.info("Seeding %d campaigns...", len(campaigns))
    for campaign in campaigns:
        store.upsert_campaign(campaign)

    logger.info("Seeding %d creators...", len(creators))
    for creator in creators:
        store.upsert_creator(creator)

    logger.info("Seed complete: %d campaigns, %d creators", len(campaigns), len(creators))
    return {"campaigns": len(campaigns), "creators": len(creators)}
