"""SQLite storage for campaigns, creators and the AI brief cache.

Records are stored as their JSON document plus the columns used for lookup
and ordering. The brief cache is keyed by (campaign_id, creator_id,
prompt_hash) and written with an upsert.

Uses Python's built-in sqlite3, no extra dependencies. Any sqlite3 error is
re-raised as StorageFailure with the original chained.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

import config
from pipeline.errors import StorageFailure
from schemas.records import Campaign, Creator

logger = logging.getLogger(__name__)

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS campaigns (
        id              TEXT    PRIMARY KEY,
        brand           TEXT    NOT NULL,
        record_json     TEXT    NOT NULL,
        created_at      TEXT    NOT NULL,
        updated_at      TEXT    NOT NULL
    );

    CREATE TABLE IF NOT EXISTS creators (
        id              TEXT    PRIMARY KEY,
        username        TEXT    NOT NULL,
        followers       INTEGER NOT NULL DEFAULT 0,
        record_json     TEXT    NOT NULL,
        created_at      TEXT    NOT NULL,
        updated_at      TEXT    NOT NULL
    );

    CREATE TABLE IF NOT EXISTS ai_brief_cache (
        campaign_id     TEXT    NOT NULL,
        creator_id      TEXT    NOT NULL,
        prompt_hash     TEXT    NOT NULL,
        provider        TEXT    NOT NULL,
        model           TEXT    NOT NULL,
        response_json   TEXT    NOT NULL,
        created_at      TEXT    NOT NULL,
        updated_at      TEXT    NOT NULL,
        PRIMARY KEY (campaign_id, creator_id, prompt_hash)
    );
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Store:
    """Persistence for one SQLite database file."""

    def __init__(self, db_path: Path | str = config.DB_PATH):
        self.db_path = Path(db_path)
        # sqlite3 connections can't be shared across threads
        self._local = threading.local()

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    def _get_conn(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            self._local.conn = conn
        return conn

    @contextmanager
    def _guard(self, action: str) -> Iterator[sqlite3.Connection]:
        try:
            yield self._get_conn()
        except sqlite3.Error as exc:
            logger.error("Storage error during %s: %s", action, exc)
            raise StorageFailure(f"{action} failed: {exc}") from exc

    def close(self):
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None

    def init_db(self):
        """Create tables if they don't exist. Call once at startup."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._guard("init_db") as conn:
            conn.executescript(_SCHEMA)
            conn.commit()
        logger.info("SQLite database initialized: %s", self.db_path)

    # ------------------------------------------------------------------
    # Campaigns
    # ------------------------------------------------------------------

    def upsert_campaign(self, campaign: Campaign):
        now = _now()
        with self._guard("upsert_campaign") as conn:
            conn.execute(
                """
                INSERT INTO campaigns (id, brand, record_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    brand = excluded.brand,
                    record_json = excluded.record_json,
                    updated_at = excluded.updated_at
                """,
                (campaign.id, campaign.brand, campaign.model_dump_json(), now, now),
            )
            conn.commit()

    def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        with self._guard("get_campaign") as conn:
            row = conn.execute(
                "SELECT record_json FROM campaigns WHERE id=?", (campaign_id,)
            ).fetchone()
        if row is None:
            return None
        return Campaign.model_validate_json(row["record_json"])

    def list_campaigns(self) -> list[Campaign]:
        """All campaigns, newest first."""
        with self._guard("list_campaigns") as conn:
            rows = conn.execute(
                "SELECT record_json FROM campaigns ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [Campaign.model_validate_json(r["record_json"]) for r in rows]

    # ------------------------------------------------------------------
    # Creators
    # ------------------------------------------------------------------

    def upsert_creator(self, creator: Creator):
        now = _now()
        with self._guard("upsert_creator") as conn:
            conn.execute(
                """
                INSERT INTO creators (id, username, followers, record_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    username = excluded.username,
                    followers = excluded.followers,
                    record_json = excluded.record_json,
                    updated_at = excluded.updated_at
                """,
                (creator.id, creator.username, creator.followers, creator.model_dump_json(), now, now),
            )
            conn.commit()

    def get_creator(self, creator_id: str) -> Optional[Creator]:
        with self._guard("get_creator") as conn:
            row = conn.execute(
                "SELECT record_json FROM creators WHERE id=?", (creator_id,)
            ).fetchone()
        if row is None:
            return None
        return Creator.model_validate_json(row["record_json"])

    def list_creators(self) -> list[Creator]:
        """All creators, largest following first."""
        with self._guard("list_creators") as conn:
            rows = conn.execute(
                "SELECT record_json FROM creators ORDER BY followers DESC, rowid ASC"
            ).fetchall()
        return [Creator.model_validate_json(r["record_json"]) for r in rows]

    def iter_creators(self) -> list[Creator]:
        """Bulk scan of every creator; order is unspecified."""
        with self._guard("iter_creators") as conn:
            rows = conn.execute("SELECT record_json FROM creators").fetchall()
        return [Creator.model_validate_json(r["record_json"]) for r in rows]

    # ------------------------------------------------------------------
    # AI brief cache
    # ------------------------------------------------------------------

    def get_cached_brief(self, campaign_id: str, creator_id: str, prompt_hash: str) -> Optional[dict[str, Any]]:
        """Return the cache row as a dict (response_json decoded), or None."""
        with self._guard("get_cached_brief") as conn:
            row = conn.execute(
                """
                SELECT provider, model, response_json, created_at, updated_at
                FROM ai_brief_cache
                WHERE campaign_id=? AND creator_id=? AND prompt_hash=?
                """,
                (campaign_id, creator_id, prompt_hash),
            ).fetchone()
        if row is None:
            return None
        return {
            "provider": row["provider"],
            "model": row["model"],
            "response_json": json.loads(row["response_json"]),
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }

    def upsert_cached_brief(
        self,
        campaign_id: str,
        creator_id: str,
        prompt_hash: str,
        response_json: dict[str, Any],
        provider: str,
        model: str,
    ):
        now = _now()
        with self._guard("upsert_cached_brief") as conn:
            conn.execute(
                """
                INSERT INTO ai_brief_cache
                    (campaign_id, creator_id, prompt_hash, provider, model, response_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(campaign_id, creator_id, prompt_hash) DO UPDATE SET
                    provider = excluded.provider,
                    model = excluded.model,
                    response_json = excluded.response_json,
                    updated_at = excluded.updated_at
                """,
                (
                    campaign_id,
                    creator_id,
                    prompt_hash,
                    provider,
                    model,
                    json.dumps(response_json, ensure_ascii=False),
                    now,
                    now,
                ),
            )
            conn.commit()
