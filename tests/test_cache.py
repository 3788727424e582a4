from __future__ import annotations

import sqlite3
import tempfile
import threading
import unittest
from pathlib import Path
from unittest.mock import patch

from pipeline.cache import BriefCache, compute_prompt_hash
from pipeline.errors import StorageFailure
from pipeline.storage import Store
from schemas.brief import BriefOutput


def _brief(message: str = "Hey @miaglows!") -> BriefOutput:
    return BriefOutput(
        outreach_message=message,
        content_ideas=[f"idea {i}" for i in range(1, 6)],
        hook_suggestions=[f"hook {i}" for i in range(1, 4)],
    )


class PromptHashTests(unittest.TestCase):
    def test_stable_hex_digest(self):
        digest = compute_prompt_hash("PROMPT")
        self.assertEqual(digest, compute_prompt_hash("PROMPT"))
        self.assertEqual(len(digest), 64)

    def test_schema_version_changes_fingerprint(self):
        self.assertNotEqual(
            compute_prompt_hash("PROMPT", schema_version="2.0.0"),
            compute_prompt_hash("PROMPT", schema_version="2.0.1"),
        )

    def test_prompt_changes_fingerprint(self):
        self.assertNotEqual(compute_prompt_hash("PROMPT A"), compute_prompt_hash("PROMPT B"))


class BriefCacheTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = Store(Path(self._tmp.name) / "test.db")
        self.store.init_db()
        self.cache = BriefCache(self.store)

    def tearDown(self):
        self.store.close()
        self._tmp.cleanup()

    def test_miss_returns_none(self):
        self.assertIsNone(self.cache.get("cmp_1", "crt_1", "abc"))

    def test_put_then_get(self):
        self.cache.put("cmp_1", "crt_1", "abc", _brief(), provider_name="mock", model_name="mock-v1")

        cached = self.cache.get("cmp_1", "crt_1", "abc")

        self.assertEqual(cached, _brief())
        row = self.store.get_cached_brief("cmp_1", "crt_1", "abc")
        self.assertEqual(row["provider"], "mock")
        self.assertEqual(row["model"], "mock-v1")
        self.assertIn("outreachMessage", row["response_json"])

    def test_keys_are_independent(self):
        self.cache.put("cmp_1", "crt_1", "abc", _brief(), provider_name="mock", model_name="mock-v1")
        self.assertIsNone(self.cache.get("cmp_1", "crt_1", "other-hash"))
        self.assertIsNone(self.cache.get("cmp_1", "crt_2", "abc"))

    def test_put_overwrites_existing_entry(self):
        self.cache.put("cmp_1", "crt_1", "abc", _brief("first"), provider_name="mock", model_name="mock-v1")
        first_row = self.store.get_cached_brief("cmp_1", "crt_1", "abc")

        self.cache.put("cmp_1", "crt_1", "abc", _brief("second"), provider_name="openai", model_name="gpt-4o-mini")

        self.assertEqual(self.cache.get("cmp_1", "crt_1", "abc").outreach_message, "second")
        row = self.store.get_cached_brief("cmp_1", "crt_1", "abc")
        self.assertEqual(row["provider"], "openai")
        self.assertEqual(row["created_at"], first_row["created_at"])

    def test_key_lock_is_shared_per_key(self):
        lock = self.cache.key_lock("cmp_1", "crt_1", "abc")
        self.assertIs(lock, self.cache.key_lock("cmp_1", "crt_1", "abc"))
        self.assertIsNot(lock, self.cache.key_lock("cmp_1", "crt_1", "xyz"))

    def test_entries_visible_from_other_threads(self):
        self.cache.put("cmp_1", "crt_1", "abc", _brief(), provider_name="mock", model_name="mock-v1")
        seen = []
        thread = threading.Thread(target=lambda: seen.append(self.cache.get("cmp_1", "crt_1", "abc")))
        thread.start()
        thread.join()
        self.assertEqual(seen, [_brief()])


class StorageFailureTests(unittest.TestCase):
    def test_sqlite_errors_are_wrapped(self):
        with tempfile.TemporaryDirectory() as tmp:
            store = Store(Path(tmp) / "test.db")
            store.init_db()
            try:
                with patch.object(store, "_get_conn", side_effect=sqlite3.OperationalError("disk I/O error")):
                    with self.assertRaises(StorageFailure) as ctx:
                        store.get_cached_brief("cmp_1", "crt_1", "abc")
            finally:
                store.close()
        self.assertIsInstance(ctx.exception.__cause__, sqlite3.OperationalError)


if __name__ == "__main__":
    unittest.main()
