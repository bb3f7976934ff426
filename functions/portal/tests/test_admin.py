import json
import unittest
from unittest.mock import patch

from portal.admin import (
    AdminSession,
    InMemoryAdminSessionStore,
    RedisAdminSessionStore,
    check_admin_code,
)


class AdminCodeTests(unittest.TestCase):
    def test_check_admin_code(self):
        self.assertTrue(check_admin_code("secret", "secret"))
        self.assertFalse(check_admin_code("secret", "Secret"))
        self.assertFalse(check_admin_code(None, "secret"))
        self.assertFalse(check_admin_code("secret", ""))


class InMemoryAdminSessionStoreTests(unittest.TestCase):
    def test_open_get_close(self):
        store = InMemoryAdminSessionStore()
        session = store.open(ttl_seconds=60)

        self.assertEqual(store.get(session.token), session)
        store.close(session.token)
        self.assertIsNone(store.get(session.token))

    def test_expired_sessions_are_dropped(self):
        store = InMemoryAdminSessionStore()
        session = store.open(ttl_seconds=60)
        session.expires_at = session.created_at - 1

        self.assertIsNone(store.get(session.token))
        self.assertNotIn(session.token, store.sessions)

    def test_is_expired(self):
        session = AdminSession(token="t", created_at=0.0, expires_at=10.0)
        self.assertFalse(session.is_expired(now=9.0))
        self.assertTrue(session.is_expired(now=10.0))


class RedisAdminSessionStoreTests(unittest.TestCase):
    def setUp(self):
        patcher = patch("portal.admin.redis.Redis.from_url")
        self.client = patcher.start().return_value
        self.addCleanup(patcher.stop)
        self.store = RedisAdminSessionStore("redis://localhost:6379/0", key_prefix="test")

    def test_open_sets_expiring_key(self):
        session = self.store.open(ttl_seconds=120)

        key, ttl, payload = self.client.setex.call_args.args
        self.assertEqual(key, f"test:{session.token}")
        self.assertEqual(ttl, 120)
        self.assertEqual(json.loads(payload)["token"], session.token)

    def test_get_reads_back_session(self):
        session = self.store.open(ttl_seconds=120)
        self.client.get.return_value = self.client.setex.call_args.args[2].encode("utf-8")

        self.assertEqual(self.store.get(session.token), session)

    def test_missing_and_closed_sessions(self):
        self.client.get.return_value = None
        self.assertIsNone(self.store.get("nope"))

        self.store.close("nope")
        self.client.delete.assert_called_once_with("test:nope")


if __name__ == "__main__":
    unittest.main()
