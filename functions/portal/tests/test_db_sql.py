import unittest
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from portal.db import SlugTakenError, SqlDbClient
from shared.errors import BackendUnavailable


def recipient_row(recipient_id: str, slug: str, **extra) -> dict:
    row = {
        "id": recipient_id,
        "slug": slug,
        "password_hash": "digest",
        "recipient_name": recipient_id.title(),
        "birthday_date": "2030-01-01T00:00:00+00:00",
    }
    row.update(extra)
    return row


class SqlDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL client logic.
    """

    def setUp(self):
        self.db = SqlDbClient("sqlite+pysqlite:///:memory:")

    def test_create_and_fetch_by_id_and_slug(self):
        self.db.create_recipient(recipient_row("ada", "ada-abc123"))

        by_id = self.db.get_recipient("ada")
        by_slug = self.db.get_recipient_by_slug("ada-abc123")

        self.assertEqual(by_id["slug"], "ada-abc123")
        self.assertEqual(by_slug["id"], "ada")
        self.assertEqual(by_id["letter_paragraphs"], [])
        self.assertTrue(by_id["show_quiz"])
        self.assertIsNotNone(by_id["created_at"])
        self.assertIsNone(self.db.get_recipient_by_slug("nobody"))

    def test_duplicate_slug_is_rejected(self):
        self.db.create_recipient(recipient_row("ada", "shared-slug"))
        with self.assertRaises(SlugTakenError):
            self.db.create_recipient(recipient_row("bob", "shared-slug"))
        self.assertTrue(self.db.slug_exists("shared-slug"))
        self.assertFalse(self.db.slug_exists("other-slug"))

    def test_list_is_newest_first_and_omits_digest(self):
        self.db.create_recipient(recipient_row("old", "old", created_at=1.0))
        self.db.create_recipient(recipient_row("new", "new", created_at=2.0))

        rows = self.db.list_recipients()

        self.assertEqual([row["id"] for row in rows], ["new", "old"])
        self.assertNotIn("password_hash", rows[0])

    def test_update_only_touches_content_fields(self):
        self.db.create_recipient(recipient_row("ada", "ada"))

        row = self.db.update_recipient(
            "ada",
            {
                "letter_title": "Hello",
                "memories": [{"id": "m1", "title": "Met"}],
                "slug": "hijacked",
                "password_hash": "hijacked",
            },
        )

        self.assertEqual(row["letter_title"], "Hello")
        self.assertEqual(row["memories"], [{"id": "m1", "title": "Met"}])
        self.assertEqual(row["slug"], "ada")
        self.assertEqual(row["password_hash"], "digest")
        self.assertIsNone(self.db.update_recipient("missing", {"letter_title": "x"}))

    def test_set_password_hash_and_delete(self):
        self.db.create_recipient(recipient_row("ada", "ada"))

        self.assertTrue(self.db.set_password_hash("ada", "new-digest"))
        self.assertEqual(self.db.get_recipient("ada")["password_hash"], "new-digest")
        self.assertFalse(self.db.set_password_hash("missing", "x"))

        self.assertTrue(self.db.delete_recipient("ada"))
        self.assertFalse(self.db.delete_recipient("ada"))
        self.assertIsNone(self.db.get_recipient("ada"))

    def test_site_config_is_upserted(self):
        self.assertIsNone(self.db.get_site_config("default"))

        self.db.save_site_config("default", {"recipient_name": "Everyone"})
        row = self.db.save_site_config("default", {"show_quiz": False})

        self.assertEqual(row["id"], "default")
        self.assertEqual(row["recipient_name"], "Everyone")
        self.assertFalse(row["show_quiz"])

    def test_driver_errors_become_backend_unavailable(self):
        with patch.object(
            self.db, "Session", side_effect=OperationalError("SELECT", {}, Exception("down"))
        ):
            with self.assertRaises(BackendUnavailable):
                self.db.get_recipient_by_slug("ada")


if __name__ == "__main__":
    unittest.main()
