import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from portal.access import verify_access
from portal.db import InMemoryDbClient, SlugTakenError
from portal.realtime import InMemoryChangeFeed
from portal.recipients import (
    RecipientNotFound,
    change_password,
    create_recipient,
    generate_slug,
    get_site_config,
    slugify,
    update_fields,
    update_recipient,
)
from portal.schemas import RecipientUpdate
from shared.errors import InvalidCredentials, ValidationError

FAST_HASH = "pbkdf2:sha256:1000"


class SlugTests(unittest.TestCase):
    def test_slugify(self):
        self.assertEqual(slugify("Ada  Lovelace!"), "ada-lovelace")
        self.assertEqual(slugify("🎉"), "birthday")

    def test_generate_slug_retries_on_collision(self):
        db = MagicMock()
        db.slug_exists.side_effect = [True, False]
        slug = generate_slug(db, "Sam")
        self.assertRegex(slug, r"^sam-[0-9a-f]{6}$")
        self.assertEqual(db.slug_exists.call_count, 2)

    def test_generate_slug_gives_up(self):
        db = MagicMock()
        db.slug_exists.return_value = True
        with self.assertRaises(SlugTakenError):
            generate_slug(db, "Sam")


class RecipientLifecycleTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.feed = InMemoryChangeFeed()

    def test_create_stores_digest_not_password(self):
        config = create_recipient(self.db, "Sam", "abcd", hash_method=FAST_HASH)
        row = self.db.get_recipient(config.id)
        self.assertNotEqual(row["password_hash"], "abcd")
        self.assertTrue(row["password_hash"].startswith("pbkdf2:"))
        self.assertEqual(config.recipient_name, "Sam")

    def test_create_requires_name_and_password(self):
        with self.assertRaises(ValidationError):
            create_recipient(self.db, "Sam", "   ", hash_method=FAST_HASH)
        with self.assertRaises(ValidationError):
            create_recipient(self.db, "", "abcd", hash_method=FAST_HASH)

    def test_change_password_validation(self):
        config = create_recipient(self.db, "Sam", "abcd", hash_method=FAST_HASH)

        with self.assertRaises(ValidationError) as ctx:
            change_password(self.db, config.id, "abc", hash_method=FAST_HASH)
        self.assertEqual(ctx.exception.message, "Password must be at least 4 characters")
        with self.assertRaises(ValidationError):
            change_password(self.db, None, "abcdef", hash_method=FAST_HASH)
        with self.assertRaises(RecipientNotFound):
            change_password(self.db, "missing", "abcdef", hash_method=FAST_HASH)

    def test_changed_password_is_trimmed_like_at_creation(self):
        config = create_recipient(self.db, "Sam", "abcd", hash_method=FAST_HASH)

        change_password(self.db, config.id, " wxyz ", hash_method=FAST_HASH)

        self.assertEqual(verify_access(self.db, config.slug, "wxyz").id, config.id)
        with self.assertRaises(ValidationError):
            change_password(self.db, config.id, "  ab  ", hash_method=FAST_HASH)

    def test_update_publishes_saved_row(self):
        config = create_recipient(self.db, "Sam", "abcd", hash_method=FAST_HASH)
        subscription = self.feed.subscribe(config.id)

        update_recipient(self.db, self.feed, config.id, RecipientUpdate(letter_title="Hi"))

        event = subscription.get_message()
        self.assertEqual(event["recipient"]["letter_title"], "Hi")
        self.assertNotIn("password_hash", event["recipient"])

    def test_naive_birthday_is_stored_as_utc(self):
        fields = update_fields(RecipientUpdate(birthday_date=datetime(2030, 5, 1, 9, 30)))
        self.assertEqual(fields["birthday_date"], "2030-05-01T09:30:00+00:00")

    def test_unset_fields_are_not_written(self):
        fields = update_fields(RecipientUpdate(show_quiz=False))
        self.assertEqual(fields, {"show_quiz": False})

    def test_site_config_defaults_on_first_read(self):
        config = get_site_config(self.db)
        self.assertEqual(config.id, "default")
        self.assertEqual(config.recipient_name, "Birthday Star")
        self.assertIsNotNone(self.db.get_site_config("default"))


class VerifyAccessTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.config = create_recipient(self.db, "Sam", "abcd", hash_method=FAST_HASH)

    def test_match_returns_config(self):
        config = verify_access(self.db, self.config.slug, "abcd")
        self.assertEqual(config.id, self.config.id)
        self.assertFalse(hasattr(config, "password_hash"))

    def test_failures_share_one_message(self):
        with self.assertRaises(InvalidCredentials) as wrong:
            verify_access(self.db, self.config.slug, "abcD")
        with self.assertRaises(InvalidCredentials) as unknown:
            verify_access(self.db, "nobody", "abcd")
        self.assertEqual(wrong.exception.message, unknown.exception.message)

    def test_empty_input_skips_lookup(self):
        db = MagicMock()
        with self.assertRaises(ValidationError):
            verify_access(db, "", "abcd")
        db.get_recipient_by_slug.assert_not_called()

    def test_birthday_round_trips_as_utc(self):
        self.db.update_recipient(
            self.config.id, {"birthday_date": "2030-05-01T09:30:00+02:00"}
        )
        config = verify_access(self.db, self.config.slug, "abcd")
        self.assertEqual(
            config.birthday_date, datetime(2030, 5, 1, 7, 30, tzinfo=timezone.utc)
        )


if __name__ == "__main__":
    unittest.main()
