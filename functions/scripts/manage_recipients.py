"""
Command-line management of birthday recipients against the configured database.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portal.config import get_settings
from portal.db import InMemoryDbClient
from portal.dependencies import get_change_feed, get_db_client, get_storage_client
from portal.recipients import (
    RecipientNotFound,
    change_password,
    create_recipient,
    delete_recipient,
)
from shared.errors import AccessError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage birthday recipients")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="List recipients, newest first")

    create = commands.add_parser("create", help="Create a recipient")
    create.add_argument("name", help="Recipient display name")
    create.add_argument("--password", required=True, help="Access password")

    set_password = commands.add_parser("set-password", help="Replace a password")
    set_password.add_argument("recipient_id")
    set_password.add_argument("--password", required=True)

    delete = commands.add_parser("delete", help="Delete a recipient and its media")
    delete.add_argument("recipient_id")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    settings = get_settings()
    db = get_db_client()
    if isinstance(db, InMemoryDbClient):
        logger.warning("DATABASE_URL is not set; changes will not be persisted")

    try:
        if args.command == "list":
            for row in db.list_recipients():
                print(f"{row['id']}\t{row['slug']}\t{row['recipient_name']}\t{row['birthday_date']}")
        elif args.command == "create":
            config = create_recipient(
                db,
                args.name,
                args.password,
                hash_method=settings.password_hash_method,
                created_by="cli",
            )
            print(f"{config.id}\t/b/{config.slug}")
        elif args.command == "set-password":
            change_password(
                db,
                args.recipient_id,
                args.password,
                min_length=settings.min_password_length,
                hash_method=settings.password_hash_method,
            )
            print("Password updated")
        elif args.command == "delete":
            delete_recipient(db, get_change_feed(), get_storage_client(), args.recipient_id)
            print("Deleted")
    except RecipientNotFound as exc:
        logger.error("No recipient with id %s", exc)
        return 1
    except AccessError as exc:
        logger.error("%s", exc.message)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
