"""
Access gate: checks a recipient's password and hands back their config.
"""

from __future__ import annotations

import logging

from portal.db import DbClient
from portal.security import burn_verification, verify_password
from shared.errors import InvalidCredentials, ValidationError
from shared.recipient_config import parse_recipient_config
from shared.types import RecipientConfig

logger = logging.getLogger(__name__)


def verify_access(db: DbClient, slug: str | None, password: str | None) -> RecipientConfig:
    """
    Return the config for `slug` if `password` matches its stored digest.

    Unknown slugs and wrong passwords raise the same InvalidCredentials.
    Database failures propagate as BackendUnavailable. The returned config
    never carries the digest.
    """
    if not slug or not password:
        raise ValidationError()

    row = db.get_recipient_by_slug(slug)
    if row is None:
        burn_verification(password)
        logger.info("Rejected access for slug %s", slug)
        raise InvalidCredentials()

    if not verify_password(row.get("password_hash"), password):
        logger.info("Rejected access for slug %s", slug)
        raise InvalidCredentials()

    return parse_recipient_config(row)
