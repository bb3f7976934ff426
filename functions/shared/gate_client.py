# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""HTTP client for the password verification endpoint."""

import logging

import requests

from shared.errors import (
    BackendUnavailable,
    InvalidCredentials,
    ValidationError,
)
from shared.recipient_config import parse_recipient_config
from shared.types import RecipientConfig

logger = logging.getLogger(__name__)

VERIFY_PATH = "/verify-recipient-password"
DEFAULT_TIMEOUT_SECONDS = 10.0


class HttpAccessGate:
    """Calls the gate endpoint and turns its answers into AccessErrors."""

    def __init__(
        self,
        base_url: str,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.url = base_url.rstrip("/") + VERIFY_PATH
        self.session = session or requests.Session()
        self.timeout = timeout

    def verify(self, slug: str, password: str) -> RecipientConfig:
        if not slug or not password:
            raise ValidationError()

        try:
            response = self.session.post(
                self.url,
                json={"slug": slug, "password": password},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Password verification request failed: %s", e)
            raise BackendUnavailable() from e

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(
                "Gate returned non-JSON body (status %s)", response.status_code
            )
            raise BackendUnavailable() from e

        if not isinstance(payload, dict):
            logger.error(
                "Gate returned a non-object body (status %s)", response.status_code
            )
            raise BackendUnavailable()

        if response.status_code == 401:
            raise InvalidCredentials()
        if response.status_code == 400:
            raise ValidationError()
        if response.status_code != 200:
            logger.error(
                "Gate error %s: %s", response.status_code, payload.get("error")
            )
            raise BackendUnavailable()
        if not payload.get("success"):
            raise InvalidCredentials()
        recipient = payload.get("recipient")
        if not isinstance(recipient, dict):
            logger.error("Gate reported success without a recipient")
            raise BackendUnavailable()
        return parse_recipient_config(recipient)

    def __call__(self, slug: str, password: str) -> RecipientConfig:
        return self.verify(slug, password)

