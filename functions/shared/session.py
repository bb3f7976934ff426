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

"""Per-visitor session for one gated experience.

A RecipientSession is created for a slug, unlocked with a password, and
closed explicitly. The verified config is cached in a transient store for the
lifetime of the session; it is never re-verified while cached.
"""

import json
import logging
from typing import Callable, MutableMapping, Optional

from shared.errors import AccessError, BackendUnavailable, ValidationError
from shared.recipient_config import config_to_dict, parse_recipient_config
from shared.sequencer import Clock, ExperienceSequencer, utc_now
from shared.types import RecipientConfig

logger = logging.getLogger(__name__)

Gate = Callable[[str, str], RecipientConfig]

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


class RecipientSession:
    def __init__(
        self,
        slug: str,
        gate: Gate,
        store: Optional[MutableMapping[str, str]] = None,
        clock: Clock = utc_now,
    ):
        self.slug = slug
        self.gate = gate
        self.store = store if store is not None else {}
        self.clock = clock
        self.config: Optional[RecipientConfig] = None
        self.error: Optional[str] = None
        self.is_loading = False

    @property
    def cache_key(self) -> str:
        return f"recipient_{self.slug}"

    @property
    def is_authenticated(self) -> bool:
        return self.config is not None

    def unlock(self, password: str) -> bool:
        """Verify `password` through the gate; returns True on success.

        Failures leave the session unauthenticated with a user-facing `error`.
        A call made while another is in flight is ignored.
        """
        if self.is_loading:
            return False
        password = (password or "").strip()
        if not self.slug or not password:
            self.error = ValidationError().message
            return False

        self.is_loading = True
        self.error = None
        try:
            config = self.gate(self.slug, password)
        except BackendUnavailable as e:
            logger.error("Password verification error for %s: %s", self.slug, e)
            self.error = e.message
            return False
        except AccessError as e:
            self.error = e.message
            return False
        except Exception:
            logger.exception("Password verification failed for %s", self.slug)
            self.error = UNEXPECTED_ERROR_MESSAGE
            return False
        finally:
            self.is_loading = False

        self.config = config
        self.store[self.cache_key] = json.dumps(config_to_dict(config))
        return True

    def restore(self) -> bool:
        """Reload a config cached earlier in this session, if any."""
        cached = self.store.get(self.cache_key)
        if not cached:
            return False
        try:
            self.config = parse_recipient_config(json.loads(cached))
        except (ValueError, AccessError):
            logger.warning("Discarding unreadable cached config for %s", self.slug)
            self.store.pop(self.cache_key, None)
            return False
        return True

    def experience(self) -> ExperienceSequencer:
        if self.config is None:
            raise RuntimeError("Session is not unlocked")
        return ExperienceSequencer(self.config, clock=self.clock)

    def close(self) -> None:
        self.store.pop(self.cache_key, None)
        self.config = None
        self.error = None
        self.is_loading = False

    def __enter__(self) -> "RecipientSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
