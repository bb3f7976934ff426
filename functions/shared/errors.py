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

"""Error taxonomy for the access gate and the config boundary.

Each error carries the message that may be shown to a visitor. Backend
details are logged where the error is raised and never put in `message`.
"""


class AccessError(Exception):
    """Base class for failures surfaced to a visitor."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AccessError):
    """Empty slug or password, rejected before any network call."""

    default_message = "Missing slug or password"


class InvalidCredentials(AccessError):
    """No recipient matches the slug/password pair.

    Raised with the same message whether the slug is unknown or the password
    is wrong.
    """

    default_message = "Invalid password"


class BackendUnavailable(AccessError):
    """The database or the gate endpoint could not be reached."""

    default_message = "Failed to verify password. Please try again."


class ConfigShapeError(AccessError):
    """A stored config field has the wrong shape (strict parsing only)."""

    default_message = "Recipient configuration is malformed"
