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
import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

import requests

from shared.errors import BackendUnavailable, InvalidCredentials, ValidationError
from shared.gate_client import HttpAccessGate


def fake_response(status_code: int, payload=None, json_error: bool = False):
    response = MagicMock(status_code=status_code)
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = payload
    return response


class HttpAccessGateTest(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock(spec=requests.Session)
        self.gate = HttpAccessGate("https://portal.test/api/", session=self.session)

    def test_success_returns_parsed_config(self):
        self.session.post.return_value = fake_response(
            200,
            {
                "success": True,
                "recipient": {
                    "id": "r1",
                    "slug": "sam",
                    "recipientName": "Sam",
                    "birthdayDate": "2030-06-01T00:00:00+00:00",
                },
            },
        )

        config = self.gate("sam", "abcd")

        self.assertEqual(config.recipient_name, "Sam")
        self.assertEqual(config.birthday_date, datetime(2030, 6, 1, tzinfo=timezone.utc))
        self.session.post.assert_called_once_with(
            "https://portal.test/api/verify-recipient-password",
            json={"slug": "sam", "password": "abcd"},
            timeout=10.0,
        )

    def test_empty_input_never_hits_the_network(self):
        with self.assertRaises(ValidationError):
            self.gate.verify("sam", "")
        self.session.post.assert_not_called()

    def test_status_codes_map_to_errors(self):
        cases = [
            (fake_response(401, {"success": False, "error": "Invalid password"}), InvalidCredentials),
            (fake_response(400, {"error": "Missing slug or password"}), ValidationError),
            (fake_response(500, {"error": "Database error"}), BackendUnavailable),
            (fake_response(200, {"success": False}), InvalidCredentials),
            (fake_response(502, json_error=True), BackendUnavailable),
        ]
        for response, error in cases:
            with self.subTest(status=response.status_code, error=error.__name__):
                self.session.post.return_value = response
                with self.assertRaises(error):
                    self.gate.verify("sam", "abcd")

    def test_non_object_body_is_backend_unavailable(self):
        self.session.post.return_value = fake_response(502, ["bad gateway"])
        with self.assertRaises(BackendUnavailable):
            self.gate.verify("sam", "abcd")

    def test_success_without_recipient_is_backend_unavailable(self):
        for payload in ({"success": True}, {"success": True, "recipient": "sam"}):
            with self.subTest(payload=payload):
                self.session.post.return_value = fake_response(200, payload)
                with self.assertRaises(BackendUnavailable):
                    self.gate.verify("sam", "abcd")

    def test_network_failure_is_backend_unavailable(self):
        self.session.post.side_effect = requests.ConnectionError("offline")
        with self.assertRaises(BackendUnavailable) as ctx:
            self.gate.verify("sam", "abcd")
        self.assertEqual(
            ctx.exception.message, "Failed to verify password. Please try again."
        )


if __name__ == "__main__":
    unittest.main()
