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

from shared.json_utils import camel_to_snake, convert_keys, snake_to_camel


class JsonUtilsTest(unittest.TestCase):
    def test_name_conversion(self):
        self.assertEqual(camel_to_snake("showMemoryTimeline"), "show_memory_timeline")
        self.assertEqual(snake_to_camel("show_memory_timeline"), "showMemoryTimeline")
        self.assertEqual(camel_to_snake("slug"), "slug")

    def test_convert_keys_recurses_into_lists(self):
        data = {"letterParagraphs": [{"paragraphId": "p0", "text": "Hi"}], "showQuiz": True}
        self.assertEqual(
            convert_keys(data, "camel_to_snake"),
            {"letter_paragraphs": [{"paragraph_id": "p0", "text": "Hi"}], "show_quiz": True},
        )

    def test_values_are_untouched(self):
        data = {"letter_title": "keep_this_value"}
        self.assertEqual(
            convert_keys(data, "snake_to_camel"), {"letterTitle": "keep_this_value"}
        )


if __name__ == "__main__":
    unittest.main()
