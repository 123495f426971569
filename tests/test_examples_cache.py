# Copyright 2026 Justin Cook
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

import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import MagicMock

from resume_forge import examples_cache
from resume_forge.exceptions import InputError


class TestExampleCache(unittest.TestCase):
    def test_load_fills_missing_from_loader(self):
        storage = examples_cache.MemoryStorage()
        cache = examples_cache.ExampleCache(storage, loader=lambda field: f"default for {field}")

        examples = cache.load()

        self.assertEqual(examples.example_resume_text, "default for example_resume_text")
        self.assertEqual(examples.styled_cover_letter_text, "default for styled_cover_letter_text")
        self.assertEqual(storage.get("default_example_coverletter"), "default for example_cover_letter_text")

    def test_cached_value_wins(self):
        storage = examples_cache.MemoryStorage({"default_example_resume": "my own resume"})
        loader = MagicMock(return_value="bundled")
        cache = examples_cache.ExampleCache(storage, loader=loader)

        examples = cache.load()

        self.assertEqual(examples.example_resume_text, "my own resume")
        self.assertNotIn("example_resume_text", [c.args[0] for c in loader.call_args_list])
        self.assertEqual(loader.call_count, 3)

    def test_loader_failure_leaves_field_empty(self):
        cache = examples_cache.ExampleCache(
            examples_cache.MemoryStorage(), loader=MagicMock(side_effect=OSError("gone"))
        )
        with self.assertLogs("resume_forge.examples_cache", level="WARNING"):
            examples = cache.load()
        self.assertIsNone(examples.example_resume_text)
        self.assertIsNone(examples.styled_resume_text)

    def test_put_and_invalidate(self):
        cache = examples_cache.ExampleCache(examples_cache.MemoryStorage(), loader=lambda field: None)

        cache.put("styled_resume_text", "  custom layout  ")
        self.assertEqual(cache.get("styled_resume_text"), "custom layout")

        cache.invalidate("styled_resume_text")
        self.assertIsNone(cache.get("styled_resume_text"))

    def test_invalid_input(self):
        cache = examples_cache.ExampleCache(examples_cache.MemoryStorage(), loader=lambda field: None)
        with self.assertRaises(InputError):
            cache.put("unknown_field", "text")
        with self.assertRaises(InputError):
            cache.put("example_resume_text", "   ")
        with self.assertRaises(InputError):
            cache.put_file("example_resume_text", "/nonexistent/example.txt")

    def test_bundled_defaults(self):
        for field in examples_cache.CACHE_KEYS:
            self.assertTrue(examples_cache.bundled_default_loader(field), field)
        self.assertIsNone(examples_cache.bundled_default_loader("unknown"))


class TestJsonFileStorage(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.test_dir, "nested", "cache.json")

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_persists_between_instances(self):
        examples_cache.JsonFileStorage(self.path).set("default_styled_resume", "layout")

        self.assertEqual(examples_cache.JsonFileStorage(self.path).get("default_styled_resume"), "layout")
        with open(self.path, encoding="utf-8") as f:
            self.assertEqual(json.load(f), {"default_styled_resume": "layout"})
        self.assertEqual(os.listdir(os.path.dirname(self.path)), ["cache.json"])

    def test_remove(self):
        storage = examples_cache.JsonFileStorage(self.path)
        storage.set("a", "1")
        storage.set("b", "2")
        storage.remove("a")
        self.assertIsNone(storage.get("a"))
        self.assertEqual(storage.get("b"), "2")

    def test_corrupt_file_is_ignored(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("{broken")
        storage = examples_cache.JsonFileStorage(self.path)

        with self.assertLogs("resume_forge.examples_cache", level="WARNING"):
            self.assertIsNone(storage.get("a"))

    def test_put_file(self):
        example = os.path.join(self.test_dir, "cover.txt")
        with open(example, "w", encoding="utf-8") as f:
            f.write("Dear team,\nI build things.\n")
        cache = examples_cache.ExampleCache(examples_cache.JsonFileStorage(self.path), loader=lambda field: None)

        cache.put_file("example_cover_letter_text", example)

        self.assertEqual(cache.load().example_cover_letter_text, "Dear team,\nI build things.")


if __name__ == '__main__':
    unittest.main()
