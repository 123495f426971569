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

"""
Cache for the example and styled-example texts.

Examples only shape the prompts, so a missing one is never an error: the
field simply stays None. User-supplied examples override the bundled
defaults and survive across runs in a small JSON file.
"""

import os
import json
import logging
import tempfile
from dataclasses import fields
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from resume_forge.exceptions import InputError
from resume_forge.ingest import read_text_file
from resume_forge.models import ExampleTexts

logger = logging.getLogger(__name__)

# ExampleTexts field -> storage key
CACHE_KEYS: Dict[str, str] = {
    "example_resume_text": "default_example_resume",
    "example_cover_letter_text": "default_example_coverletter",
    "styled_resume_text": "default_styled_resume",
    "styled_cover_letter_text": "default_styled_coverletter",
}

DEFAULTS_DIR = Path(__file__).resolve().parent / "defaults"

DEFAULT_FILES: Dict[str, str] = {
    "example_resume_text": "example_resume.txt",
    "example_cover_letter_text": "example_cover_letter.txt",
    "styled_resume_text": "styled_resume.txt",
    "styled_cover_letter_text": "styled_cover_letter.txt",
}


class MemoryStorage:
    """Dict-backed storage; nothing outlives the process."""
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._data[key] = value

    def remove(self, key: str):
        self._data.pop(key, None)


class JsonFileStorage:
    """
    Key/value storage in one JSON object on disk. Writes go to a temp file
    first and are moved into place, so a crash never leaves half a file.
    """
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable example cache {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".cache-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str):
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str):
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)


def bundled_default_loader(field_name: str) -> Optional[str]:
    """Reads the example shipped with the package for a field."""
    file_name = DEFAULT_FILES.get(field_name)
    if not file_name:
        return None
    path = DEFAULTS_DIR / file_name
    if not path.exists():
        return None
    return path.read_text(encoding="utf-8").strip() or None


class ExampleCache:
    """
    Resolves ExampleTexts: cached value first, then the loader. Loaded
    values are written back so later runs skip the loader.
    """
    def __init__(self, storage=None, loader: Callable[[str], Optional[str]] = bundled_default_loader):
        self.storage = storage if storage is not None else MemoryStorage()
        self.loader = loader

    @staticmethod
    def _check_field(field_name: str):
        if field_name not in CACHE_KEYS:
            raise InputError(f"Unknown example field '{field_name}'. Use one of: {', '.join(CACHE_KEYS)}")

    def get(self, field_name: str) -> Optional[str]:
        self._check_field(field_name)
        cached = self.storage.get(CACHE_KEYS[field_name])
        if cached:
            return cached

        try:
            text = self.loader(field_name) if self.loader else None
        except Exception as e:
            logger.warning(f"Could not load default example for {field_name}: {e}")
            return None
        if not text:
            return None

        try:
            self.storage.set(CACHE_KEYS[field_name], text)
        except OSError as e:
            logger.warning(f"Could not cache example {field_name}: {e}")
        return text

    def load(self) -> ExampleTexts:
        values = {f.name: self.get(f.name) for f in fields(ExampleTexts)}
        missing = [name for name, value in values.items() if not value]
        if missing:
            logger.debug(f"No example available for: {', '.join(missing)}")
        return ExampleTexts(**values)

    def put(self, field_name: str, text: str):
        self._check_field(field_name)
        if not text or not text.strip():
            raise InputError(f"Example text for {field_name} is empty")
        self.storage.set(CACHE_KEYS[field_name], text.strip())
        logger.info(f"Stored custom example for {field_name}")

    def put_file(self, field_name: str, path: Union[str, Path]):
        """Stores the text of a PDF, DOCX, HTML or TXT file as an example."""
        path = Path(path)
        if not path.exists():
            raise InputError(f"Example file not found: {path}")
        text = read_text_file(path)
        if not text:
            raise InputError(f"No text found in example file {path.name}")
        self.put(field_name, text)

    def invalidate(self, field_name: Optional[str] = None):
        names = [field_name] if field_name else list(CACHE_KEYS)
        for name in names:
            self._check_field(name)
            self.storage.remove(CACHE_KEYS[name])
