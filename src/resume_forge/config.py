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
Runtime settings resolved from the environment.

The CLI calls load_dotenv() before Settings.from_env(), so a local .env file
works the same as exported variables. CLI flags override individual fields.
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-20250514",
    "gemini": "gemini-2.5-flash",
}

API_KEY_VARS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={value!r}; using {default}")
        return default


@dataclass
class Settings:
    content_provider: str = "openai"
    formatting_provider: str = "anthropic"
    parser_provider: Optional[str] = None
    content_model: Optional[str] = None
    formatting_model: Optional[str] = None
    parser_model: Optional[str] = None
    content_max_tokens: int = 4000
    formatting_max_tokens: int = 8000
    parser_max_tokens: int = 4000
    max_retries: int = 3
    concurrency: int = 1
    user_content_dir: Path = Path("user_content")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            content_provider=os.environ.get("RESUME_FORGE_CONTENT_PROVIDER", "openai").lower(),
            formatting_provider=os.environ.get("RESUME_FORGE_FORMATTING_PROVIDER", "anthropic").lower(),
            parser_provider=(os.environ.get("RESUME_FORGE_PARSER_PROVIDER") or "").lower() or None,
            content_model=os.environ.get("RESUME_FORGE_CONTENT_MODEL"),
            formatting_model=os.environ.get("RESUME_FORGE_FORMATTING_MODEL"),
            parser_model=os.environ.get("RESUME_FORGE_PARSER_MODEL"),
            content_max_tokens=_int_env("RESUME_FORGE_CONTENT_MAX_TOKENS", 4000),
            formatting_max_tokens=_int_env("RESUME_FORGE_FORMATTING_MAX_TOKENS", 8000),
            parser_max_tokens=_int_env("RESUME_FORGE_PARSER_MAX_TOKENS", 4000),
            max_retries=max(1, _int_env("RESUME_FORGE_MAX_RETRIES", 3)),
            concurrency=max(1, _int_env("RESUME_FORGE_CONCURRENCY", 1)),
            user_content_dir=Path(os.environ.get("RESUME_FORGE_USER_CONTENT", "user_content")),
        )

    @property
    def effective_parser_provider(self) -> str:
        return self.parser_provider or self.content_provider

    def api_key(self, provider: str) -> Optional[str]:
        var = API_KEY_VARS.get(provider)
        return os.environ.get(var) if var else None

    def model_for(self, provider: str, role: str) -> str:
        explicit = {
            "content": self.content_model,
            "formatting": self.formatting_model,
            "parser": self.parser_model,
        }.get(role)
        return explicit or DEFAULT_MODELS.get(provider, "")

    def max_tokens_for(self, role: str) -> int:
        return {
            "content": self.content_max_tokens,
            "formatting": self.formatting_max_tokens,
            "parser": self.parser_max_tokens,
        }.get(role, self.content_max_tokens)

    # Paths under the user content directory
    @property
    def logs_dir(self) -> Path:
        return self.user_content_dir / "logs"

    @property
    def output_dir(self) -> Path:
        return self.user_content_dir / "generated"

    @property
    def settings_file(self) -> Path:
        return self.user_content_dir / "recent_settings.json"

    @property
    def examples_cache_file(self) -> Path:
        return self.user_content_dir / ".examples_cache.json"
