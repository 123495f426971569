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
Client for interacting with Large Language Models (LLMs).
Supports OpenAI, Anthropic and Google AI Studio (Gemini).

Generation uses two independently configurable roles: a content provider that
writes the document text and a formatting provider that turns it into HTML.
Both are plain LLMProvider instances; the role only decides which settings
are used to build one.
"""

import re
import time
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, TypeVar

from resume_forge.config import Settings
from resume_forge.exceptions import (
    ConfigurationError,
    ContentGenerationError,
    EmptyResponseError,
    UpstreamServiceError,
)
from resume_forge.models import DocumentType
from resume_forge.ssl_helpers import configure_ssl_env

# Logger is configured in main.py
logger = logging.getLogger(__name__)

T = TypeVar("T")

BASE_DELAY = 1.0
MAX_DELAY = 30.0


def retry_with_backoff(
    operation: Callable[[], T],
    is_retryable: Callable[[Exception], bool],
    description: str,
    max_attempts: int = 3,
    base_delay: float = BASE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Runs operation, retrying with exponential backoff while is_retryable
    says the failure is transient (429, 5xx, dropped connection). The last
    exception is re-raised once max_attempts is reached.
    """
    max_attempts = max(1, max_attempts)
    for attempt in range(max_attempts):
        try:
            return operation()
        except Exception as e:
            if not is_retryable(e) or attempt == max_attempts - 1:
                raise
            delay = min(base_delay * (2 ** attempt), MAX_DELAY)
            logger.warning(
                f"{description}: {e}. Retrying in {delay:.1f}s (attempt {attempt + 1}/{max_attempts})"
            )
            sleep(delay)


_FENCE_OPEN = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_FENCED_BLOCK = re.compile(r"```[A-Za-z0-9_-]*\s*([\s\S]*?)\s*```")


def clean_code_fences(text: str, language: Optional[str] = None) -> str:
    """
    Strips a leading ```lang / ``` fence and a trailing ``` fence. Text
    without fences is returned untouched apart from surrounding whitespace.

    With a language (e.g. "json"), a fenced block preceded by chatter
    ("Here is the JSON: ```json ...```") is also unwrapped.
    """
    if text is None:
        return ""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]
        return cleaned.strip()
    if language and "```" in cleaned:
        match = _FENCED_BLOCK.search(cleaned)
        if match:
            return match.group(1).strip()
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def _is_transient_status(status: Optional[int]) -> bool:
    return status is not None and (status == 429 or status >= 500)


class LLMProvider(ABC):
    """
    Abstract base for LLM providers.

    Subclasses set _provider_prefix, build their SDK client in __init__ and
    implement _call_api (one request, no retries), _is_retryable and
    _status_of.
    """
    _provider_prefix: str = ""

    def __init__(self, model: str, max_tokens: int = 4000, temperature: float = 0.7,
                 max_attempts: int = 3, sleep: Callable[[float], None] = time.sleep):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_attempts = max_attempts
        self._sleep = sleep

    @property
    def name(self) -> str:
        return f"{self._provider_prefix}/{self.model}"

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> Optional[str]:
        """Single request. Returns the text payload (may be None/empty)."""

    @abstractmethod
    def _is_retryable(self, error: Exception) -> bool:
        pass

    @abstractmethod
    def _status_of(self, error: Exception) -> Optional[int]:
        """HTTP status carried by an SDK error, None when there is none."""

    def _is_sdk_error(self, error: Exception) -> bool:
        return self._status_of(error) is not None or self._is_retryable(error)

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """
        Sends the prompt pair and returns the text. SDK failures surface as
        UpstreamServiceError, an empty payload as EmptyResponseError.
        """
        try:
            text = retry_with_backoff(
                lambda: self._call_api(system_prompt, user_prompt),
                self._is_retryable,
                f"{self.name} request failed",
                max_attempts=self.max_attempts,
                sleep=self._sleep,
            )
        except (UpstreamServiceError, EmptyResponseError):
            raise
        except Exception as e:
            if not self._is_sdk_error(e):
                raise
            raise UpstreamServiceError(str(e), provider=self.name, status_code=self._status_of(e)) from e

        if not text or not text.strip():
            raise EmptyResponseError(f"{self.name} returned no text")
        return text


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions (system + user messages)."""
    _provider_prefix = "openai"

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", client: Any = None, **kwargs):
        super().__init__(model, **kwargs)
        import openai
        self._sdk = openai
        if client is None:
            configure_ssl_env()
            client = openai.OpenAI(api_key=api_key, max_retries=0)
        self.client = client

    def _call_api(self, system_prompt: str, user_prompt: str) -> Optional[str]:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        if not response.choices:
            return None
        return response.choices[0].message.content

    def _status_of(self, error: Exception) -> Optional[int]:
        if isinstance(error, self._sdk.APIStatusError):
            return error.status_code
        return None

    def _is_retryable(self, error: Exception) -> bool:
        if isinstance(error, self._sdk.APIConnectionError):
            return True
        return _is_transient_status(self._status_of(error))


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API."""
    _provider_prefix = "anthropic"

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514", client: Any = None, **kwargs):
        super().__init__(model, **kwargs)
        import anthropic
        self._sdk = anthropic
        if client is None:
            configure_ssl_env()
            client = anthropic.Anthropic(api_key=api_key, max_retries=0)
        self.client = client

    def _call_api(self, system_prompt: str, user_prompt: str) -> Optional[str]:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        parts = [block.text for block in response.content if getattr(block, "type", "text") == "text"]
        return "".join(parts)

    def _status_of(self, error: Exception) -> Optional[int]:
        if isinstance(error, self._sdk.APIStatusError):
            return error.status_code
        return None

    def _is_retryable(self, error: Exception) -> bool:
        if isinstance(error, self._sdk.APIConnectionError):
            return True
        return _is_transient_status(self._status_of(error))


class GeminiProvider(LLMProvider):
    """Google AI Studio via the google-genai SDK."""
    _provider_prefix = "gemini"

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash", client: Any = None, **kwargs):
        super().__init__(model, **kwargs)
        from google import genai
        from google.genai import errors, types
        self._errors = errors
        self._types = types
        if client is None:
            configure_ssl_env()
            client = genai.Client(api_key=api_key)
        self.client = client

    def _call_api(self, system_prompt: str, user_prompt: str) -> Optional[str]:
        response = self.client.models.generate_content(
            model=self.model,
            contents=user_prompt,
            config=self._types.GenerateContentConfig(
                system_instruction=system_prompt,
                max_output_tokens=self.max_tokens,
                temperature=self.temperature,
            ),
        )
        return response.text

    def _status_of(self, error: Exception) -> Optional[int]:
        if isinstance(error, self._errors.APIError):
            return error.code
        return None

    def _is_retryable(self, error: Exception) -> bool:
        return _is_transient_status(self._status_of(error))


PROVIDERS = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
}

# Parsing wants deterministic extraction, writing a little variety.
ROLE_TEMPERATURES = {"content": 0.7, "formatting": 0.2, "parser": 0.1}


def get_provider(name: str, settings: Settings, role: str = "content") -> LLMProvider:
    """
    Builds the provider for a role ('content', 'formatting' or 'parser').
    Missing credentials are a ConfigurationError: nothing can be generated
    without them.
    """
    name = (name or "").lower()
    provider_cls = PROVIDERS.get(name)
    if provider_cls is None:
        raise ConfigurationError(f"Unknown provider '{name}'. Use one of: {', '.join(PROVIDERS)}")

    api_key = settings.api_key(name)
    if not api_key:
        raise ConfigurationError(f"{name} API key not configured (set the corresponding *_API_KEY variable)")

    try:
        provider = provider_cls(
            api_key=api_key,
            model=settings.model_for(name, role),
            max_tokens=settings.max_tokens_for(role),
            temperature=ROLE_TEMPERATURES.get(role, 0.7),
            max_attempts=settings.max_retries,
        )
    except ImportError as e:
        raise ConfigurationError(f"SDK for provider '{name}' is not installed: {e}") from e

    logger.info(f"Using {provider.name} for {role}")
    return provider


CONTENT_SYSTEM_PROMPTS = {
    DocumentType.RESUME: (
        "You are an expert resume writer and career coach. You create professional, tailored resumes "
        "that help candidates stand out while being ATS-friendly. You never invent facts, and you never "
        "write placeholder text such as 'Not provided'."
    ),
    DocumentType.COVER_LETTER: (
        "You are an expert cover letter writer. You write specific, confident letters in natural prose "
        "that connect a candidate's real achievements to the role. You never invent facts, and you never "
        "write placeholder text such as 'Not provided'."
    ),
}


class ContentGenerationClient:
    """
    First pipeline stage: prompt in, raw document text out.
    Any provider failure becomes a ContentGenerationError for that document.
    """
    def __init__(self, provider: LLMProvider):
        self.provider = provider

    def generate(self, prompt: str, document_type: DocumentType) -> str:
        document_type = DocumentType(document_type)
        logger.info(f"Generating {document_type.label} content with {self.provider.name}...")
        try:
            text = self.provider.complete(CONTENT_SYSTEM_PROMPTS[document_type], prompt)
        except (UpstreamServiceError, EmptyResponseError) as e:
            raise ContentGenerationError(
                f"Content generation failed for {document_type.label}: {e}", document_type.value
            ) from e
        return text.strip()
