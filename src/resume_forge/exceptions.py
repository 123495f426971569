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
Exception hierarchy for Resume Forge.

Only ConfigurationError is fatal to a whole generation run. Everything raised
while producing a single document is caught by the pipeline and turned into
an omission in the final result.
"""

from typing import Optional


class ResumeForgeError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(ResumeForgeError):
    """Missing credentials or an unknown provider name."""


class InputError(ResumeForgeError):
    """Bad user input (CSV, JSON, file type). Raised before any network call."""


class PromptError(ResumeForgeError):
    """A required prompt section rendered empty."""


class PersistenceError(ResumeForgeError):
    """The settings snapshot could not be read or written."""


class UpstreamServiceError(ResumeForgeError):
    """
    A provider endpoint answered with a non-success status.

    Attributes:
        provider: Provider name (e.g. 'openai/gpt-4o-mini')
        status_code: HTTP status, or None for connection failures
    """

    def __init__(self, message: str, provider: str = "", status_code: Optional[int] = None):
        self.provider = provider
        self.status_code = status_code
        parts = [message]
        if provider:
            parts.append(f"provider={provider}")
        if status_code is not None:
            parts.append(f"status={status_code}")
        super().__init__(" | ".join(parts))


class EmptyResponseError(ResumeForgeError):
    """The provider answered but the payload had no extractable text."""


class ParseError(ResumeForgeError):
    """The résumé parsing collaborator could not produce any data."""


class GenerationError(ResumeForgeError):
    """
    A single document could not be produced.

    Attributes:
        document_type: 'resume' or 'cover-letter'
        stage: 'content' or 'formatting'
    """

    stage = "generation"

    def __init__(self, message: str, document_type: str = ""):
        self.document_type = document_type
        super().__init__(message)


class ContentGenerationError(GenerationError):
    stage = "content"


class FormattingError(GenerationError):
    stage = "formatting"
