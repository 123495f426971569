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
Turns uploaded files (PDF, DOCX, JSON) into ParsedResumeData and portfolio
blobs.
"""

import io
import json
import base64
import binascii
import logging
from pathlib import Path
from typing import Any, Union

import requests
from bs4 import BeautifulSoup
from docx import Document
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from resume_forge.exceptions import InputError, ParseError
from resume_forge.llm_client import LLMProvider, clean_code_fences
from resume_forge.models import ParsedResumeData, PortfolioData
from resume_forge.ssl_helpers import get_ca_bundle

logger = logging.getLogger(__name__)

RESUME_PARSER_SYSTEM_PROMPT = """You are a resume parser. Extract structured information from the resume text provided.

Return a JSON object with this structure:
{
  "rawText": "the full text content",
  "personalInfo": {
    "fullName": "name if found",
    "email": "email if found",
    "phone": "phone if found",
    "address": "address if found",
    "linkedIn": "linkedin url if found",
    "portfolio": "portfolio url if found"
  },
  "workExperience": [
    {
      "id": "unique-id",
      "title": "job title",
      "company": "company name",
      "period": "date range",
      "responsibilities": ["list", "of", "responsibilities"]
    }
  ],
  "education": [
    {
      "id": "unique-id",
      "degree": "degree name",
      "institution": "school name",
      "period": "date range",
      "achievements": ["honors", "gpa", "etc"]
    }
  ],
  "skills": [
    {
      "category": "category name like 'Technical' or 'Marketing'",
      "items": ["skill1", "skill2"]
    }
  ],
  "certifications": ["cert1", "cert2"],
  "achievements": ["achievement1", "achievement2"],
  "references": [
    {
      "name": "Reference Person Name",
      "title": "Their Job Title or Relationship",
      "contact": "Phone number or email"
    }
  ]
}

IMPORTANT:
- Extract ALL personal information including full address, phone, email
- Extract LinkedIn and portfolio URLs if present
- Extract references with name, title/role, and contact information
- Only include fields you can confidently extract
- Return valid JSON only, no markdown"""

# Keeps the parse request well inside the model context window.
MAX_PARSE_CHARS = 60000


def read_pdf_bytes(data: bytes) -> str:
    """Extracts text from in-memory PDF bytes."""
    try:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted:
            raise InputError("PDF is password protected; remove the password and try again")
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError) as e:
        raise InputError(f"Not a readable PDF: {e}") from e
    return "\n".join(pages).strip()


def read_pdf(file_path: Union[str, Path]) -> str:
    """
    Extracts text from a PDF file. Returns "" when the file cannot be read,
    matching read_docx.
    """
    try:
        return read_pdf_bytes(Path(file_path).read_bytes())
    except (OSError, InputError) as e:
        logger.error(f"Error reading PDF {file_path}: {e}")
        return ""


def read_docx(file_path: Union[str, Path]) -> str:
    """Extracts paragraph text from a DOCX file."""
    try:
        doc = Document(str(file_path))
    except Exception as e:
        logger.error(f"Error reading {file_path}: {e}")
        return ""
    return "\n".join(para.text for para in doc.paragraphs).strip()


def extract_text_from_html(html: str) -> str:
    """Extracts clean text from HTML (job descriptions, styled examples)."""
    soup = BeautifulSoup(html, "html.parser")

    for element in soup(["script", "style"]):
        element.decompose()

    text = soup.get_text(separator="\n")
    lines = (line.strip() for line in text.splitlines())
    chunks = (phrase.strip() for line in lines for phrase in line.split("  "))
    return "\n".join(chunk for chunk in chunks if chunk)


USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


def read_url(url: str, timeout: int = 15) -> str:
    """
    Fetches a job posting and returns its visible text. TLS verification
    uses the resolved CA bundle (see ssl_helpers).
    """
    try:
        response = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout, verify=get_ca_bundle())
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise InputError(f"Could not fetch {url}: {e}") from e

    text = extract_text_from_html(response.text)
    if not text:
        raise InputError(f"No text found at {url}")
    return text


def read_text_file(file_path: Union[str, Path]) -> str:
    """Reads PDF, DOCX, HTML or plain text based on the file extension."""
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix == ".pdf":
        return read_pdf(path)
    if suffix == ".docx":
        return read_docx(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InputError(f"Could not read {path}: {e}") from e
    if suffix in (".html", ".htm"):
        return extract_text_from_html(text)
    return text.strip()


def encode_file(file_path: Union[str, Path]) -> str:
    """Base64-encodes a file for the parsing collaborator."""
    try:
        return base64.b64encode(Path(file_path).read_bytes()).decode("ascii")
    except OSError as e:
        raise InputError(f"Could not read {file_path}: {e}") from e


def _decode_json_object(content: str) -> Any:
    return json.loads(clean_code_fences(content, "json"))


class ResumeParser:
    """
    The résumé parsing collaborator: PDF bytes in, ParsedResumeData out.

    Text is extracted locally with pypdf and structured by an LLM. If the
    model's answer is not valid JSON the raw text is still returned so
    generation can fall back to it.
    """
    def __init__(self, provider: LLMProvider):
        self.provider = provider

    def parse(self, pdf_base64: str, file_name: str = "resume.pdf") -> ParsedResumeData:
        if not pdf_base64:
            raise InputError("No PDF data provided")
        try:
            data = base64.b64decode(pdf_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InputError(f"{file_name} is not valid base64: {e}") from e

        logger.info(f"Parsing PDF: {file_name}")
        text = read_pdf_bytes(data)
        if not text:
            raise InputError(f"No extractable text in {file_name} (scanned PDFs are not supported)")
        return self.parse_text(text, file_name)

    def parse_text(self, text: str, file_name: str = "resume") -> ParsedResumeData:
        prompt = (
            f"Parse this resume ({file_name}) and extract all information. "
            f"Extract as much structured information as possible.\n\n"
            f"RESUME TEXT:\n{text[:MAX_PARSE_CHARS]}"
        )
        content = self.provider.complete(RESUME_PARSER_SYSTEM_PROMPT, prompt)
        if not content or not content.strip():
            raise ParseError(f"No response from the parsing model for {file_name}")

        try:
            payload = _decode_json_object(content)
        except json.JSONDecodeError as e:
            logger.warning(f"Parser returned invalid JSON for {file_name} ({e}); keeping raw text only")
            return ParsedResumeData(raw_text=text)

        if not isinstance(payload, dict):
            logger.warning(f"Parser returned {type(payload).__name__}, expected an object; keeping raw text only")
            return ParsedResumeData(raw_text=text)

        parsed = ParsedResumeData.from_dict(payload)
        if not parsed.raw_text.strip():
            parsed.raw_text = text
        logger.info(
            f"    > Parsed {len(parsed.work_experience)} role(s), {len(parsed.education)} education "
            f"entr{'y' if len(parsed.education) == 1 else 'ies'}, {len(parsed.references)} reference(s)"
        )
        return parsed


def load_resume_json(text: str) -> ParsedResumeData:
    """
    Accepts a ParsedResumeData-shaped JSON document. Without a rawText key
    the whole document is used as the raw text.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise InputError(f"Invalid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise InputError("Resume JSON must be an object")

    parsed = ParsedResumeData.from_dict(payload)
    if not parsed.raw_text:
        parsed.raw_text = json.dumps(payload)
    return parsed


def load_portfolio_json(text: str) -> PortfolioData:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise InputError(f"Invalid portfolio JSON: {e}") from e
    if not isinstance(payload, (dict, list)):
        raise InputError("Portfolio JSON must be an object or an array")
    return payload


def load_portfolio_file(file_path: Union[str, Path]) -> PortfolioData:
    path = Path(file_path)
    if path.suffix.lower() != ".json":
        raise InputError(f"Portfolio data must be a .json file, got '{path.name}'")
    try:
        return load_portfolio_json(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise InputError(f"Could not read {path}: {e}") from e


def ingest_resume(file_path: Union[str, Path], parser: ResumeParser = None) -> ParsedResumeData:
    """
    Loads a résumé from .pdf, .docx or .json. PDF and DOCX go through the
    parsing collaborator; JSON is taken as already structured.
    """
    path = Path(file_path)
    if not path.exists():
        raise InputError(f"Resume file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".json":
        try:
            return load_resume_json(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise InputError(f"Could not read {path}: {e}") from e

    if suffix not in (".pdf", ".docx"):
        raise InputError(f"Unsupported resume file type '{suffix}'. Use PDF, DOCX or JSON.")
    if parser is None:
        raise InputError(f"A resume parser is required for {suffix} files")

    if suffix == ".pdf":
        return parser.parse(encode_file(path), path.name)

    text = read_docx(path)
    if not text:
        raise InputError(f"No text found in {path.name}")
    return parser.parse_text(text, path.name)
