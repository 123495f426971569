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
Second pipeline stage: raw document text to a standalone, Word-compatible
HTML document.

The layout itself is written by the formatting model from one of two fixed
CSS frameworks. Everything that must be exact (references, portfolio links,
personal details) is either generated here or repaired here after the model
answers.
"""

import re
import html
import logging
from datetime import datetime
from typing import List, Optional, Union

from resume_forge.exceptions import EmptyResponseError, FormattingError, UpstreamServiceError
from resume_forge.llm_client import LLMProvider, clean_code_fences
from resume_forge.models import DocumentType, PersonalInfo, PortfolioData, Reference
from resume_forge.prompts import portfolio_base_url, extract_portfolio_anchors

logger = logging.getLogger(__name__)

REFERENCES_START = "<!-- REFERENCES_BLOCK_START -->"
REFERENCES_END = "<!-- REFERENCES_BLOCK_END -->"

LINK_STYLE = "color:#2c5282;text-decoration:underline;"

# Word's HTML import ignores CSS variables, flexbox and grid: hex colours and
# tables only.
RESUME_CSS = """
body {
  font-family: Calibri, Arial, Helvetica, sans-serif;
  font-size: 11pt;
  line-height: 1.4;
  color: #2d3748;
  background: #ffffff;
  margin: 0.5in;
}
table { border-collapse: collapse; width: 100%; }
td { vertical-align: top; }
a, a.portfolio-link { color: #2c5282; text-decoration: underline; }

.header { text-align: center; border-bottom: 3px solid #1a365d; padding-bottom: 12px; margin-bottom: 16px; }
.name { font-size: 26pt; font-weight: bold; color: #1a365d; letter-spacing: 1px; margin-bottom: 6px; }
.contact-info { font-size: 10pt; color: #4a5568; }
.contact-info span { margin: 0 6px; }

.section { margin-bottom: 16px; page-break-inside: avoid; }
.section-title {
  font-size: 13pt;
  font-weight: bold;
  color: #1a365d;
  text-transform: uppercase;
  letter-spacing: 1px;
  border-bottom: 2px solid #3182ce;
  padding-bottom: 4px;
  margin-bottom: 10px;
}

.summary { font-style: italic; color: #4a5568; background: #f7fafc; border-left: 4px solid #3182ce; padding: 8px 12px; }

.competencies-table td { width: 50%; padding: 6px 10px; border: 1px solid #e2e8f0; }
.competency-title { font-weight: bold; color: #2c5282; margin-bottom: 3px; }
.competency-skills { font-size: 10pt; color: #4a5568; }

.job-entry { margin-bottom: 14px; page-break-inside: avoid; }
.job-header-table td { padding: 0; }
.job-title { font-weight: bold; color: #2c5282; }
.job-company { font-weight: bold; color: #2d3748; }
.job-dates { font-size: 10pt; color: #4a5568; font-style: italic; text-align: right; white-space: nowrap; }
.job-description ul { margin: 4px 0 0 20px; padding: 0; }
.job-description li { margin-bottom: 3px; }

.education-entry, .certification-entry { margin-bottom: 8px; }
.degree, .cert-name { font-weight: bold; color: #2c5282; }
.institution { color: #2d3748; }
.edu-dates { font-size: 10pt; color: #4a5568; font-style: italic; }

.achievements-list { margin: 0 0 0 20px; padding: 0; }
.achievements-list li { margin-bottom: 5px; }

.references-table td { width: 50%; padding: 8px; }
.reference-entry { background: #f7fafc; border: 1px solid #e2e8f0; padding: 10px; }
.reference-name { font-weight: bold; color: #2c5282; }
.reference-title { font-size: 10pt; color: #4a5568; }
.reference-contact { font-size: 9pt; color: #4a5568; margin-top: 4px; }

@media print {
  body { margin: 0; }
  .section, .job-entry { page-break-inside: avoid; }
}
@page { size: letter; margin: 0.5in; }
"""

COVER_LETTER_CSS = """
body {
  font-family: Georgia, 'Times New Roman', serif;
  font-size: 11pt;
  line-height: 1.55;
  color: #2d3748;
  background: #ffffff;
  margin: 0.75in;
}
table { border-collapse: collapse; width: 100%; }
td { vertical-align: top; }
a, a.portfolio-link { color: #2c5282; text-decoration: underline; }

.letter-header { border-bottom: 2px solid #1a365d; padding-bottom: 10px; margin-bottom: 24px; }
.sender-info { text-align: right; font-size: 10pt; color: #4a5568; }
.sender-name { font-size: 18pt; font-weight: bold; color: #1a365d; }
.date { margin-bottom: 18px; }
.recipient-info { margin-bottom: 18px; }
.subject-line { font-weight: bold; color: #1a365d; margin-bottom: 18px; }
.salutation { margin-bottom: 12px; }
.letter-body p { margin: 0 0 12px 0; text-align: justify; }
.signature { margin-top: 28px; }
.signature-name { font-weight: bold; color: #1a365d; margin-top: 36px; }

@media print { body { margin: 0; } }
@page { size: letter; margin: 0.75in; }
"""

RESUME_SECTION_ORDER = [
    "Header (.header) with the name (.name) and one contact line (.contact-info)",
    "Professional Summary (.section > .section-title + .summary)",
    "Core Competencies as a 2-column HTML table (.competencies-table), each cell a "
    ".competency-title plus .competency-skills",
    "Professional Experience: each role a .job-entry containing a one-row .job-header-table "
    "(title and company left, .job-dates right) followed by .job-description with a bullet list",
    "Education (.education-entry with .degree, .institution, .edu-dates)",
    "Certifications (.certification-entry with .cert-name)",
    "Key Achievements (.achievements-list)",
    "References (the pre-built block below, when supplied)",
]

COVER_LETTER_SECTION_ORDER = [
    "Letter header (.letter-header) holding .sender-info: .sender-name then address, phone and email lines",
    "Date (.date)",
    "Recipient info (.recipient-info)",
    "Subject line (.subject-line)",
    "Salutation (.salutation)",
    "Letter body (.letter-body) with one <p> per paragraph",
    "Signature (.signature) with the sign-off and .signature-name",
]

FORMATTER_SYSTEM_PROMPT = (
    "You are a professional resume formatter. You turn plain document text into complete, standalone HTML "
    "documents that import cleanly into Microsoft Word and Google Docs. You keep the wording of the content "
    "exactly as given and answer with HTML only."
)

_PLACEHOLDER_FIELDS = {
    "full_name": ["your name", "name", "full name", "candidate name", "your full name"],
    "email": ["your email", "email", "email address", "your email address"],
    "phone": ["your phone", "phone", "phone number", "your phone number"],
    "address": ["your address", "address", "street address", "city, state", "your city"],
    "linkedin": ["linkedin", "linkedin url", "your linkedin", "linkedin profile"],
    "portfolio": ["portfolio", "portfolio url", "your portfolio", "website"],
}

_QUOTE = r'(?:"|&quot;|&#34;|“|”)'
_MARKER_TEXT_FIRST = re.compile(
    rf"\[PORTFOLIO_LINK\s+text={_QUOTE}(?P<text>[^\]]*?){_QUOTE}\s+url={_QUOTE}(?P<url>[^\]]*?){_QUOTE}\s*\]",
)
_MARKER_URL_FIRST = re.compile(
    rf"\[PORTFOLIO_LINK\s+url={_QUOTE}(?P<url>[^\]]*?){_QUOTE}\s+text={_QUOTE}(?P<text>[^\]]*?){_QUOTE}\s*\]",
)
_MARKER_ANY = re.compile(r"\[PORTFOLIO_LINK\b[^\]]*\]")
_MARKER_TEXT_ATTR = re.compile(rf"text={_QUOTE}(?P<text>[^\]]*?){_QUOTE}")

_NOT_PROVIDED_ELEMENT = re.compile(
    r"<(?P<tag>li|p|span|div|td)\b[^>]*>\s*(?:[^<:]{1,40}:\s*)?not (?:provided|specified|available)\.?\s*</(?P=tag)>",
    re.IGNORECASE,
)
_NOT_PROVIDED_TEXT = re.compile(
    r"(?<=>)\s*[^<>:\n]{1,40}:\s*not (?:provided|specified|available)\.?\s*(?=<)", re.IGNORECASE
)
_BODY_OPEN = re.compile(r"<body\b[^>]*>", re.IGNORECASE)
_LEFTOVER_PLACEHOLDER = re.compile(r"\[(?:your|insert|add)\s[^\]<>]{1,40}\]", re.IGNORECASE)
_REFERENCES_TABLE = re.compile(
    r"<table\b[^>]*class=\"[^\"]*references-table[^\"]*\"[^>]*>[\s\S]*?</table>", re.IGNORECASE
)


def is_cover_letter(document_type: Union[DocumentType, str]) -> bool:
    if isinstance(document_type, DocumentType):
        return document_type is DocumentType.COVER_LETTER
    return "cover" in str(document_type).lower().replace("-", " ")


def css_for(document_type: Union[DocumentType, str]) -> str:
    return COVER_LETTER_CSS if is_cover_letter(document_type) else RESUME_CSS


def render_references_block(references: Optional[List[Reference]]) -> str:
    """
    References as a fixed 2-column table between sentinel comments. Built
    here rather than by the model so no referee is ever dropped or edited.
    """
    if not references:
        return ""

    def cell(ref: Optional[Reference]) -> str:
        if ref is None:
            return '<td style="width:50%;padding:8px;"></td>'
        parts = [f'<div class="reference-name" style="font-weight:bold;color:#2c5282;">{html.escape(ref.name)}</div>']
        if ref.title:
            parts.append(f'<div class="reference-title" style="font-size:10pt;color:#4a5568;">{html.escape(ref.title)}</div>')
        if ref.contact:
            parts.append(f'<div class="reference-contact" style="font-size:9pt;color:#4a5568;">{html.escape(ref.contact)}</div>')
        return (
            '<td style="width:50%;padding:8px;vertical-align:top;">'
            '<div class="reference-entry" style="background:#f7fafc;border:1px solid #e2e8f0;padding:10px;">'
            + "".join(parts) + "</div></td>"
        )

    rows = []
    for i in range(0, len(references), 2):
        pair = references[i:i + 2]
        right = pair[1] if len(pair) > 1 else None
        rows.append(f"<tr>{cell(pair[0])}{cell(right)}</tr>")

    return "\n".join([
        REFERENCES_START,
        '<table class="references-table" style="width:100%;border-collapse:collapse;">',
        *rows,
        "</table>",
        REFERENCES_END,
    ])


def _personal_info_lines(info: Optional[PersonalInfo]) -> str:
    if info is None:
        return "(none supplied: take the name and contact details from the content exactly as written there)"
    lines = []
    for label, value in (
        ("Name", info.full_name),
        ("Email", info.email),
        ("Phone", info.phone),
        ("Address", info.address),
        ("LinkedIn", info.linkedin),
        ("Portfolio", info.portfolio),
    ):
        if value:
            lines.append(f"{label}: {value}")
    return "\n".join(lines) or "(none supplied: take them from the content)"


def build_formatting_prompt(content: str, document_type: Union[DocumentType, str],
                            personal_info: Optional[PersonalInfo] = None,
                            styled_example: Optional[str] = None,
                            references: Optional[List[Reference]] = None,
                            portfolio: Optional[PortfolioData] = None) -> str:
    cover_letter = is_cover_letter(document_type)
    label = "cover letter" if cover_letter else "resume"
    order = COVER_LETTER_SECTION_ORDER if cover_letter else RESUME_SECTION_ORDER

    parts = [
        f"Transform the following {label} content into a beautifully styled HTML document.",
        f"## CSS FRAMEWORK (embed this exactly, inside a <style> tag in <head>):\n{css_for(document_type)}",
        "## EXACT PERSONAL INFORMATION\n"
        "Use these values exactly as written. Never output placeholder tokens such as [Your Name], [Email], "
        "[Phone], [Address] or [Date].\n" + _personal_info_lines(personal_info),
        f"## CONTENT TO FORMAT:\n{content.strip()}",
        f"## {label.upper()} STRUCTURE (in this order):\n"
        + "\n".join(f"{i}. {item}" for i, item in enumerate(order, start=1)),
    ]

    block = "" if cover_letter else render_references_block(references)
    if block:
        parts.append(
            "## REFERENCES BLOCK\n"
            f"Place this block, unmodified and including both {REFERENCES_START} and {REFERENCES_END} comments, "
            "inside the References section (after its .section-title). Do not restyle, reorder or rewrite it, and "
            "do not render the references a second time anywhere else.\n" + block
        )

    if portfolio is not None or portfolio_base_url(personal_info, portfolio):
        parts.append(
            "## PORTFOLIO LINKS\n"
            'The content contains markers of the form [PORTFOLIO_LINK text="..." url="..."]. Convert EVERY marker '
            f'into <a href="URL" class="portfolio-link" style="{LINK_STYLE}">TEXT</a> using the exact text and url '
            "attribute values. The link stays inline, inside the surrounding sentence or bullet: never on its own "
            "line, never in a separate section, never with generic anchor text like 'portfolio' or 'click here'. "
            "No [PORTFOLIO_LINK marker may remain in the output."
        )

    if styled_example and styled_example.strip():
        parts.append(
            "## VISUAL STYLE EXAMPLE\n"
            "Match the visual hierarchy, density and emphasis of this example. Its content is irrelevant; use "
            f"only the content above.\n{styled_example.strip()}"
        )

    parts.append(
        "## OUTPUT RULES\n"
        "- A complete HTML document beginning with <!DOCTYPE html>\n"
        "- Embed the full CSS framework above in a <style> tag\n"
        "- Layout with HTML tables only; no flexbox, no grid, no CSS variables\n"
        "- Direct hex colours only\n"
        "- Keep every sentence and bullet of the content; do not add, drop or reword facts\n"
        "- Return ONLY the HTML code, nothing else"
    )
    return "\n\n".join(parts)


# --- Post-processing ---

def strip_code_fences(text: str) -> str:
    """Removes ```html / ``` wrappers. Unfenced input is returned as-is."""
    if text is None:
        return ""
    stripped = text.strip()
    if not stripped.startswith("```") and not stripped.endswith("```"):
        return text
    return clean_code_fences(stripped, "html")


def trim_to_document(text: str) -> str:
    """Drops chatter before <!DOCTYPE html> and after </html>."""
    start = text.lower().find("<!doctype html")
    if start > 0:
        text = text[start:]
    end = text.lower().rfind("</html>")
    if end != -1:
        text = text[:end + len("</html>")]
    return text


def convert_portfolio_markers(text: str) -> str:
    """
    Replaces every [PORTFOLIO_LINK text="X" url="Y"] with an inline anchor.
    Malformed markers keep their text (if any) and lose the marker.
    """
    def to_anchor(match: re.Match) -> str:
        url = html.unescape(match.group("url")).strip()
        label = html.unescape(match.group("text")).strip()
        if not url:
            return html.escape(label, quote=False)
        return (
            f'<a href="{html.escape(url, quote=True)}" class="portfolio-link" style="{LINK_STYLE}">'
            f"{html.escape(label, quote=False)}</a>"
        )

    def drop_marker(match: re.Match) -> str:
        attr = _MARKER_TEXT_ATTR.search(match.group(0))
        return html.escape(html.unescape(attr.group("text")), quote=False) if attr else ""

    text = _MARKER_TEXT_FIRST.sub(to_anchor, text)
    text = _MARKER_URL_FIRST.sub(to_anchor, text)
    return _MARKER_ANY.sub(drop_marker, text)


def scrub_placeholders(text: str, personal_info: Optional[PersonalInfo] = None,
                       today: Optional[datetime] = None) -> str:
    """
    Fills [Your Name]-style tokens from PersonalInfo (or removes them) and
    deletes 'Not provided' filler the model may have copied through.
    Only the <body> is touched when there is one.
    """
    body_open = _BODY_OPEN.search(text)
    head, body = (text[:body_open.end()], text[body_open.end():]) if body_open else ("", text)

    info = personal_info or PersonalInfo()
    for field_name, tokens in _PLACEHOLDER_FIELDS.items():
        value = getattr(info, field_name) or ""
        for token in tokens:
            body = re.sub(rf"\[{re.escape(token)}\]", lambda _m, v=value: html.escape(v), body, flags=re.IGNORECASE)

    date_text = (today or datetime.now()).strftime("%B %d, %Y")
    body = re.sub(r"\[(?:today'?s )?date\]", date_text, body, flags=re.IGNORECASE)

    body = _NOT_PROVIDED_ELEMENT.sub("", body)
    body = _NOT_PROVIDED_TEXT.sub("", body)
    return head + _LEFTOVER_PLACEHOLDER.sub("", body)


def inject_references_block(text: str, references: Optional[List[Reference]]) -> str:
    """
    Makes sure the canonical references block is in the document exactly
    once: replaces the sentinel span (or a model-built references table), or
    appends a References section before </body>.
    """
    block = render_references_block(references)
    if not block:
        return text

    start = text.find(REFERENCES_START)
    end = text.find(REFERENCES_END, start + 1) if start != -1 else -1
    if start != -1 and end != -1:
        return text[:start] + block + text[end + len(REFERENCES_END):]

    if _REFERENCES_TABLE.search(text):
        logger.debug("References table found without sentinels; replacing it with the canonical block")
        return _REFERENCES_TABLE.sub(lambda _m: block, text, count=1)

    logger.warning("Formatted document has no references block; appending it")
    section = f'<div class="section"><div class="section-title">References</div>\n{block}\n</div>\n'
    body_end = text.lower().rfind("</body>")
    if body_end == -1:
        return text + "\n" + section
    return text[:body_end] + section + text[body_end:]


def find_residual_issues(text: str) -> List[str]:
    """Checks a finished document for leftovers the prompts forbid."""
    issues = []
    lowered = text.lower()
    if not lowered.lstrip().startswith("<!doctype html"):
        issues.append("document does not start with <!DOCTYPE html>")
    if "not provided" in lowered:
        issues.append("contains 'Not provided'")
    if "[portfolio_link" in lowered:
        issues.append("contains an unconverted [PORTFOLIO_LINK marker")
    if _LEFTOVER_PLACEHOLDER.search(text):
        issues.append("contains a bracketed placeholder")
    if "```" in text:
        issues.append("contains a markdown code fence")
    return issues


def postprocess_html(text: str, personal_info: Optional[PersonalInfo] = None,
                     references: Optional[List[Reference]] = None) -> str:
    text = strip_code_fences(text).strip()
    text = trim_to_document(text)
    text = convert_portfolio_markers(text)
    text = scrub_placeholders(text, personal_info)
    text = inject_references_block(text, references)
    return text.strip()


class HtmlFormattingClient:
    """
    Formats raw document text into styled HTML with the formatting provider,
    then repairs the result. Failures raise FormattingError for that
    document only.
    """
    def __init__(self, provider: LLMProvider):
        self.provider = provider

    def format(self, content: str, document_type: Union[DocumentType, str],
               personal_info: Optional[PersonalInfo] = None,
               styled_example: Optional[str] = None,
               references: Optional[List[Reference]] = None,
               portfolio: Optional[PortfolioData] = None) -> str:
        label = "cover letter" if is_cover_letter(document_type) else "resume"
        doc_value = DocumentType.COVER_LETTER.value if is_cover_letter(document_type) else DocumentType.RESUME.value
        if not content or not content.strip():
            raise FormattingError(f"No {label} content to format", doc_value)

        refs = None if is_cover_letter(document_type) else references
        prompt = build_formatting_prompt(content, document_type, personal_info, styled_example, refs, portfolio)
        if portfolio is not None:
            logger.debug(f"    > {len(extract_portfolio_anchors(portfolio))} portfolio anchor(s) available")

        logger.info(f"Formatting {label} as HTML with {self.provider.name}...")
        try:
            raw_html = self.provider.complete(FORMATTER_SYSTEM_PROMPT, prompt)
        except (UpstreamServiceError, EmptyResponseError) as e:
            raise FormattingError(f"HTML formatting failed for {label}: {e}", doc_value) from e

        result = postprocess_html(raw_html, personal_info, refs)
        if not result:
            raise FormattingError(f"Formatting model returned no HTML for {label}", doc_value)

        for issue in find_residual_issues(result):
            logger.warning(f"    [!] Formatted {label}: {issue}")
        return result
