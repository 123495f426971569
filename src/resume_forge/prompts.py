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
Content-generation prompts for résumés and cover letters.

Prompts are assembled as a PromptSpec (named sections) and rendered to a
single string at the end, so each section can be inspected in tests and a
required section that comes out empty fails loudly instead of silently
disappearing from the prompt.

Missing structured data is never rendered as a placeholder. The model is
told to pull the fact from the FULL RESUME TEXT section instead.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional
from urllib.parse import urlparse

from resume_forge.exceptions import PromptError
from resume_forge.models import (
    JobTarget,
    ParsedResumeData,
    PersonalInfo,
    PortfolioData,
    Reference,
)

logger = logging.getLogger(__name__)

MAX_RAW_TEXT_CHARS = 30000
MAX_ANCHORS = 25

RAW_TEXT_HEADING = "FULL RESUME TEXT"

ACADEMIC_SCORES_RULE = (
    "Academic scores, grades, GPAs, honours and academic awards belong ONLY in the EDUCATION section. "
    "Never repeat them in the summary, competencies, experience or achievements."
)

NO_DUPLICATION_RULES = [
    "Every concrete fact (a metric, a named project, a client, an academic score) appears in exactly ONE section.",
    "Quantified results from a role go in that role's WORK EXPERIENCE bullets. Do not restate them elsewhere.",
    "KEY ACHIEVEMENTS holds only accomplishments that are not already a bullet under a role "
    "(awards, publications, cross-role results).",
    "CORE COMPETENCIES lists skills and tools only, never outcomes or numbers.",
    "The PROFESSIONAL SUMMARY may carry at most one quantified achievement, and that number must not "
    "appear again in the same wording anywhere else.",
    ACADEMIC_SCORES_RULE,
]

SUMMARY_RULES = [
    "Write 2 to 4 sentences, no more.",
    "Sentence 1: who the candidate is (professional identity, years of experience, core domain).",
    "Sentence 2: why they fit THIS role, using keywords taken from the job posting.",
    "Optional sentence 3: a single quantified achievement that matters for this role.",
    "Optional sentence 4: only if needed to name a directly relevant specialism. No generic traits.",
]

VERBATIM_RULES = [
    "Reproduce every entry under EDUCATION, CERTIFICATIONS and REFERENCES exactly as supplied: "
    "same names, titles, institutions, dates and contact details, same order.",
    "Do not drop, merge, shorten, paraphrase or reorder these entries, even when space is tight.",
    "If one of these sections was not supplied in structured form, copy the equivalent entries from the "
    f"{RAW_TEXT_HEADING} section word for word.",
]

NO_PLACEHOLDER_RULE = (
    "Never write a placeholder for missing information (no 'N/A', no bracketed blanks, no 'to be added'). "
    "If a fact is absent from both the structured data and the full resume text, leave it out."
)

COVER_LETTER_BANNED_OPENERS = [
    "I am writing to apply",
    "I am writing to express my interest",
    "I am excited to apply",
    "I was thrilled to see",
    "Please accept this letter",
    "As a highly motivated",
]

COVER_LETTER_BANNED_WORDS = [
    "passionate",
    "dynamic",
    "synergy",
    "results-driven",
    "team player",
    "go-getter",
    "hard-working",
    "detail-oriented",
    "self-starter",
    "think outside the box",
]

GENERIC_LINK_PHRASES = ["view my portfolio", "see my portfolio", "click here", "portfolio link", "learn more"]

_TOPIC_KEYS = ("title", "name", "label", "heading", "section", "topic")
_URL_KEYS = {"url", "href", "link", "links", "anchor", "permalink", "website"}
_URL_PATTERN = re.compile(r"https?://[^\s\"'<>\]\)]+")


@dataclass
class PromptSection:
    heading: str
    body: str
    required: bool = False

    def render(self) -> str:
        return f"{self.heading}:\n{self.body.strip()}"


@dataclass
class PromptSpec:
    """An ordered set of named prompt sections plus an opening instruction."""
    intro: str
    sections: List[PromptSection] = field(default_factory=list)

    def add(self, heading: str, body: Optional[str], required: bool = False) -> "PromptSpec":
        self.sections.append(PromptSection(heading, body or "", required))
        return self

    def section(self, heading: str) -> Optional[PromptSection]:
        for section in self.sections:
            if section.heading == heading:
                return section
        return None

    def render(self) -> str:
        blocks = [self.intro.strip()]
        for section in self.sections:
            if not section.body.strip():
                if section.required:
                    raise PromptError(f"Required prompt section '{section.heading}' is empty")
                continue
            blocks.append(section.render())
        return "\n\n".join(blocks)


@dataclass
class PortfolioAnchor:
    topic: str
    url: str


def _numbered(rules: List[str]) -> str:
    return "\n".join(f"{i}. {rule}" for i, rule in enumerate(rules, start=1))


def _bullets(items: List[str]) -> str:
    return "\n".join(f"• {item}" for item in items)


def _extract_from_raw(what: str) -> str:
    return (
        f"No structured {what} was supplied. Extract the candidate's {what} from the "
        f"{RAW_TEXT_HEADING} section below, exactly as written there. If it does not appear there "
        f"either, leave it out entirely."
    )


def _humanize(fragment: str) -> str:
    words = re.sub(r"[-_]+", " ", fragment).strip()
    return words[:1].upper() + words[1:] if words else fragment


# --- Portfolio anchors ---

def _urls_in(text: str) -> List[str]:
    return [u.rstrip(".,;") for u in _URL_PATTERN.findall(text)]


def extract_portfolio_anchors(portfolio: Optional[PortfolioData]) -> List[PortfolioAnchor]:
    """
    Collects section-anchor URLs (http(s) URLs with a #fragment) from an
    arbitrary portfolio JSON blob, in document order, one entry per URL.

    The topic for each URL is the nearest descriptive sibling value
    (title/name/label/...), else the key that held it, else the fragment.
    """
    anchors: List[PortfolioAnchor] = []
    seen = set()

    def add(url: str, topic: Optional[str]) -> None:
        parsed = urlparse(url)
        if not parsed.fragment or url in seen:
            return
        seen.add(url)
        anchors.append(PortfolioAnchor(topic=(topic or _humanize(parsed.fragment)).strip(), url=url))

    def walk(node: Any, parent_key: Optional[str]) -> None:
        if isinstance(node, dict):
            topic = next(
                (node[k].strip() for k in _TOPIC_KEYS
                 if isinstance(node.get(k), str) and node[k].strip() and not _URL_PATTERN.match(node[k].strip())),
                None,
            )
            for key, value in node.items():
                if isinstance(value, str):
                    key_topic = None if key.lower() in _URL_KEYS else _humanize(key)
                    for url in _urls_in(value):
                        add(url, topic or key_topic)
                else:
                    walk(value, key)
        elif isinstance(node, list):
            for item in node:
                if isinstance(item, str):
                    parent_topic = None if not parent_key or parent_key.lower() in _URL_KEYS else _humanize(parent_key)
                    for url in _urls_in(item):
                        add(url, parent_topic)
                else:
                    walk(item, parent_key)

    walk(portfolio, None)
    return anchors[:MAX_ANCHORS]


def _first_url(portfolio: Optional[PortfolioData]) -> Optional[str]:
    if portfolio is None:
        return None
    if isinstance(portfolio, dict):
        for key in ("url", "website", "homepage", "baseUrl", "base_url"):
            value = portfolio.get(key)
            if isinstance(value, str) and _URL_PATTERN.match(value.strip()):
                return value.strip()
    return None


def portfolio_base_url(personal_info: Optional[PersonalInfo], portfolio: Optional[PortfolioData] = None) -> Optional[str]:
    if personal_info and personal_info.portfolio:
        return personal_info.portfolio
    return _first_url(portfolio)


def portfolio_section(personal_info: Optional[PersonalInfo], portfolio: Optional[PortfolioData]) -> str:
    """
    Instructions for embedding [PORTFOLIO_LINK] markers, or "" when there is
    no portfolio to link to.
    """
    marker = '[PORTFOLIO_LINK text="descriptive anchor text" url="exact url"]'
    banned = ", ".join(f"'{p}'" for p in GENERIC_LINK_PHRASES)
    anchors = extract_portfolio_anchors(portfolio) if portfolio is not None else []

    if anchors:
        guide = "\n".join(f"- {a.topic} → {a.url}" for a in anchors)
        return (
            f"Embed links to specific sections of the candidate's portfolio INLINE using this exact marker "
            f"syntax:\n{marker}\n\n"
            f"MATCHING GUIDE (topic → url):\n{guide}\n\n"
            + _numbered([
                "When a bullet or sentence describes work that matches a topic in the guide, put a marker inside "
                "that sentence, wrapping the words that name the work.",
                "Use only URLs from the guide, copied exactly. Each URL at most once.",
                "Use between 3 and 6 markers in total, on the strongest matches only.",
                "The text attribute must describe the specific work (e.g. the project or skill name). "
                f"Never use generic phrases such as {banned}.",
                "Never put a marker on a line by itself or in a separate 'Portfolio' section.",
            ])
        )

    base_url = portfolio_base_url(personal_info, portfolio)
    if base_url:
        return (
            f"The candidate has a portfolio at {base_url}. Embed 2 to 4 natural inline links to it using this "
            f"exact marker syntax:\n{marker}\n\n"
            + _numbered([
                f"Use {base_url} as the url attribute, exactly as written.",
                "Wrap the words in a sentence that name a concrete piece of work the portfolio would show.",
                f"Never use generic phrases such as {banned}.",
                "Never put a marker on a line by itself.",
            ])
        )
    return ""


# --- Shared renderers ---

def _personal_info_body(info: Optional[PersonalInfo]) -> str:
    if info is None:
        return _extract_from_raw("contact details (full name, email, phone, address, LinkedIn and portfolio URLs)")
    fields = [
        ("Name", info.full_name, "full name"),
        ("Email", info.email, "email address"),
        ("Phone", info.phone, "phone number"),
        ("Address", info.address, "address"),
        ("LinkedIn", info.linkedin, "LinkedIn URL"),
        ("Portfolio", info.portfolio, "portfolio URL"),
    ]
    lines = []
    for label, value, what in fields:
        if value:
            lines.append(f"{label}: {value}")
        else:
            lines.append(f"{label}: extract the {what} from the {RAW_TEXT_HEADING} section; omit it if absent")
    return "\n".join(lines)


def _target_job_body(job: JobTarget) -> str:
    lines = [f"Company: {job.company_name}", f"Position: {job.position}"]
    for label, value in (
        ("Location", job.location),
        ("Work Type", job.work_type),
        ("Seniority", job.seniority),
        ("Company URL", job.company_url),
    ):
        if value:
            lines.append(f"{label}: {value}")
    description = job.job_description.strip() if job.job_description else ""
    lines.append(f"Job Description:\n{description or '(no description supplied; rely on the position title)'}")
    return "\n".join(lines)


def _raw_text_body(resume: ParsedResumeData) -> str:
    text = (resume.raw_text or "").strip()
    if len(text) > MAX_RAW_TEXT_CHARS:
        logger.debug(f"Raw resume text truncated from {len(text)} to {MAX_RAW_TEXT_CHARS} characters")
        text = text[:MAX_RAW_TEXT_CHARS]
    return text


def _work_experience_body(resume: ParsedResumeData, max_roles: Optional[int] = None,
                          max_bullets: Optional[int] = None) -> str:
    roles = resume.work_experience[:max_roles] if max_roles else resume.work_experience
    if not roles:
        return _extract_from_raw("work experience (every role with title, company, dates and responsibilities)")
    blocks = []
    for exp in roles:
        header = f"{exp.title} at {exp.company}"
        if exp.period:
            header += f" ({exp.period})"
        items = exp.responsibilities[:max_bullets] if max_bullets else exp.responsibilities
        blocks.append(header + ("\n" + _bullets(items) if items else ""))
    return "\n\n".join(blocks)


def _education_body(resume: ParsedResumeData) -> str:
    if not resume.education:
        return _extract_from_raw("education history (every degree, institution, dates and academic results)")
    blocks = []
    for edu in resume.education:
        line = f"{edu.degree} - {edu.institution}"
        if edu.period:
            line += f" ({edu.period})"
        if edu.achievements:
            line += "\n" + _bullets(edu.achievements)
        blocks.append(line)
    return "Reproduce verbatim:\n" + "\n".join(blocks)


def _skills_body(resume: ParsedResumeData) -> str:
    categories = [s for s in resume.skills if s.items]
    if not categories:
        return _extract_from_raw("skills")
    return "\n".join(f"{s.category}: {', '.join(s.items)}" for s in categories)


def _certifications_body(resume: ParsedResumeData) -> str:
    if not resume.certifications:
        return _extract_from_raw("certifications and licences")
    return "Reproduce verbatim:\n" + _bullets(resume.certifications)


def _achievements_body(resume: ParsedResumeData, limit: Optional[int] = None) -> str:
    items = resume.achievements[:limit] if limit else resume.achievements
    if not items:
        return _extract_from_raw("key achievements")
    return _bullets(items)


def format_reference(ref: Reference) -> str:
    return " | ".join(part for part in (ref.name, ref.title, ref.contact) if part)


def _references_body(resume: ParsedResumeData) -> str:
    if not resume.references:
        return _extract_from_raw("references (each referee's name, title or relationship, and contact details)")
    lines = [f"{i}. {format_reference(ref)}" for i, ref in enumerate(resume.references, start=1)]
    return (
        f"Reproduce ALL {len(resume.references)} references verbatim, in this order:\n" + "\n".join(lines)
    )


def _example_body(example_text: Optional[str], kind: str) -> str:
    if not example_text or not example_text.strip():
        return ""
    return (
        f"The following {kind} shows the tone, structure and level of detail to aim for. Match its style only; "
        f"do not copy any of its facts, names or numbers.\n\n{example_text.strip()[:MAX_RAW_TEXT_CHARS]}"
    )


# --- Résumé ---

def resume_prompt_spec(resume: ParsedResumeData, job: JobTarget, example_text: Optional[str] = None,
                       portfolio: Optional[PortfolioData] = None) -> PromptSpec:
    name = resume.personal_info.full_name if resume.personal_info and resume.personal_info.full_name else "the candidate"
    spec = PromptSpec(
        intro=(
            f"Create a professional resume for {name}, tailored for the {job.position} position at "
            f"{job.company_name}."
        )
    )
    spec.add("CANDIDATE INFORMATION", _personal_info_body(resume.personal_info), required=True)
    spec.add("WORK EXPERIENCE", _work_experience_body(resume), required=True)
    spec.add("EDUCATION", _education_body(resume), required=True)
    spec.add("SKILLS", _skills_body(resume), required=True)
    spec.add("CERTIFICATIONS", _certifications_body(resume), required=True)
    spec.add("KEY ACHIEVEMENTS", _achievements_body(resume), required=True)
    spec.add("REFERENCES", _references_body(resume), required=True)
    spec.add("TARGET JOB", _target_job_body(job), required=True)
    spec.add("PORTFOLIO LINKS", portfolio_section(resume.personal_info, portfolio))
    spec.add("CONTENT STYLE EXAMPLE", _example_body(example_text, "example resume"))
    spec.add(RAW_TEXT_HEADING, _raw_text_body(resume), required=True)
    spec.add("PROFESSIONAL SUMMARY RULES", _numbered(SUMMARY_RULES), required=True)
    spec.add("NO-DUPLICATION RULES", _numbered(NO_DUPLICATION_RULES), required=True)
    spec.add("VERBATIM FIDELITY RULES", _numbered(VERBATIM_RULES), required=True)
    spec.add("WRITING RULES", _numbered([
        "Highlight the experience most relevant to this specific role; keep every role, but give relevant ones "
        "more bullets.",
        "Start bullets with strong action verbs and keep the candidate's real numbers.",
        "Order skills so the ones the job posting asks for come first.",
        "Keep an ATS-friendly, professional tone throughout.",
        NO_PLACEHOLDER_RULE,
    ]), required=True)
    spec.add("OUTPUT FORMAT", (
        "Plain structured text with these section headers, in this order: name and contact line, "
        "PROFESSIONAL SUMMARY, CORE COMPETENCIES, PROFESSIONAL EXPERIENCE, EDUCATION, CERTIFICATIONS, "
        "KEY ACHIEVEMENTS, REFERENCES. Omit a section only if it has no content at all. No markdown "
        "code fences, no commentary before or after the resume."
    ), required=True)
    return spec


def build_resume_prompt(resume: ParsedResumeData, job: JobTarget, example_text: Optional[str] = None,
                        portfolio: Optional[PortfolioData] = None) -> str:
    return resume_prompt_spec(resume, job, example_text, portfolio).render()


# --- Cover letter ---

def _return_address_body(info: Optional[PersonalInfo], job: JobTarget) -> str:
    recipient = [f"Hiring Team, {job.company_name}"]
    if job.location:
        recipient.append(job.location)
    lines = [
        "Start the letter with a return address block, each item on its own line, exactly as given:",
    ]
    if info and (info.full_name or info.address or info.phone or info.email):
        for value in (info.full_name, info.address, info.phone, info.email):
            if value:
                lines.append(f"  {value}")
        missing = [label for label, value in (
            ("full name", info.full_name), ("address", info.address),
            ("phone number", info.phone), ("email", info.email),
        ) if not value]
        if missing:
            lines.append(
                f"  (add the {', '.join(missing)} from the {RAW_TEXT_HEADING} section if they appear there)"
            )
    else:
        lines.append(
            f"  the candidate's full name, address, phone and email, taken from the {RAW_TEXT_HEADING} section"
        )
    lines.append("Then today's date, then the recipient block:")
    lines.extend(f"  {line}" for line in recipient)
    lines.append(f"Then a subject line: Application for {job.position}")
    return "\n".join(lines)


def cover_letter_prompt_spec(resume: ParsedResumeData, job: JobTarget, example_text: Optional[str] = None,
                             portfolio: Optional[PortfolioData] = None) -> PromptSpec:
    info = resume.personal_info
    name = info.full_name if info and info.full_name else "the candidate"
    openers = "; ".join(f'"{o}..."' for o in COVER_LETTER_BANNED_OPENERS)
    words = ", ".join(f'"{w}"' for w in COVER_LETTER_BANNED_WORDS)

    spec = PromptSpec(
        intro=f"Write a compelling cover letter for {name} applying for the {job.position} position at {job.company_name}."
    )
    spec.add("CANDIDATE DETAILS", _personal_info_body(info), required=True)
    spec.add("RETURN ADDRESS BLOCK", _return_address_body(info, job), required=True)
    spec.add("KEY EXPERIENCE", _work_experience_body(resume, max_roles=3, max_bullets=3), required=True)
    spec.add("KEY ACHIEVEMENTS", _achievements_body(resume, limit=5), required=True)
    spec.add("TARGET JOB", _target_job_body(job), required=True)
    spec.add("PORTFOLIO LINKS", portfolio_section(info, portfolio))
    spec.add("CONTENT STYLE EXAMPLE", _example_body(example_text, "example cover letter"))
    spec.add(RAW_TEXT_HEADING, _raw_text_body(resume), required=True)
    spec.add("WRITING RULES", _numbered([
        "3 to 4 paragraphs, roughly 300 to 400 words for the body.",
        "Open with a specific hook about this company or role. Forbidden openers: " + openers,
        "Forbidden filler words and clichés anywhere in the letter: " + words + ".",
        "Weave 2 or 3 concrete achievements (with their real numbers) into flowing prose that ties each one to "
        "a requirement in the job description. No bullet points or lists in the letter body.",
        "Show understanding of what the company does and what the role needs, using keywords from the posting.",
        "Close with a confident, specific call to action, then 'Sincerely,' and the candidate's full name.",
        NO_PLACEHOLDER_RULE,
    ]), required=True)
    spec.add("OUTPUT FORMAT", (
        "Plain text business letter: return address block, date, recipient block, subject line, salutation, "
        "body paragraphs, sign-off. No markdown code fences, no commentary before or after the letter."
    ), required=True)
    return spec


def build_cover_letter_prompt(resume: ParsedResumeData, job: JobTarget, example_text: Optional[str] = None,
                              portfolio: Optional[PortfolioData] = None) -> str:
    return cover_letter_prompt_spec(resume, job, example_text, portfolio).render()
