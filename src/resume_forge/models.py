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
Data models for Resume Forge.

Attributes are snake_case; the JSON shape exchanged with the parsing
collaborator and the settings store is camelCase, hence the explicit
from_dict / to_dict pairs.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

# Portfolio JSON is kept as-is; only URLs are ever read from it.
PortfolioData = Union[Dict[str, Any], List[Any]]


def _str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _opt_str(value: Any) -> Optional[str]:
    text = _str(value)
    return text or None


def _str_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    return [_str(v) for v in value if _str(v)]


class DocumentType(str, Enum):
    """A single generated document kind."""
    RESUME = "resume"
    COVER_LETTER = "cover-letter"

    @property
    def label(self) -> str:
        """Human label used in prompts ('resume' / 'cover letter')."""
        return "cover letter" if self is DocumentType.COVER_LETTER else "resume"


class DocumentSelection(str, Enum):
    """The document set requested for a run."""
    RESUME = "resume"
    COVER_LETTER = "cover-letter"
    BOTH = "both"

    def document_types(self) -> List[DocumentType]:
        if self is DocumentSelection.RESUME:
            return [DocumentType.RESUME]
        if self is DocumentSelection.COVER_LETTER:
            return [DocumentType.COVER_LETTER]
        return [DocumentType.RESUME, DocumentType.COVER_LETTER]


@dataclass
class PersonalInfo:
    full_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    linkedin: Optional[str] = None
    portfolio: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PersonalInfo":
        data = data or {}
        return cls(
            full_name=_str(data.get("fullName") or data.get("name")),
            email=_str(data.get("email")),
            phone=_str(data.get("phone")),
            address=_str(data.get("address")),
            linkedin=_opt_str(data.get("linkedIn") or data.get("linkedin")),
            portfolio=_opt_str(data.get("portfolio")),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
        }
        if self.linkedin:
            out["linkedIn"] = self.linkedin
        if self.portfolio:
            out["portfolio"] = self.portfolio
        return out


@dataclass
class WorkExperience:
    """A role. Responsibilities keep the order they were supplied in."""
    id: str
    title: str
    company: str
    period: str
    responsibilities: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> "WorkExperience":
        return cls(
            id=_str(data.get("id")) or f"exp-{index + 1}",
            title=_str(data.get("title")),
            company=_str(data.get("company")),
            period=_str(data.get("period")),
            responsibilities=_str_list(data.get("responsibilities")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "period": self.period,
            "responsibilities": list(self.responsibilities),
        }


@dataclass
class Education:
    id: str
    degree: str
    institution: str
    period: str
    achievements: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> "Education":
        return cls(
            id=_str(data.get("id")) or f"edu-{index + 1}",
            degree=_str(data.get("degree")),
            institution=_str(data.get("institution")),
            period=_str(data.get("period")),
            achievements=_str_list(data.get("achievements")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "degree": self.degree,
            "institution": self.institution,
            "period": self.period,
            "achievements": list(self.achievements),
        }


@dataclass
class SkillCategory:
    category: str
    items: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "items": list(self.items)}


@dataclass
class Reference:
    """A referee. Reproduced verbatim, in order, in every generated résumé."""
    name: str
    title: str = ""
    contact: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Reference":
        return cls(
            name=_str(data.get("name")),
            title=_str(data.get("title") or data.get("relationship")),
            contact=_str(data.get("contact")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "title": self.title, "contact": self.contact}


def _skills_from(value: Any) -> List[SkillCategory]:
    """Accepts [{category, items}] or a flat list of strings."""
    if not value:
        return []
    categories: List[SkillCategory] = []
    loose: List[str] = []
    for item in value:
        if isinstance(item, dict):
            categories.append(SkillCategory(
                category=_str(item.get("category")) or "Skills",
                items=_str_list(item.get("items")),
            ))
        elif _str(item):
            loose.append(_str(item))
    if loose:
        categories.append(SkillCategory(category="Skills", items=loose))
    return categories


@dataclass
class ParsedResumeData:
    """
    Structured résumé as returned by the parsing collaborator.

    raw_text is mandatory and is the source of truth whenever a structured
    field is empty. The pipeline treats this object as read-only.
    """
    raw_text: str
    personal_info: Optional[PersonalInfo] = None
    work_experience: List[WorkExperience] = field(default_factory=list)
    education: List[Education] = field(default_factory=list)
    skills: List[SkillCategory] = field(default_factory=list)
    certifications: List[str] = field(default_factory=list)
    achievements: List[str] = field(default_factory=list)
    references: List[Reference] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedResumeData":
        personal = data.get("personalInfo")
        return cls(
            raw_text=data.get("rawText") or "",
            personal_info=PersonalInfo.from_dict(personal) if isinstance(personal, dict) else None,
            work_experience=[
                WorkExperience.from_dict(e, i)
                for i, e in enumerate(data.get("workExperience") or []) if isinstance(e, dict)
            ],
            education=[
                Education.from_dict(e, i)
                for i, e in enumerate(data.get("education") or []) if isinstance(e, dict)
            ],
            skills=_skills_from(data.get("skills")),
            certifications=_str_list(data.get("certifications")),
            achievements=_str_list(data.get("achievements")),
            references=[
                Reference.from_dict(r) for r in (data.get("references") or [])
                if isinstance(r, dict) and _str(r.get("name"))
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"rawText": self.raw_text}
        if self.personal_info:
            out["personalInfo"] = self.personal_info.to_dict()
        out["workExperience"] = [e.to_dict() for e in self.work_experience]
        out["education"] = [e.to_dict() for e in self.education]
        out["skills"] = [s.to_dict() for s in self.skills]
        out["certifications"] = list(self.certifications)
        out["achievements"] = list(self.achievements)
        out["references"] = [r.to_dict() for r in self.references]
        return out


@dataclass
class JobTarget:
    """
    A job to apply for. Created by CSV import or manual entry; afterwards
    only the selected flag changes.
    """
    id: str
    company_name: str
    position: str
    job_description: str = ""
    location: Optional[str] = None
    company_url: Optional[str] = None
    work_type: Optional[str] = None
    seniority: Optional[str] = None
    posted_at: Optional[str] = None
    selected: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JobTarget":
        return cls(
            id=_str(data.get("id")),
            company_name=_str(data.get("companyName")),
            position=_str(data.get("position")),
            job_description=data.get("jobDescription") or "",
            location=_opt_str(data.get("location")),
            company_url=_opt_str(data.get("companyUrl")),
            work_type=_opt_str(data.get("workType")),
            seniority=_opt_str(data.get("seniority")),
            posted_at=_opt_str(data.get("postedAt")),
            selected=bool(data.get("selected", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "companyName": self.company_name,
            "position": self.position,
            "jobDescription": self.job_description,
            "location": self.location,
            "companyUrl": self.company_url,
            "workType": self.work_type,
            "seniority": self.seniority,
            "postedAt": self.posted_at,
            "selected": self.selected,
        }


@dataclass
class ExampleTexts:
    """Optional example documents used only as prompt material."""
    example_resume_text: Optional[str] = None
    example_cover_letter_text: Optional[str] = None
    styled_resume_text: Optional[str] = None
    styled_cover_letter_text: Optional[str] = None

    def content_example(self, document_type: DocumentType) -> Optional[str]:
        if document_type is DocumentType.COVER_LETTER:
            return self.example_cover_letter_text
        return self.example_resume_text

    def styled_example(self, document_type: DocumentType) -> Optional[str]:
        if document_type is DocumentType.COVER_LETTER:
            return self.styled_cover_letter_text
        return self.styled_resume_text


@dataclass(frozen=True)
class GeneratedDocument:
    type: DocumentType
    raw_content: str
    html_content: str
    job_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "rawContent": self.raw_content,
            "htmlContent": self.html_content,
            "jobId": self.job_id,
        }


@dataclass
class RequestData:
    """The unit of work the pipeline processes for one job."""
    resume: ParsedResumeData
    job: JobTarget
    document_selection: DocumentSelection = DocumentSelection.BOTH
    examples: ExampleTexts = field(default_factory=ExampleTexts)
    portfolio: Optional[PortfolioData] = None


@dataclass
class GenerationFailure:
    job_id: str
    document_type: DocumentType
    error: str


@dataclass
class GenerationResult:
    """
    Outcome of a run. Partial failure shows up as fewer documents than
    requested plus entries in failures, never as an exception.
    """
    success: bool
    documents: List[GeneratedDocument] = field(default_factory=list)
    error: Optional[str] = None
    jobs_represented: int = 0
    requested_documents: int = 0
    failures: List[GenerationFailure] = field(default_factory=list)
    cancelled: bool = False
    state: str = "idle"

    @property
    def is_partial(self) -> bool:
        return len(self.documents) < self.requested_documents

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        if self.documents:
            out["documents"] = [d.to_dict() for d in self.documents]
        if self.error:
            out["error"] = self.error
        return out
