"""Core domain models for postings, applications and usage tracking.

This module defines the data structures used throughout the application:
- JobRecord: normalized job returned by a fetcher, before persistence
- JobPosting: stored posting with its application status
- Application: a document generation request and its outcome
- SkillAssessment: per-posting answer to "do I have this skill?"
- BlockedCompany: database entry of the company blocklist
- ManualApplication: application tracked outside the job board
- AiUsage: token and cost accounting for one AI call
"""

import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from jobwizard.utils.timestamps import ensure_utc, utc_now


class JobStatus(str, Enum):
    """Application status of a stored posting."""

    SUGGESTED = "suggested"
    APPLIED = "applied"
    IGNORED = "ignored"
    EXPORTED = "exported"


# Statuses the user has acted on; fetch refreshes leave their content alone
USER_ACTED_STATUSES = (JobStatus.APPLIED.value, JobStatus.IGNORED.value, JobStatus.EXPORTED.value)


class ApplicationStatus(str, Enum):
    """Document generation status."""

    DRAFT = "draft"
    GENERATED = "generated"
    ERROR = "error"


class ManualApplicationStatus(str, Enum):
    """Status of an application tracked by hand."""

    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    REJECTED = "rejected"
    ACCEPTED = "accepted"
    OFFER = "offer"


def _required_text(v: str) -> str:
    if v is None or not str(v).strip():
        raise ValueError("Field cannot be empty or whitespace-only")
    return str(v).strip()


class JobRecord(BaseModel):
    """Normalized job from a fetcher.

    Fetchers produce these after cleaning HTML and mapping provider fields;
    the screener attaches ``score`` before the fetch service persists them.
    """

    company: str = Field(..., description="Company name")
    title: str = Field(..., description="Job title")
    description: str = Field("", description="Plain-text job description")
    location: Optional[str] = Field(None, description="Job location")
    remote: bool = Field(False, description="Whether the job is remote")
    url: str = Field(..., description="Direct link to the job posting")
    source: str = Field(..., description="Provider name")
    external_id: Optional[str] = Field(None, description="Job ID at the provider")
    posted_at: Optional[datetime] = Field(None, description="When the job was posted (UTC)")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Provider extras")
    score: float = Field(0.0, description="Relevance score from the ranker")

    @field_validator("company", "title", "url", "source")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return _required_text(v)

    @field_validator("description", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return (v or "").strip()

    @field_validator("external_id", mode="before")
    @classmethod
    def stringify_external_id(cls, v: Any) -> Optional[str]:
        if v is None or str(v).strip() == "":
            return None
        return str(v).strip()

    @field_validator("location")
    @classmethod
    def strip_location(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip()
        return stripped if stripped else None

    @field_validator("posted_at")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    model_config = {"json_schema_extra": {"example": {
        "company": "Acme",
        "title": "Senior Rails Engineer",
        "description": "Build and scale our Ruby on Rails platform...",
        "location": "Remote - US",
        "remote": True,
        "url": "https://boards.greenhouse.io/acme/jobs/12345",
        "source": "greenhouse",
        "external_id": "12345",
        "posted_at": "2025-11-01T12:00:00Z",
        "metadata": {"greenhouse_id": 12345, "departments": ["Engineering"]},
    }}}


class JobPosting(BaseModel):
    """Stored job posting.

    Status moves from ``suggested`` to applied, ignored or exported; each
    transition stamps its own timestamp.
    """

    id: Optional[int] = None
    company: str
    title: str
    description: str = ""
    location: Optional[str] = None
    remote: bool = False
    url: str
    source: Optional[str] = None
    external_id: Optional[str] = None
    score: float = 0.0
    metadata: Dict[str, Any] = Field(default_factory=dict)
    status: JobStatus = JobStatus.SUGGESTED
    posted_at: Optional[datetime] = None
    applied_at: Optional[datetime] = None
    exported_at: Optional[datetime] = None
    ignored_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("company", "title", "url")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return _required_text(v)

    @field_validator(
        "posted_at",
        "applied_at",
        "exported_at",
        "ignored_at",
        "last_seen_at",
        "created_at",
        "updated_at",
    )
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    model_config = {"use_enum_values": True, "validate_assignment": True}

    def mark_applied(self, now: Optional[datetime] = None) -> None:
        self.status = JobStatus.APPLIED
        self.applied_at = now or utc_now()

    def mark_exported(self, now: Optional[datetime] = None) -> None:
        self.status = JobStatus.EXPORTED
        self.exported_at = now or utc_now()

    def mark_ignored(self, now: Optional[datetime] = None) -> None:
        self.status = JobStatus.IGNORED
        self.ignored_at = now or utc_now()

    def generated_today(self, today: Optional[date] = None) -> bool:
        """True if documents were exported for this posting today (UTC)."""
        if self.exported_at is None:
            return False
        return self.exported_at.date() == (today or utc_now().date())

    @property
    def is_manual(self) -> bool:
        return not self.source or self.source == "manual"

    def summary(self, length: int = 200) -> str:
        if len(self.description) <= length:
            return self.description
        return self.description[: length - 3] + "..."


class Application(BaseModel):
    """Request to generate a resume and cover letter for one job description."""

    id: Optional[int] = None
    job_posting_id: Optional[int] = None
    company: str
    role: str
    job_description: str
    flags: Dict[str, Any] = Field(default_factory=dict)
    output_path: Optional[str] = None
    status: ApplicationStatus = ApplicationStatus.DRAFT
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("company", "role", "job_description")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return _required_text(v)

    @field_validator("flags", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Dict[str, Any]:
        return v or {}

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    model_config = {"use_enum_values": True, "validate_assignment": True}

    @property
    def documents_ready(self) -> bool:
        return self.status == ApplicationStatus.GENERATED.value and bool(self.output_path)

    @property
    def warnings(self) -> List[Dict[str, Any]]:
        return self.flags.get("warnings") or []

    @property
    def blocking_flags(self) -> List[Dict[str, Any]]:
        return self.flags.get("blocking") or []

    @property
    def info_flags(self) -> List[Dict[str, Any]]:
        return self.flags.get("info") or []

    @property
    def unverified_skills(self) -> List[Dict[str, Any]]:
        return self.flags.get("unverified_skills") or []


class SkillAssessment(BaseModel):
    """Whether the user has a skill a posting asks for, and how well.

    ``proficiency`` (1-5) is required when ``have`` is true and must be empty
    when it is false. Skill names are stored lowercased and stripped.
    """

    id: Optional[int] = None
    job_posting_id: int
    skill_name: str
    have: bool = False
    proficiency: Optional[int] = None

    @field_validator("skill_name")
    @classmethod
    def normalize_skill_name(cls, v: str) -> str:
        return _required_text(v).lower()

    @model_validator(mode="after")
    def check_proficiency(self):
        if self.have:
            if self.proficiency is None:
                raise ValueError("proficiency is required when have is true")
            if not 1 <= self.proficiency <= 5:
                raise ValueError(f"proficiency must be between 1 and 5, got {self.proficiency}")
        elif self.proficiency is not None:
            raise ValueError("proficiency must be empty when have is false")
        return self


class BlockedCompany(BaseModel):
    """Company blocklist entry; ``pattern`` entries are regexes."""

    id: Optional[int] = None
    name: str
    pattern: bool = False
    reason: str
    created_at: Optional[datetime] = None

    @field_validator("name", "reason")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return _required_text(v)

    def matches(self, company: Optional[str]) -> bool:
        """Case-insensitive regex search or exact name match."""
        if not company or not company.strip():
            return False

        if self.pattern:
            try:
                return re.search(self.name, company, re.IGNORECASE) is not None
            except re.error:
                return self.name.lower() in company.lower()

        return company.lower() == self.name.lower()


class ManualApplication(BaseModel):
    """Application submitted outside the tracked job boards."""

    id: Optional[int] = None
    company: str
    position: str
    applied_at: date
    status: ManualApplicationStatus = ManualApplicationStatus.SUBMITTED
    notes: Optional[str] = None
    job_url: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("company", "position")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return _required_text(v)

    model_config = {"use_enum_values": True, "validate_assignment": True}

    @property
    def summary(self) -> str:
        return f"{self.company} - {self.position}"


class AiUsage(BaseModel):
    """Token usage and cost of one AI call."""

    id: Optional[int] = None
    model: str
    feature: str
    prompt_tokens: int = Field(0, ge=0)
    completion_tokens: int = Field(0, ge=0)
    cached_input_tokens: int = Field(0, ge=0)
    cost_cents: int = Field(0, ge=0)
    meta: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    @field_validator("model", "feature")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return _required_text(v)

    @field_validator("created_at")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @property
    def cost_dollars(self) -> float:
        return self.cost_cents / 100.0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens + self.cached_input_tokens
