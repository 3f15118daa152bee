"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Any, List, Optional, Union

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator, model_validator

from jobwizard.utils.text import titleize


class ProviderType(str, Enum):
    """Supported job board providers."""

    GREENHOUSE = "greenhouse"
    LEVER = "lever"
    PERSONIO = "personio"
    REMOTEOK = "remoteok"
    REMOTIVE = "remotive"
    SMARTRECRUITERS = "smartrecruiters"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class PathStyle(str, Enum):
    """Layout of generated document directories."""

    SIMPLE = "simple"
    NESTED = "nested"


class SkillLevel(str, Enum):
    """Normalized proficiency tiers for declared skills."""

    EXPERT = "expert"
    INTERMEDIATE = "intermediate"
    BASIC = "basic"


# Provider aliases accepted in sources.yml
_PROVIDER_ALIASES = {
    "remote_ok": "remoteok",
    "remote-ok": "remoteok",
    "smart_recruiters": "smartrecruiters",
    "smart-recruiters": "smartrecruiters",
}


class SourceEntry(BaseModel):
    """A single job board source from sources.yml."""

    provider: ProviderType = Field(..., description="Job board provider")
    slug: str = Field(..., min_length=1, description="Board/company identifier at the provider")
    name: Optional[str] = Field(None, description="Display name (defaults to titleized slug)")
    active: bool = Field(True, description="Whether to fetch this source")

    @field_validator("provider", mode="before")
    @classmethod
    def normalize_provider(cls, v: Any) -> Any:
        """Accept provider names case-insensitively and with common separators."""
        if isinstance(v, str):
            key = v.strip().lower()
            return _PROVIDER_ALIASES.get(key, key)
        return v

    @field_validator("slug")
    @classmethod
    def strip_slug(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("slug cannot be empty or whitespace-only")
        return stripped

    @field_validator("active", mode="before")
    @classmethod
    def only_false_disables(cls, v: Any) -> bool:
        """Any value other than an explicit false keeps the source active."""
        return v is not False

    @model_validator(mode="after")
    def default_name(self):
        if not self.name or not self.name.strip():
            self.name = titleize(self.slug)
        else:
            self.name = self.name.strip()
        return self

    model_config = {"use_enum_values": True}


class SourcesConfig(BaseModel):
    """Root of sources.yml."""

    sources: List[SourceEntry] = Field(default_factory=list)

    def active_sources(self) -> List[SourceEntry]:
        """Return sources that are not explicitly disabled."""
        return [source for source in self.sources if source.active]


class Education(BaseModel):
    """Education entry from profile.yml."""

    degree: str
    institution: Optional[str] = None
    year: Optional[Union[int, str]] = None
    honors: Optional[str] = None


class ProfileConfig(BaseModel):
    """Candidate profile from profile.yml."""

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    summary: str = Field(..., min_length=1)
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin: Optional[str] = None
    education: List[Education] = Field(default_factory=list)
    core_skills: List[str] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v: str) -> str:
        """Validate email syntax without a DNS lookup."""
        try:
            return validate_email(v.strip(), check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email address '{v}': {e}") from e

    @field_validator("education", mode="before")
    @classmethod
    def wrap_single_education(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, dict):
            return [v]
        return v

    def contact_line(self) -> str:
        """Join the available contact fields with bullet separators."""
        parts = [self.email, self.phone, self.location, self.linkedin]
        return " • ".join(part for part in parts if part)


class SkillEntry(BaseModel):
    """A declared skill after format normalization."""

    name: str
    level: SkillLevel = SkillLevel.INTERMEDIATE
    context: Optional[str] = None

    model_config = {"use_enum_values": True}


class Position(BaseModel):
    """A work history entry from experience.yml."""

    company: str
    title: str
    dates: Optional[str] = None
    description: Optional[str] = None
    achievements: List[str] = Field(default_factory=list)

    @field_validator("achievements", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return v or []


class AdvancedConfig(BaseModel):
    """HTTP settings shared by all fetchers."""

    http_request_timeout: int = Field(
        30, ge=5, le=300, description="Request timeout for provider API calls (seconds)"
    )
    user_agent: str = Field(
        "JobWizard/1.0",
        min_length=1,
        description="User-Agent string for HTTP requests",
    )
    max_jobs_per_source: int = Field(
        500, ge=0, description="Maximum jobs to process per source (0 = unlimited)"
    )

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped


class AIWriterSettings(BaseModel):
    """Model and sampling settings for AI-backed writers."""

    writer: str = Field("templates", description="templates, openai or anthropic")
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    anthropic_model: str = "claude-3-5-haiku-latest"
    temperature_resume: float = Field(0.5, ge=0.0, le=2.0)
    temperature_cover_letter: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(800, ge=1)

    @field_validator("writer")
    @classmethod
    def lower_writer(cls, v: str) -> str:
        return (v or "templates").strip().lower()


class ModelPrice(BaseModel):
    """Price of a model in USD per one million tokens."""

    input: float = Field(..., ge=0)
    cached_input: float = Field(..., ge=0)
    output: float = Field(..., ge=0)
