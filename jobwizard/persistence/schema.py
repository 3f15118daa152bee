"""Database schema definition and ORM models.

Each ORM model converts to and from its pydantic domain model with
``to_domain()`` / ``from_domain()``. Timestamps are stored as ISO 8601 UTC
strings so ordering and range filters work the same on every backend.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    inspect,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from jobwizard.domain.models import (
    AiUsage,
    Application,
    ApplicationStatus,
    BlockedCompany,
    JobPosting,
    JobStatus,
    ManualApplication,
    ManualApplicationStatus,
    SkillAssessment,
)

logger = logging.getLogger(__name__)

Base = declarative_base()


def _enum_check(column: str, enum_cls, name: str) -> CheckConstraint:
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return CheckConstraint(f"{column} IN ({values})", name=name)


class JobPostingModel(Base):
    """ORM model for the job_postings table."""

    __tablename__ = "job_postings"

    id = Column(Integer, primary_key=True, autoincrement=True)

    company = Column(String(255), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    location = Column(String(255), nullable=True)
    remote = Column(Boolean, nullable=False, default=False)
    url = Column(Text, nullable=False, unique=True)

    source = Column(String(50), nullable=True)
    external_id = Column(String(255), nullable=True)
    score = Column(Float, nullable=False, default=0.0)
    # "metadata" is reserved on declarative classes
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    status = Column(String(20), nullable=False, default=JobStatus.SUGGESTED.value)

    posted_at = Column(String(50), nullable=True)
    applied_at = Column(String(50), nullable=True)
    exported_at = Column(String(50), nullable=True)
    ignored_at = Column(String(50), nullable=True)
    last_seen_at = Column(String(50), nullable=True)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        _enum_check("status", JobStatus, "ck_job_postings_status"),
        Index(
            "idx_job_postings_source_external_id",
            "source",
            "external_id",
            unique=True,
            sqlite_where=text("external_id IS NOT NULL"),
            postgresql_where=text("external_id IS NOT NULL"),
        ),
        Index("idx_job_postings_status", "status"),
        Index("idx_job_postings_company", "company"),
        Index("idx_job_postings_last_seen", "last_seen_at"),
        Index("idx_job_postings_created", "created_at"),
    )

    def to_domain(self) -> JobPosting:
        return JobPosting(
            id=self.id,
            company=self.company,
            title=self.title,
            description=self.description or "",
            location=self.location,
            remote=bool(self.remote),
            url=self.url,
            source=self.source,
            external_id=self.external_id,
            score=self.score or 0.0,
            metadata=self.metadata_ or {},
            status=self.status,
            posted_at=_parse_datetime(self.posted_at),
            applied_at=_parse_datetime(self.applied_at),
            exported_at=_parse_datetime(self.exported_at),
            ignored_at=_parse_datetime(self.ignored_at),
            last_seen_at=_parse_datetime(self.last_seen_at),
            created_at=_parse_datetime(self.created_at),
            updated_at=_parse_datetime(self.updated_at),
        )

    @classmethod
    def from_domain(cls, posting: JobPosting) -> "JobPostingModel":
        model = cls(id=posting.id)
        model.apply(posting)
        return model

    def apply(self, posting: JobPosting) -> None:
        """Copy every mutable field from a domain posting."""
        self.company = posting.company
        self.title = posting.title
        self.description = posting.description
        self.location = posting.location
        self.remote = posting.remote
        self.url = posting.url
        self.source = posting.source
        self.external_id = posting.external_id
        self.score = posting.score
        self.metadata_ = dict(posting.metadata)
        self.status = posting.status
        self.posted_at = _format_datetime(posting.posted_at)
        self.applied_at = _format_datetime(posting.applied_at)
        self.exported_at = _format_datetime(posting.exported_at)
        self.ignored_at = _format_datetime(posting.ignored_at)
        self.last_seen_at = _format_datetime(posting.last_seen_at)
        if posting.created_at:
            self.created_at = _format_datetime(posting.created_at)
        if posting.updated_at:
            self.updated_at = _format_datetime(posting.updated_at)


class ApplicationModel(Base):
    """ORM model for the applications table."""

    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_posting_id = Column(
        Integer, ForeignKey("job_postings.id", ondelete="SET NULL"), nullable=True
    )
    company = Column(String(255), nullable=False)
    role = Column(String(255), nullable=False)
    job_description = Column(Text, nullable=False)
    flags = Column(JSON, nullable=False, default=dict)
    output_path = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ApplicationStatus.DRAFT.value)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        _enum_check("status", ApplicationStatus, "ck_applications_status"),
        Index("idx_applications_job_posting", "job_posting_id"),
        Index("idx_applications_status", "status"),
    )

    def to_domain(self) -> Application:
        return Application(
            id=self.id,
            job_posting_id=self.job_posting_id,
            company=self.company,
            role=self.role,
            job_description=self.job_description,
            flags=self.flags or {},
            output_path=self.output_path,
            status=self.status,
            created_at=_parse_datetime(self.created_at),
            updated_at=_parse_datetime(self.updated_at),
        )

    @classmethod
    def from_domain(cls, application: Application) -> "ApplicationModel":
        return cls(
            id=application.id,
            job_posting_id=application.job_posting_id,
            company=application.company,
            role=application.role,
            job_description=application.job_description,
            flags=dict(application.flags),
            output_path=application.output_path,
            status=application.status,
            created_at=_format_datetime(application.created_at),
            updated_at=_format_datetime(application.updated_at),
        )


class SkillAssessmentModel(Base):
    """ORM model for the job_skill_assessments table."""

    __tablename__ = "job_skill_assessments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_posting_id = Column(
        Integer, ForeignKey("job_postings.id", ondelete="CASCADE"), nullable=False
    )
    skill_name = Column(String(255), nullable=False)
    have = Column(Boolean, nullable=False, default=False)
    proficiency = Column(Integer, nullable=True)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint("job_posting_id", "skill_name", name="uq_assessment_posting_skill"),
        CheckConstraint(
            "(have AND proficiency BETWEEN 1 AND 5) OR (NOT have AND proficiency IS NULL)",
            name="ck_assessment_proficiency",
        ),
        Index("idx_assessments_skill", "skill_name"),
    )

    def to_domain(self) -> SkillAssessment:
        return SkillAssessment(
            id=self.id,
            job_posting_id=self.job_posting_id,
            skill_name=self.skill_name,
            have=bool(self.have),
            proficiency=self.proficiency,
        )

    @classmethod
    def from_domain(cls, assessment: SkillAssessment) -> "SkillAssessmentModel":
        return cls(
            id=assessment.id,
            job_posting_id=assessment.job_posting_id,
            skill_name=assessment.skill_name,
            have=assessment.have,
            proficiency=assessment.proficiency,
        )


class BlockedCompanyModel(Base):
    """ORM model for the blocked_companies table."""

    __tablename__ = "blocked_companies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    pattern = Column(Boolean, nullable=False, default=False)
    reason = Column(String(500), nullable=False)
    created_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_blocked_companies_name", "name"),)

    def to_domain(self) -> BlockedCompany:
        return BlockedCompany(
            id=self.id,
            name=self.name,
            pattern=bool(self.pattern),
            reason=self.reason,
            created_at=_parse_datetime(self.created_at),
        )

    @classmethod
    def from_domain(cls, blocked: BlockedCompany) -> "BlockedCompanyModel":
        return cls(
            id=blocked.id,
            name=blocked.name,
            pattern=blocked.pattern,
            reason=blocked.reason,
            created_at=_format_datetime(blocked.created_at),
        )


class ManualApplicationModel(Base):
    """ORM model for the manual_applications table."""

    __tablename__ = "manual_applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company = Column(String(255), nullable=False)
    position = Column(String(255), nullable=False)
    applied_at = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False, default=ManualApplicationStatus.SUBMITTED.value)
    notes = Column(Text, nullable=True)
    job_url = Column(Text, nullable=True)
    created_at = Column(String(50), nullable=False)

    __table_args__ = (
        _enum_check("status", ManualApplicationStatus, "ck_manual_applications_status"),
        Index("idx_manual_applications_applied", "applied_at"),
    )

    def to_domain(self) -> ManualApplication:
        return ManualApplication(
            id=self.id,
            company=self.company,
            position=self.position,
            applied_at=date.fromisoformat(self.applied_at),
            status=self.status,
            notes=self.notes,
            job_url=self.job_url,
            created_at=_parse_datetime(self.created_at),
        )

    @classmethod
    def from_domain(cls, application: ManualApplication) -> "ManualApplicationModel":
        return cls(
            id=application.id,
            company=application.company,
            position=application.position,
            applied_at=application.applied_at.isoformat(),
            status=application.status,
            notes=application.notes,
            job_url=application.job_url,
            created_at=_format_datetime(application.created_at),
        )


class AiUsageModel(Base):
    """ORM model for the ai_usages table."""

    __tablename__ = "ai_usages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    model = Column(String(100), nullable=False)
    feature = Column(String(100), nullable=False)
    prompt_tokens = Column(Integer, nullable=False, default=0)
    completion_tokens = Column(Integer, nullable=False, default=0)
    cached_input_tokens = Column(Integer, nullable=False, default=0)
    cost_cents = Column(Integer, nullable=False, default=0)
    meta = Column(JSON, nullable=False, default=dict)
    created_at = Column(String(50), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "prompt_tokens >= 0 AND completion_tokens >= 0 "
            "AND cached_input_tokens >= 0 AND cost_cents >= 0",
            name="ck_ai_usages_non_negative",
        ),
        Index("idx_ai_usages_created", "created_at"),
        Index("idx_ai_usages_feature", "feature"),
    )

    def to_domain(self) -> AiUsage:
        return AiUsage(
            id=self.id,
            model=self.model,
            feature=self.feature,
            prompt_tokens=self.prompt_tokens,
            completion_tokens=self.completion_tokens,
            cached_input_tokens=self.cached_input_tokens,
            cost_cents=self.cost_cents,
            meta=self.meta or {},
            created_at=_parse_datetime(self.created_at),
        )

    @classmethod
    def from_domain(cls, usage: AiUsage) -> "AiUsageModel":
        return cls(
            id=usage.id,
            model=usage.model,
            feature=usage.feature,
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            cached_input_tokens=usage.cached_input_tokens,
            cost_cents=usage.cost_cents,
            meta=dict(usage.meta),
            created_at=_format_datetime(usage.created_at),
        )


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime as an ISO 8601 UTC string for storage."""
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO 8601 string back to an aware UTC datetime."""
    if dt_str is None or dt_str == "":
        return None

    dt_str = dt_str.rstrip("Z")
    try:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S")

    return dt.replace(tzinfo=timezone.utc)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes that do not exist yet."""
    Base.metadata.create_all(engine, checkfirst=True)
    tables = inspect(engine).get_table_names()
    logger.info(
        f"Database schema ready. Tables: {', '.join(sorted(tables))}",
        extra={"event": "database.schema.ready"},
    )
