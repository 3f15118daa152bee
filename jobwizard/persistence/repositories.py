"""Data access layer (repositories) for persistence operations.

Repositories wrap one session, return domain models rather than ORM
models, and translate SQLAlchemy errors into persistence exceptions.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Dict, Iterator, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from jobwizard.domain.models import (
    USER_ACTED_STATUSES,
    AiUsage,
    Application,
    BlockedCompany,
    JobPosting,
    JobRecord,
    JobStatus,
    ManualApplication,
    ManualApplicationStatus,
    SkillAssessment,
)
from jobwizard.utils.timestamps import utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import (
    AiUsageModel,
    ApplicationModel,
    BlockedCompanyModel,
    JobPostingModel,
    ManualApplicationModel,
    SkillAssessmentModel,
    _format_datetime,
    _parse_datetime,
)

logger = logging.getLogger(__name__)

# Outcomes of JobPostingRepository.upsert_fetched()
CREATED = "created"
UPDATED = "updated"
SKIPPED_BY_STATUS = "skipped_by_status"
DUPLICATE = "duplicate"

DUPLICATE_WINDOW = timedelta(hours=1)


@contextmanager
def _wrap_errors(action: str) -> Iterator[None]:
    """Translate SQLAlchemy errors raised while performing ``action``."""
    try:
        yield
    except IntegrityError as e:
        logger.error(f"Integrity error while trying to {action}: {e}", exc_info=True)
        raise DataIntegrityError(
            f"Failed to {action} due to constraint violation: {e.orig}"
        ) from e
    except SQLAlchemyError as e:
        logger.error(f"Error while trying to {action}: {e}", exc_info=True)
        raise PersistenceError(f"Failed to {action}: {e}") from e


class JobPostingRepository:
    """Repository for job postings."""

    def __init__(self, session: Session):
        self.session = session

    def _get_model(self, posting_id: int) -> JobPostingModel:
        model = self.session.get(JobPostingModel, posting_id)
        if model is None:
            raise RecordNotFoundError(f"Job posting {posting_id} not found")
        return model

    def get(self, posting_id: int) -> Optional[JobPosting]:
        with _wrap_errors(f"retrieve job posting {posting_id}"):
            model = self.session.get(JobPostingModel, posting_id)
            return model.to_domain() if model else None

    def get_or_raise(self, posting_id: int) -> JobPosting:
        with _wrap_errors(f"retrieve job posting {posting_id}"):
            return self._get_model(posting_id).to_domain()

    def find_by_url(self, url: str) -> Optional[JobPosting]:
        with _wrap_errors("find job posting by url"):
            model = self._find_model(url=url)
            return model.to_domain() if model else None

    def find_by_external_id(self, source: str, external_id: str) -> Optional[JobPosting]:
        with _wrap_errors("find job posting by external id"):
            model = self._find_model(source=source, external_id=external_id)
            return model.to_domain() if model else None

    def _find_model(
        self,
        source: Optional[str] = None,
        external_id: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Optional[JobPostingModel]:
        if external_id:
            stmt = select(JobPostingModel).where(
                JobPostingModel.source == source,
                JobPostingModel.external_id == external_id,
            )
            model = self.session.execute(stmt).scalar_one_or_none()
            if model is not None:
                return model
        if url:
            stmt = select(JobPostingModel).where(JobPostingModel.url == url)
            return self.session.execute(stmt).scalar_one_or_none()
        return None

    def add(self, posting: JobPosting) -> JobPosting:
        """Insert a new posting and return it with its id."""
        with _wrap_errors("add job posting"):
            now = utc_now()
            model = JobPostingModel.from_domain(posting)
            model.created_at = _format_datetime(posting.created_at or now)
            model.updated_at = _format_datetime(now)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()

    def save(self, posting: JobPosting) -> JobPosting:
        """Write every field of an existing posting."""
        if posting.id is None:
            raise RecordNotFoundError("Cannot save a job posting without an id")
        with _wrap_errors(f"save job posting {posting.id}"):
            model = self._get_model(posting.id)
            model.apply(posting)
            model.updated_at = _format_datetime(utc_now())
            self.session.flush()
            return model.to_domain()

    def upsert_fetched(
        self, record: JobRecord, now: Optional[datetime] = None
    ) -> Tuple[JobPosting, str]:
        """
        Store a fetched job, deduplicating against existing rows.

        The row is looked up by (source, external_id), then by url:

        - not found: inserted as ``suggested``
        - applied, ignored or exported: only last_seen_at, posted_at and
          metadata are refreshed
        - refreshed within the last hour: left untouched
        - otherwise: every attribute is refreshed

        Returns:
            Tuple of (stored posting, outcome) where outcome is one of
            ``created``, ``updated``, ``skipped_by_status`` or ``duplicate``
        """
        now = now or utc_now()
        stamp = _format_datetime(now)

        with _wrap_errors(f"store fetched job {record.url}"):
            model = self._find_model(record.source, record.external_id, record.url)

            if model is None:
                posting = JobPosting(
                    **record.model_dump(exclude={"score"}),
                    score=record.score,
                    status=JobStatus.SUGGESTED,
                    last_seen_at=now,
                    created_at=now,
                    updated_at=now,
                )
                model = JobPostingModel.from_domain(posting)
                self.session.add(model)
                self.session.flush()
                return model.to_domain(), CREATED

            if model.status in USER_ACTED_STATUSES:
                model.last_seen_at = stamp
                model.posted_at = _format_datetime(record.posted_at) or model.posted_at
                model.metadata_ = dict(record.metadata) if record.metadata else model.metadata_
                model.updated_at = stamp
                self.session.flush()
                return model.to_domain(), SKIPPED_BY_STATUS

            last_seen = _parse_datetime(model.last_seen_at)
            if last_seen is not None and last_seen > now - DUPLICATE_WINDOW:
                return model.to_domain(), DUPLICATE

            model.company = record.company
            model.title = record.title
            model.description = record.description
            model.location = record.location
            model.remote = record.remote
            model.url = record.url
            model.source = record.source
            model.external_id = record.external_id
            model.score = record.score
            model.metadata_ = dict(record.metadata)
            model.posted_at = _format_datetime(record.posted_at)
            model.last_seen_at = stamp
            model.updated_at = stamp
            self.session.flush()
            return model.to_domain(), UPDATED

    def list(
        self,
        status: Optional[str] = None,
        remote_only: bool = False,
        limit: Optional[int] = None,
    ) -> List[JobPosting]:
        """List postings, best score first, then newest."""
        with _wrap_errors("list job postings"):
            stmt = select(JobPostingModel)
            if status:
                stmt = stmt.where(JobPostingModel.status == status)
            if remote_only:
                stmt = stmt.where(JobPostingModel.remote.is_(True))
            stmt = stmt.order_by(JobPostingModel.score.desc(), JobPostingModel.created_at.desc())
            if limit:
                stmt = stmt.limit(limit)
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]

    def list_active(self, limit: Optional[int] = None) -> List[JobPosting]:
        """Suggested postings: the active job board."""
        return self.list(status=JobStatus.SUGGESTED.value, limit=limit)

    def list_remote(self, limit: Optional[int] = None) -> List[JobPosting]:
        return self.list(remote_only=True, limit=limit)

    def count_by_status(self) -> Dict[str, int]:
        with _wrap_errors("count job postings"):
            stmt = select(JobPostingModel.status, func.count()).group_by(JobPostingModel.status)
            return {status: count for status, count in self.session.execute(stmt)}

    def mark(self, posting_id: int, status: str) -> JobPosting:
        """Apply a status transition (applied, ignored or exported)."""
        posting = self.get_or_raise(posting_id)
        transitions = {
            JobStatus.APPLIED.value: posting.mark_applied,
            JobStatus.IGNORED.value: posting.mark_ignored,
            JobStatus.EXPORTED.value: posting.mark_exported,
        }
        if status not in transitions:
            raise ValueError(f"Unsupported status transition: {status}")
        transitions[status]()
        return self.save(posting)


class ApplicationRepository:
    """Repository for document generation requests."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, application: Application) -> Application:
        with _wrap_errors("add application"):
            now = utc_now()
            model = ApplicationModel.from_domain(application)
            model.created_at = _format_datetime(application.created_at or now)
            model.updated_at = _format_datetime(now)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()

    def get(self, application_id: int) -> Optional[Application]:
        with _wrap_errors(f"retrieve application {application_id}"):
            model = self.session.get(ApplicationModel, application_id)
            return model.to_domain() if model else None

    def save(self, application: Application) -> Application:
        with _wrap_errors(f"save application {application.id}"):
            model = self.session.get(ApplicationModel, application.id)
            if model is None:
                raise RecordNotFoundError(f"Application {application.id} not found")
            model.company = application.company
            model.role = application.role
            model.job_description = application.job_description
            model.flags = dict(application.flags)
            model.output_path = application.output_path
            model.status = application.status
            model.updated_at = _format_datetime(utc_now())
            self.session.flush()
            return model.to_domain()

    def list_for_posting(self, job_posting_id: int) -> List[Application]:
        with _wrap_errors(f"list applications for posting {job_posting_id}"):
            stmt = (
                select(ApplicationModel)
                .where(ApplicationModel.job_posting_id == job_posting_id)
                .order_by(ApplicationModel.created_at.desc())
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]


class SkillAssessmentRepository:
    """Repository for per-posting skill assessments."""

    def __init__(self, session: Session):
        self.session = session

    def upsert(self, assessment: SkillAssessment) -> SkillAssessment:
        """Create or replace the assessment for (posting, skill)."""
        with _wrap_errors(f"save assessment for {assessment.skill_name}"):
            stmt = select(SkillAssessmentModel).where(
                SkillAssessmentModel.job_posting_id == assessment.job_posting_id,
                SkillAssessmentModel.skill_name == assessment.skill_name,
            )
            model = self.session.execute(stmt).scalar_one_or_none()
            stamp = _format_datetime(utc_now())

            if model is None:
                model = SkillAssessmentModel.from_domain(assessment)
                model.created_at = stamp
                self.session.add(model)
            else:
                model.have = assessment.have
                model.proficiency = assessment.proficiency
            model.updated_at = stamp
            self.session.flush()
            return model.to_domain()

    def list_for_posting(self, job_posting_id: int) -> List[SkillAssessment]:
        with _wrap_errors(f"list assessments for posting {job_posting_id}"):
            stmt = (
                select(SkillAssessmentModel)
                .where(SkillAssessmentModel.job_posting_id == job_posting_id)
                .order_by(SkillAssessmentModel.skill_name)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]


class BlockedCompanyRepository:
    """Repository for the database half of the company blocklist."""

    def __init__(self, session: Session):
        self.session = session

    def list_all(self) -> List[BlockedCompany]:
        with _wrap_errors("list blocked companies"):
            stmt = select(BlockedCompanyModel).order_by(BlockedCompanyModel.name)
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]

    def add(self, blocked: BlockedCompany) -> BlockedCompany:
        with _wrap_errors(f"block company {blocked.name}"):
            model = BlockedCompanyModel.from_domain(blocked)
            model.created_at = _format_datetime(blocked.created_at or utc_now())
            self.session.add(model)
            self.session.flush()
            return model.to_domain()

    def remove(self, blocked_id: int) -> BlockedCompany:
        with _wrap_errors(f"remove blocked company {blocked_id}"):
            model = self.session.get(BlockedCompanyModel, blocked_id)
            if model is None:
                raise RecordNotFoundError(f"Blocked company {blocked_id} not found")
            blocked = model.to_domain()
            self.session.delete(model)
            self.session.flush()
            return blocked


class ManualApplicationRepository:
    """Repository for applications tracked by hand."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, application: ManualApplication) -> ManualApplication:
        with _wrap_errors(f"add manual application for {application.company}"):
            model = ManualApplicationModel.from_domain(application)
            model.created_at = _format_datetime(application.created_at or utc_now())
            self.session.add(model)
            self.session.flush()
            return model.to_domain()

    def list(self, status: Optional[str] = None) -> List[ManualApplication]:
        """Most recently applied first."""
        with _wrap_errors("list manual applications"):
            stmt = select(ManualApplicationModel)
            if status:
                stmt = stmt.where(ManualApplicationModel.status == status)
            stmt = stmt.order_by(
                ManualApplicationModel.applied_at.desc(), ManualApplicationModel.id.desc()
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]

    def update_status(self, application_id: int, status: str) -> ManualApplication:
        status = ManualApplicationStatus(status).value
        with _wrap_errors(f"update manual application {application_id}"):
            model = self.session.get(ManualApplicationModel, application_id)
            if model is None:
                raise RecordNotFoundError(f"Manual application {application_id} not found")
            model.status = status
            self.session.flush()
            return model.to_domain()


class AiUsageRepository:
    """Repository for AI usage accounting."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, usage: AiUsage) -> AiUsage:
        with _wrap_errors(f"record AI usage for {usage.feature}"):
            model = AiUsageModel.from_domain(usage)
            model.created_at = _format_datetime(usage.created_at or utc_now())
            self.session.add(model)
            self.session.flush()
            return model.to_domain()

    def list_between(self, start: datetime, end: datetime) -> List[AiUsage]:
        """Usage rows created in [start, end], newest first."""
        with _wrap_errors("list AI usage"):
            stmt = (
                select(AiUsageModel)
                .where(
                    AiUsageModel.created_at >= _format_datetime(start),
                    AiUsageModel.created_at <= _format_datetime(end),
                )
                .order_by(AiUsageModel.created_at.desc(), AiUsageModel.id.desc())
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
