"""Generate the resume and cover letter for an application and record the outcome."""

import time
from contextlib import AbstractContextManager
from typing import Any, Callable, Dict, List, Optional, Tuple

from jobwizard.ai.recorder import UsageRecorder
from jobwizard.config.environment import EnvironmentConfig
from jobwizard.config.models import ProfileConfig
from jobwizard.config.validators import validate_documents
from jobwizard.domain.models import Application, ApplicationStatus, JobStatus
from jobwizard.logging import get_logger
from jobwizard.logging.context import log_context
from jobwizard.persistence import (
    ApplicationRepository,
    JobPostingRepository,
    SkillAssessmentRepository,
    get_session,
)
from jobwizard.rules.rules import Rules, RulesProvider
from jobwizard.rules.scanner import RulesScanner
from jobwizard.skills.effective import EffectiveSkillsService
from jobwizard.skills.experience import ExperienceProfile

from .builder import FALLBACK_COMPANY, FALLBACK_ROLE, ResumeBuilder
from .jd_parser import JdParser
from .output import OutputManager
from .render import DocumentRenderer
from .writers.base import BaseWriter
from .writers.factory import WriterFactory

logger = get_logger(__name__, component="documents")

MAX_ATTEMPTS = 3
RETRY_WAIT_SECONDS = 5


class ApplicationDocumentGenerator:
    """
    Validates the YAML documents, builds both documents, writes them to the
    output directories and stores the result on the Application.

    Example:
        >>> generator = ApplicationDocumentGenerator(env)
        >>> result = generator.generate_for_posting(42)
        >>> result["directory"]
        '/home/me/Documents/JobWizard/Acme - Backend Engineer - 2025-11-04'
    """

    def __init__(
        self,
        env: EnvironmentConfig,
        session_factory: Callable[[], AbstractContextManager] = get_session,
        writer: Optional[BaseWriter] = None,
        renderer: Optional[DocumentRenderer] = None,
        rules: Optional[Rules] = None,
        sleep: Callable[[float], None] = time.sleep,
        max_attempts: int = MAX_ATTEMPTS,
        retry_wait_seconds: float = RETRY_WAIT_SECONDS,
    ):
        self.env = env
        self._session_factory = session_factory
        self._writer = writer
        self.renderer = renderer or DocumentRenderer()
        self._rules = rules
        self._sleep = sleep
        self.max_attempts = max_attempts
        self.retry_wait_seconds = retry_wait_seconds

    @property
    def writer(self) -> BaseWriter:
        if self._writer is None:
            recorder = UsageRecorder(self._session_factory, self.env.fallback_prices)
            self._writer = WriterFactory.build(self.env.ai, recorder=recorder)
        return self._writer

    @property
    def rules(self) -> Rules:
        return self._rules if self._rules is not None else RulesProvider.current()

    def _load_documents(self) -> Tuple[ProfileConfig, ExperienceProfile]:
        documents = validate_documents(
            self.env.profile_path, self.env.experience_path, self.env.rules_path
        )
        return (
            ProfileConfig.model_validate(documents["profile"]),
            ExperienceProfile(documents["experience"]),
        )

    def _save(self, application: Application) -> None:
        if application.id is None:
            return
        with self._session_factory() as session:
            ApplicationRepository(session).save(application)

    def generate(
        self, application: Application, allowed_skills: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """Build and write both documents for one application.

        Returns:
            Dict with resume and cover_letter paths, the directory and the
            unverified skills reported by the writer

        Raises:
            ConfigurationError: If the YAML documents are invalid
            DocumentGenerationError: If rendering or writing fails
        """
        try:
            profile, experience = self._load_documents()
            builder = ResumeBuilder(
                job_description=application.job_description,
                profile=profile,
                experience=experience,
                allowed_skills=allowed_skills,
                writer=self.writer,
                renderer=self.renderer,
                company=application.company,
                role=application.role,
            )
            manager = OutputManager(
                company=application.company,
                role=application.role,
                output_root=self.env.output_root,
                tmp_root=self.env.tmp_root,
                path_style=self.env.path_style,
                timestamp=application.created_at,
            )

            manager.ensure_directories()
            resume_path = manager.write_resume(builder.build_resume())
            cover_letter_path = manager.write_cover_letter(builder.build_cover_letter())
            manager.update_latest_symlink()

            application.output_path = manager.display_path
            application.status = ApplicationStatus.GENERATED
            self._save(application)
        except Exception:
            application.status = ApplicationStatus.ERROR
            self._save(application)
            raise

        logger.info(
            f"Generated documents for {application.company} - {application.role}",
            extra={
                "event": "documents.generated",
                "application_id": application.id,
                "directory": manager.display_path,
                "unverified_skills": len(builder.unverified_skills),
            },
        )
        return {
            "resume": resume_path,
            "cover_letter": cover_letter_path,
            "directory": manager.display_path,
            "unverified_skills": builder.unverified_skills,
        }

    def generate_with_retry(
        self, application: Application, allowed_skills: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """Run generate() up to max_attempts times with a fixed wait between attempts."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self.generate(application, allowed_skills)
            except Exception as e:
                if attempt >= self.max_attempts:
                    logger.error(
                        f"Document generation failed after {attempt} attempts: {e}",
                        extra={"event": "documents.generation.failed", "application_id": application.id},
                    )
                    raise
                logger.warning(
                    f"Document generation attempt {attempt} failed: {e}",
                    extra={
                        "event": "documents.generation.retry",
                        "application_id": application.id,
                        "attempt": attempt,
                        "wait_seconds": self.retry_wait_seconds,
                    },
                )
                self._sleep(self.retry_wait_seconds)

    def generate_for_posting(self, job_posting_id: int, force: bool = False) -> Dict[str, Any]:
        """Create a draft application for a stored posting and generate its documents.

        The scan flags are stored on the application, assessments narrow the
        skills the documents may mention, and the posting is marked exported
        on success. A posting already exported today is left alone unless
        ``force`` is set; the result then only carries ``skipped`` and
        ``exported_at``.

        Raises:
            RecordNotFoundError: If the posting does not exist
        """
        experience = ExperienceProfile.load(self.env.experience_path)

        with self._session_factory() as session:
            posting = JobPostingRepository(session).get_or_raise(job_posting_id)
            if posting.generated_today() and not force:
                logger.info(
                    f"Documents already generated today for job {job_posting_id}",
                    extra={"event": "documents.skipped", "job_posting_id": job_posting_id},
                )
                return {"skipped": True, "exported_at": posting.exported_at}

            assessments = SkillAssessmentRepository(session).list_for_posting(job_posting_id)
            application = ApplicationRepository(session).add(
                Application(
                    job_posting_id=posting.id,
                    company=posting.company,
                    role=posting.title,
                    job_description=posting.description or posting.title,
                    flags=RulesScanner(self.rules, experience).scan(posting.description),
                    status=ApplicationStatus.DRAFT,
                )
            )

        allowed_skills = None
        if assessments:
            allowed_skills = EffectiveSkillsService(
                experience, assessments, self.env.proficiency_threshold
            ).effective_skills()

        with log_context(application_id=application.id, job_posting_id=job_posting_id):
            result = self.generate_with_retry(application, allowed_skills)

        with self._session_factory() as session:
            JobPostingRepository(session).mark(job_posting_id, JobStatus.EXPORTED.value)

        result["application_id"] = application.id
        result["skipped"] = False
        return result

    def generate_for_text(
        self,
        job_description: str,
        company: Optional[str] = None,
        role: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Generate documents for a pasted job description.

        Company and role default to what JdParser finds in the text.
        """
        parsed = JdParser(job_description).parse()
        experience = ExperienceProfile.load(self.env.experience_path)

        with self._session_factory() as session:
            application = ApplicationRepository(session).add(
                Application(
                    company=company or parsed["company"] or FALLBACK_COMPANY,
                    role=role or parsed["role"] or FALLBACK_ROLE,
                    job_description=job_description,
                    flags=RulesScanner(self.rules, experience).scan(job_description),
                    status=ApplicationStatus.DRAFT,
                )
            )

        with log_context(application_id=application.id):
            result = self.generate_with_retry(application)

        result["application_id"] = application.id
        return result
