"""Persistence layer: SQLAlchemy engine, ORM schema and repositories.

Example usage:
    >>> from jobwizard.persistence import init_database, get_session, JobPostingRepository
    >>>
    >>> init_database("sqlite:///./data/job_wizard.db")
    >>>
    >>> with get_session() as session:
    ...     repo = JobPostingRepository(session)
    ...     board = repo.list_active(limit=20)
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import (
    CREATED,
    DUPLICATE,
    SKIPPED_BY_STATUS,
    UPDATED,
    AiUsageRepository,
    ApplicationRepository,
    BlockedCompanyRepository,
    JobPostingRepository,
    ManualApplicationRepository,
    SkillAssessmentRepository,
)

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "JobPostingRepository",
    "ApplicationRepository",
    "SkillAssessmentRepository",
    "BlockedCompanyRepository",
    "ManualApplicationRepository",
    "AiUsageRepository",
    # Fetch outcomes
    "CREATED",
    "UPDATED",
    "SKIPPED_BY_STATUS",
    "DUPLICATE",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
