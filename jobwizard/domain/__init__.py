"""Domain models for Job Wizard."""

from .models import (
    USER_ACTED_STATUSES,
    AiUsage,
    Application,
    ApplicationStatus,
    BlockedCompany,
    JobPosting,
    JobRecord,
    JobStatus,
    ManualApplication,
    ManualApplicationStatus,
    SkillAssessment,
)

__all__ = [
    "JobRecord",
    "JobPosting",
    "Application",
    "SkillAssessment",
    "BlockedCompany",
    "ManualApplication",
    "AiUsage",
    "JobStatus",
    "ApplicationStatus",
    "ManualApplicationStatus",
    "USER_ACTED_STATUSES",
]
