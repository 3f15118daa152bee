"""Writer interface shared by the template and AI-backed cover letter writers."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from jobwizard.config.models import ProfileConfig
from jobwizard.skills.experience import ExperienceProfile


class BaseWriter(ABC):
    """Produces cover letter text from verified profile and experience data.

    ``cover_letter()`` returns a dict with:
        cover_letter: Letter text, or None when the writer failed
        unverified_skills: Skills the job asks for that the candidate has not declared
        error: Failure message (only present on failure)
    """

    name = "base"

    @abstractmethod
    def cover_letter(
        self,
        profile: ProfileConfig,
        experience: ExperienceProfile,
        jd_text: str,
        company: str,
        role: str,
        allowed_skills: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Write a cover letter for one job description."""
