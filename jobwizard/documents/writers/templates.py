"""Template-based cover letter writer (no AI)."""

import re
from datetime import date
from typing import Any, Dict, List, Optional

from jobwizard.config.models import Position, ProfileConfig
from jobwizard.skills.experience import ExperienceProfile
from jobwizard.utils.timestamps import utc_now

from .base import BaseWriter

HIRING_TEAM_HINT = re.compile(r"hiring manager|hiring team|recruiter", re.IGNORECASE)
SENIORITY_WORDS = {"senior", "lead", "staff", "principal"}


class TemplatesWriter(BaseWriter):
    """Fills a fixed letter structure with facts from profile and experience.

    Paragraphs: date, greeting, opening, core paragraph, optional
    achievement bullets, closing.
    """

    name = "templates"

    def __init__(self, today: Optional[date] = None):
        self.today = today

    def cover_letter(
        self,
        profile: ProfileConfig,
        experience: ExperienceProfile,
        jd_text: str,
        company: str,
        role: str,
        allowed_skills: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        text = self.compose(profile, experience, jd_text, company, role, allowed_skills)
        return {"cover_letter": text, "unverified_skills": []}

    def compose(
        self,
        profile: ProfileConfig,
        experience: ExperienceProfile,
        jd_text: str,
        company: str,
        role: str,
        allowed_skills: Optional[List[str]] = None,
    ) -> str:
        """Return the letter as paragraphs separated by blank lines."""
        recent = experience.positions[0] if experience.positions else None
        skills_text = self._primary_skills_text(experience)
        achievements = self._relevant_achievements(recent, allowed_skills)

        paragraphs = [
            (self.today or utc_now().date()).strftime("%B %d, %Y"),
            f"Dear {self._addressee(jd_text, company)},",
            f"I am writing to express my strong interest in the {role} position at {company}. "
            f"With my background in {skills_text} and experience building "
            f"{self._experience_summary(recent)}, I am excited about the opportunity "
            "to contribute to your team.",
            self._core_paragraph(recent, achievements, company, role, skills_text),
            self._bullets(achievements),
            f"I am excited about the opportunity to bring my {skills_text} expertise to {company} "
            "and would welcome the chance to discuss how my background aligns with your "
            "team's goals. Thank you for considering my application.",
            f"Best regards,\n{profile.name}",
        ]
        return "\n\n".join(paragraph for paragraph in paragraphs if paragraph)

    @staticmethod
    def _addressee(jd_text: str, company: str) -> str:
        if HIRING_TEAM_HINT.search(jd_text or ""):
            return f"{company} Hiring Team"
        return "Hiring Manager"

    @staticmethod
    def _primary_skills_text(experience: ExperienceProfile) -> str:
        expert = experience.skills_by_level()["expert"][:3]
        if expert:
            return ", ".join(skill.name for skill in expert)
        return "full-stack development"

    @staticmethod
    def _experience_summary(recent: Optional[Position]) -> str:
        if recent and recent.description:
            return recent.description.lower()
        return "scalable applications"

    @staticmethod
    def _relevant_achievements(
        recent: Optional[Position], allowed_skills: Optional[List[str]]
    ) -> List[str]:
        if recent is None:
            return []
        achievements = recent.achievements
        if allowed_skills:
            achievements = [
                achievement
                for achievement in achievements
                if any(skill.lower() in achievement.lower() for skill in allowed_skills)
            ]
        return achievements[:2]

    @staticmethod
    def role_keywords(role: str) -> str:
        """Role words minus seniority, e.g. "Senior Backend Engineer" -> "backend and engineer"."""
        words = [word for word in (role or "").lower().split() if word not in SENIORITY_WORDS]
        return " and ".join(words) if words else "technical expertise"

    def _core_paragraph(
        self,
        recent: Optional[Position],
        achievements: List[str],
        company: str,
        role: str,
        skills_text: str,
    ) -> str:
        keywords = self.role_keywords(role)
        if achievements:
            previous_company = recent.company if recent else "my previous company"
            return (
                f"In my most recent role at {previous_company}, I {achievements[0].lower()}. "
                f"This experience aligns well with {company}'s needs for {keywords}."
            )
        return (
            f"My experience with {skills_text} makes me well-suited for this role, "
            f"particularly in areas requiring {keywords}."
        )

    @staticmethod
    def _bullets(achievements: List[str]) -> Optional[str]:
        if len(achievements) < 2:
            return None
        return "\n".join(f"• {achievement}" for achievement in achievements[1:3])
