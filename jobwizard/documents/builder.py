"""Builds resume and cover letter text from profile and experience data.

Only facts from profile.yml and experience.yml reach the documents. Skills
a job description asks for are split into the ones the candidate claims
and the ones they do not, and AI writers report the latter back as
unverified.
"""

import re
from typing import Any, Dict, List, Optional

from jobwizard.config.models import ProfileConfig, SkillEntry, SkillLevel
from jobwizard.logging import get_logger
from jobwizard.skills.experience import ExperienceProfile
from jobwizard.utils.text import unique

from .jd_parser import JdParser
from .render import DocumentRenderer
from .writers.base import BaseWriter
from .writers.templates import TemplatesWriter

logger = get_logger(__name__, component="documents")

TECH_PATTERN = re.compile(
    r"\b(Ruby on Rails|Rails|Ruby|React|JavaScript|TypeScript|Python|Java|Go|Rust|"
    r"PostgreSQL|MySQL|MongoDB|Redis|Elasticsearch|"
    r"AWS|Azure|GCP|Kubernetes|Docker|Terraform|"
    r"Git|GitHub|GitLab|CI/CD|Jenkins|CircleCI|"
    r"RSpec|Jest|Pytest|JUnit|"
    r"HTML|CSS|Sass|Tailwind|Bootstrap|"
    r"Node\.?js|Express|Django|Flask|Spring|"
    r"GraphQL|REST|API|Microservices|"
    r"Agile|Scrum|TDD|BDD|DevOps|"
    r"Linux|Unix|Bash|Shell|"
    r"Webpack|Vite|Rollup|Babel|"
    r"Datadog|Grafana|Prometheus|Sentry|PagerDuty)\b",
    re.IGNORECASE,
)

EXPERT_PHRASE_LIMIT = 5
MAX_CONTEXT_LENGTH = 120

FALLBACK_COMPANY = "the company"
FALLBACK_ROLE = "this position"

_PHRASES = {
    SkillLevel.EXPERT.value: "Deep experience with {}",
    SkillLevel.INTERMEDIATE.value: "Working proficiency with {}",
    SkillLevel.BASIC.value: "Familiar with {}",
}


def skill_phrase(skill: SkillEntry) -> str:
    """Describe a skill by level, adding short context in parentheses.

    Example:
        >>> skill_phrase(SkillEntry(name="Ruby", level="expert", context="8 years"))
        'Deep experience with Ruby (8 years)'
    """
    template = _PHRASES.get(skill.level)
    base = template.format(skill.name) if template else skill.name
    if skill.context and len(skill.context) < MAX_CONTEXT_LENGTH:
        return f"{base} ({skill.context})"
    return base


def extract_jd_skills(text: Optional[str]) -> List[str]:
    return unique(match.strip() for match in TECH_PATTERN.findall(text or ""))


def _allowed(name: str, allowed_skills: List[str]) -> bool:
    lowered = name.lower()
    return any(
        allowed.lower() in lowered or lowered in allowed.lower()
        for allowed in allowed_skills
        if allowed
    )


class ResumeBuilder:
    """
    Example:
        >>> builder = ResumeBuilder(jd_text, profile, experience)
        >>> resume = builder.build_resume()
        >>> letter = builder.build_cover_letter()
        >>> builder.unverified_skills
        ['Kubernetes']
    """

    def __init__(
        self,
        job_description: str,
        profile: ProfileConfig,
        experience: ExperienceProfile,
        allowed_skills: Optional[List[str]] = None,
        writer: Optional[BaseWriter] = None,
        renderer: Optional[DocumentRenderer] = None,
        company: Optional[str] = None,
        role: Optional[str] = None,
    ):
        self.job_description = job_description or ""
        self.profile = profile
        self.experience = experience
        self.allowed_skills = allowed_skills
        self.writer = writer or TemplatesWriter()
        self.renderer = renderer or DocumentRenderer()
        self._company = company
        self._role = role
        self.unverified_skills: List[str] = []
        self.claimed_skills: List[str] = []
        self.not_claimed_skills: List[str] = []
        self._split_skills()

    def _split_skills(self) -> None:
        for skill in extract_jd_skills(self.job_description):
            normalized = self.experience.normalize_skill_name(skill)
            if self.experience.has_skill(normalized) or self.experience.has_skill_with_alias(skill):
                self.claimed_skills.append(skill)
            else:
                self.not_claimed_skills.append(skill)
        self.unverified_skills = list(self.not_claimed_skills)

    @property
    def company(self) -> str:
        return self._company or JdParser(self.job_description).company() or FALLBACK_COMPANY

    @property
    def role(self) -> str:
        return self._role or JdParser(self.job_description).role() or FALLBACK_ROLE

    def skills_by_level(self) -> Dict[str, List[SkillEntry]]:
        """Declared skills per level, narrowed to allowed skills when given."""
        by_level = self.experience.skills_by_level()
        if not self.allowed_skills:
            return by_level
        return {
            level: [skill for skill in skills if _allowed(skill.name, self.allowed_skills)]
            for level, skills in by_level.items()
        }

    def resume_context(self) -> Dict[str, Any]:
        by_level = self.skills_by_level()
        return {
            "name": self.profile.name,
            "contact_line": self.profile.contact_line(),
            "summary": self.profile.summary,
            "expert_phrases": [
                skill_phrase(skill)
                for skill in by_level[SkillLevel.EXPERT.value][:EXPERT_PHRASE_LIMIT]
            ],
            "intermediate_names": [skill.name for skill in by_level[SkillLevel.INTERMEDIATE.value]],
            "basic_names": [skill.name for skill in by_level[SkillLevel.BASIC.value]],
            "positions": self.experience.positions,
            "education": self.profile.education,
        }

    def build_resume(self) -> str:
        return self.renderer.render_resume(self.resume_context())

    def cover_letter_text(self) -> str:
        """Letter body from the configured writer, falling back to templates."""
        result = self.writer.cover_letter(
            profile=self.profile,
            experience=self.experience,
            jd_text=self.job_description,
            company=self.company,
            role=self.role,
            allowed_skills=self.allowed_skills,
        )
        self.unverified_skills = unique(
            self.unverified_skills + [str(skill) for skill in result.get("unverified_skills") or []]
        )

        letter = result.get("cover_letter")
        if letter:
            return letter

        logger.warning(
            "Writer returned no cover letter, using templates",
            extra={
                "event": "documents.cover_letter.fallback",
                "writer": self.writer.name,
                "error": result.get("error"),
            },
        )
        return TemplatesWriter().compose(
            self.profile,
            self.experience,
            self.job_description,
            self.company,
            self.role,
            self.allowed_skills,
        )

    def build_cover_letter(self) -> str:
        return self.renderer.render_cover_letter(
            {
                "name": self.profile.name,
                "contact_line": self.profile.contact_line(),
                "body": self.cover_letter_text(),
            }
        )
