"""Normalized access to experience.yml.

The ``skills`` key is accepted in three shapes::

    skills:                          # detailed
      - {name: Rails, level: expert, context: "8 years"}
    skills:                          # tiered
      proficient: [Ruby]
      working_knowledge: [React]
      familiar: [Go]
    skills: [Ruby, PostgreSQL]       # flat, all intermediate
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from jobwizard.config.models import Position, SkillEntry, SkillLevel
from jobwizard.logging import get_logger

logger = get_logger(__name__, component="skills")

SKILL_ALIASES = {
    "rails": "Ruby on Rails",
    "rspec": "RSpec",
    "jest": "Jest",
    "aws": "AWS",
    "gcp": "GCP",
    "k8s": "Kubernetes",
    "postgres": "PostgreSQL",
    "postgresql": "PostgreSQL",
    "mysql": "MySQL",
    "redis": "Redis",
    "js": "JavaScript",
    "javascript": "JavaScript",
    "ts": "TypeScript",
    "typescript": "TypeScript",
    "html": "HTML/CSS",
    "css": "HTML/CSS",
    "html/css": "HTML/CSS",
}

_LEVELS = {
    "expert": SkillLevel.EXPERT,
    "proficient": SkillLevel.EXPERT,
    "advanced": SkillLevel.EXPERT,
    "intermediate": SkillLevel.INTERMEDIATE,
    "working_knowledge": SkillLevel.INTERMEDIATE,
    "working": SkillLevel.INTERMEDIATE,
    "basic": SkillLevel.BASIC,
    "familiar": SkillLevel.BASIC,
    "beginner": SkillLevel.BASIC,
}

_TIERS = [
    ("proficient", SkillLevel.EXPERT),
    ("working_knowledge", SkillLevel.INTERMEDIATE),
    ("familiar", SkillLevel.BASIC),
]


def normalize_level(level: Any) -> SkillLevel:
    """Map a free-form level to expert, intermediate or basic (default)."""
    return _LEVELS.get(str(level or "").strip().lower(), SkillLevel.INTERMEDIATE)


def normalize_skills(raw_skills: Any) -> List[SkillEntry]:
    """Convert any supported skills shape into SkillEntry objects."""
    if not raw_skills:
        return []

    entries = []
    if isinstance(raw_skills, dict):
        for key, level in _TIERS:
            for name in raw_skills.get(key) or []:
                entries.append(SkillEntry(name=str(name), level=level))
        return entries

    if not isinstance(raw_skills, list):
        return []

    for skill in raw_skills:
        if isinstance(skill, dict):
            name = skill.get("name")
            if not name:
                continue
            context = skill.get("context")
            entries.append(
                SkillEntry(
                    name=str(name),
                    level=normalize_level(skill.get("level")),
                    context=str(context) if context is not None else None,
                )
            )
        elif skill is not None:
            entries.append(SkillEntry(name=str(skill), level=SkillLevel.INTERMEDIATE))
    return entries


class ExperienceProfile:
    """
    The candidate's declared skills, positions and projects.

    Attributes:
        skills: Normalized skill entries
        positions: Work history, most recent first
        projects: Raw project entries
        not_claimed_skills: Skills the candidate has only been exposed to
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        data = data or {}
        self.skills: List[SkillEntry] = normalize_skills(data.get("skills"))
        self.positions: List[Position] = [
            Position.model_validate(position)
            for position in (data.get("positions") or [])
            if isinstance(position, dict)
        ]
        self.projects: List[Dict[str, Any]] = list(data.get("projects") or [])
        self.not_claimed_skills: List[str] = [
            str(skill) for skill in (data.get("not_claimed_skills") or [])
        ]
        self._names = {skill.name.lower() for skill in self.skills}

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ExperienceProfile":
        """Load experience.yml; a missing file gives an empty profile."""
        path = Path(path)
        if not path.exists():
            logger.warning(
                "experience.yml not found, no skills declared",
                extra={"event": "skills.experience.missing", "path": str(path)},
            )
            return cls({})

        with open(path, "r", encoding="utf-8") as f:
            return cls(yaml.safe_load(f) or {})

    @property
    def all_skill_names(self) -> set:
        """Lowercased names of every declared skill."""
        return set(self._names)

    def _find(self, skill_name: str) -> Optional[SkillEntry]:
        wanted = (skill_name or "").lower()
        for skill in self.skills:
            if skill.name.lower() == wanted:
                return skill
        return None

    def level_for(self, skill_name: str) -> Optional[str]:
        skill = self._find(skill_name)
        return skill.level if skill else None

    def context_for(self, skill_name: str) -> Optional[str]:
        skill = self._find(skill_name)
        return skill.context if skill else None

    def has_skill(self, skill_name: str) -> bool:
        return (skill_name or "").lower() in self._names

    def skills_by_level(self) -> Dict[str, List[SkillEntry]]:
        return {
            level.value: [skill for skill in self.skills if skill.level == level.value]
            for level in SkillLevel
        }

    @staticmethod
    def normalize_skill_name(skill_name: Optional[str]) -> Optional[str]:
        """Resolve aliases, e.g. ``rails`` to ``Ruby on Rails``."""
        if not skill_name or not str(skill_name).strip():
            return skill_name
        normalized = str(skill_name).strip()
        return SKILL_ALIASES.get(normalized.lower(), normalized)

    def is_not_claimed_skill(self, skill_name: str) -> bool:
        """Case-insensitive substring match against not_claimed_skills, either way."""
        normalized = (self.normalize_skill_name(skill_name) or "").lower()
        if not normalized:
            return False
        return any(
            normalized in claimed.lower() or claimed.lower() in normalized
            for claimed in self.not_claimed_skills
            if claimed.strip()
        )

    def has_skill_with_alias(self, skill_name: str) -> bool:
        return self.has_skill(self.normalize_skill_name(skill_name) or "")

    def is_verified(self, skill_name: str) -> bool:
        """True if the skill is declared under its own name or its alias."""
        return self.has_skill(skill_name) or self.has_skill_with_alias(skill_name)
