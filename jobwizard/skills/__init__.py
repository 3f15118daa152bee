"""Declared experience, skill detection and per-posting effective skills."""

from .detector import SkillDetector, normalize_detected_skill
from .effective import DEFAULT_PROFICIENCY_THRESHOLD, EffectiveSkillsService
from .experience import SKILL_ALIASES, ExperienceProfile, normalize_level, normalize_skills

__all__ = [
    "ExperienceProfile",
    "SkillDetector",
    "EffectiveSkillsService",
    "SKILL_ALIASES",
    "DEFAULT_PROFICIENCY_THRESHOLD",
    "normalize_level",
    "normalize_skills",
    "normalize_detected_skill",
]
