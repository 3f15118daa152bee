"""Per-posting effective skill set: declared skills adjusted by assessments."""

from typing import Dict, Iterable, List, Optional, Set

from .experience import ExperienceProfile

DEFAULT_PROFICIENCY_THRESHOLD = 3


class EffectiveSkillsService:
    """
    Combines declared experience with a posting's skill assessments.

    effective = declared skills
                + assessed "have" skills at or above the proficiency threshold
                - assessed "don't have" skills

    Args:
        experience: Declared experience
        assessments: SkillAssessment records for one posting
        threshold: Minimum proficiency (1-5) for an assessed skill to count
    """

    def __init__(
        self,
        experience: ExperienceProfile,
        assessments: Iterable,
        threshold: Optional[int] = None,
    ):
        self.experience = experience
        self.assessments = list(assessments)
        self.threshold = DEFAULT_PROFICIENCY_THRESHOLD if threshold is None else threshold

    def verified_skills(self) -> Set[str]:
        return {name.strip() for name in self.experience.all_skill_names if name.strip()}

    def _overrides(self):
        have: Dict[str, Optional[int]] = {}
        dont_have: Set[str] = set()
        for assessment in self.assessments:
            if assessment.have:
                have[assessment.skill_name] = assessment.proficiency
            else:
                dont_have.add(assessment.skill_name)
        return have, dont_have

    def _included(self, have: Dict[str, Optional[int]]) -> List[str]:
        return [
            skill
            for skill, proficiency in have.items()
            if proficiency is not None and proficiency >= self.threshold
        ]

    def effective_skills(self) -> List[str]:
        """Return the sorted effective skill names (lowercase)."""
        have, dont_have = self._overrides()
        effective = self.verified_skills()
        effective.update(self._included(have))
        effective.difference_update(dont_have)
        return sorted(effective)

    def skill_summary(self) -> Dict[str, int]:
        have, dont_have = self._overrides()
        return {
            "verified_count": len(self.verified_skills()),
            "included_count": len(self._included(have)),
            "excluded_count": len(dont_have),
            "total_effective": len(self.effective_skills()),
        }
