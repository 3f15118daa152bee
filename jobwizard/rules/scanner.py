"""Flags raised by rules.yml warning, blocking and info rules for a job description."""

import re
from typing import Any, Dict, List, Optional

from jobwizard.logging import get_logger
from jobwizard.skills.experience import ExperienceProfile
from jobwizard.utils.text import unique

from .rules import Rules, RulesProvider

logger = get_logger(__name__, component="rules")

CATEGORIES = ("warnings", "blocking", "info")

TECH_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\b(Ruby|Python|JavaScript|TypeScript|Java|Go|Rust|PHP|C\+\+|C#|Swift|Kotlin|Elixir|Zig)\b",
        r"\b(Rails|Django|React|Vue|Angular|Node\.js|Express|Flask|Laravel|Spring|Phoenix)\b",
        r"\b(PostgreSQL|MySQL|MongoDB|Redis|Elasticsearch|DynamoDB|SQLite)\b",
        r"\b(AWS|Azure|GCP|Docker|Kubernetes|Terraform|Jenkins|CircleCI|GitHub Actions)\b",
        r"\b(Git|Webpack|Babel|Jest|RSpec|Sidekiq|GraphQL|REST|Kafka|RabbitMQ)\b",
    )
]

NOT_CLAIMED_MESSAGE = "Skill mentioned but marked as exposure-only (not core competency)"
DEFAULT_UNVERIFIED_MESSAGE = "Skill not in verified experience"
DEFAULT_UNVERIFIED_ACTION = "mark_as_not_claimed"


def empty_scan_result() -> Dict[str, List[Dict[str, Any]]]:
    return {
        "warnings": [],
        "blocking": [],
        "info": [],
        "unverified_skills": [],
        "not_claimed_skills": [],
    }


def extract_potential_skills(text: str) -> List[str]:
    """Technology names found in text, as written, without duplicates."""
    skills = []
    for pattern in TECH_PATTERNS:
        skills.extend(unique(pattern.findall(text)))
    return unique(skills)


class RulesScanner:
    """
    Scans a job description against rules.yml flag rules.

    Example:
        >>> scanner = RulesScanner(rules, experience)
        >>> scanner.scan("Active secret clearance required")["blocking"]
        [{'rule': 'clearance', 'message': '...', 'note': None, 'severity': 'high'}]
    """

    def __init__(
        self,
        rules: Optional[Rules] = None,
        experience: Optional[ExperienceProfile] = None,
    ):
        self.rules = rules if rules is not None else RulesProvider.current()
        self.experience = experience or ExperienceProfile({})

    def scan(self, job_description: Optional[str]) -> Dict[str, List[Dict[str, Any]]]:
        """Return flags keyed by warnings, blocking, info, unverified_skills and not_claimed_skills."""
        result = empty_scan_result()
        if job_description is None or not str(job_description).strip():
            return result

        text = str(job_description)
        for category in CATEGORIES:
            self._scan_category(text, category, result)

        if self.rules.skill_verification.get("flag_unverified"):
            self._categorize_skills(text, result)

        return result

    def has_blocking_flags(self, job_description: Optional[str]) -> bool:
        return bool(self.scan(job_description)["blocking"])

    def is_clean(self, job_description: Optional[str]) -> bool:
        """True when neither warnings nor blocking flags are raised."""
        result = self.scan(job_description)
        return not result["warnings"] and not result["blocking"]

    def _scan_category(self, text: str, category: str, result: Dict[str, List]) -> None:
        category_rules = getattr(self.rules, category)
        for rule_name, rule_data in category_rules.items():
            if not isinstance(rule_data, dict) or not self._matches_any_pattern(text, rule_data):
                continue
            result[category].append(
                {
                    "rule": rule_name,
                    "message": rule_data.get("message"),
                    "note": rule_data.get("note"),
                    "severity": rule_data.get("severity"),
                }
            )

    @staticmethod
    def _matches_any_pattern(text: str, rule_data: Dict[str, Any]) -> bool:
        patterns = rule_data.get("patterns") or rule_data.get("pattern") or []
        if isinstance(patterns, str):
            patterns = [patterns]

        for pattern in patterns:
            try:
                if re.search(str(pattern), text, re.IGNORECASE):
                    return True
            except re.error as e:
                logger.warning(
                    f"Invalid rule pattern '{pattern}': {e}",
                    extra={"event": "rules.pattern.invalid", "pattern": str(pattern)},
                )
        return False

    def _categorize_skills(self, text: str, result: Dict[str, List]) -> None:
        verification = self.rules.skill_verification
        for skill in extract_potential_skills(text):
            if self.experience.is_verified(skill):
                continue
            if self.experience.is_not_claimed_skill(skill):
                result["not_claimed_skills"].append(
                    {
                        "skill": skill,
                        "message": NOT_CLAIMED_MESSAGE,
                        "action": "mention_as_exposure",
                    }
                )
            else:
                result["unverified_skills"].append(
                    {
                        "skill": skill,
                        "message": verification.get("message") or DEFAULT_UNVERIFIED_MESSAGE,
                        "action": verification.get("action") or DEFAULT_UNVERIFIED_ACTION,
                    }
                )
