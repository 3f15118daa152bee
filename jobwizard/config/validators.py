"""Validation of the YAML documents used for document generation."""

from pathlib import Path
from typing import Any, Dict, List

from pydantic import ValidationError

from .exceptions import ConfigurationError
from .loader import format_validation_errors, read_yaml
from .models import ProfileConfig

TIERED_SKILL_KEYS = ("proficient", "working_knowledge", "familiar")


def validate_profile_data(data: Any) -> List[str]:
    """Return problems found in profile.yml content."""
    if not isinstance(data, dict):
        return ["profile.yml: document must be a mapping"]
    try:
        ProfileConfig.model_validate(data)
    except ValidationError as e:
        return [f"profile.yml: {message}" for message in format_validation_errors(e)]
    return []


def validate_skills_format(skills: Any) -> List[str]:
    """
    Check that a skills section uses one of the supported formats.

    Supported formats are a list of ``{name, level, context}`` mappings, a
    tiered mapping keyed by proficient/working_knowledge/familiar, or a flat
    list of names.
    """
    errors = []

    if isinstance(skills, dict):
        unknown = [key for key in skills if key not in TIERED_SKILL_KEYS]
        if unknown:
            errors.append(
                "experience.yml: unknown skill tiers "
                f"{', '.join(str(key) for key in unknown)} "
                f"(expected {', '.join(TIERED_SKILL_KEYS)})"
            )
        for key in TIERED_SKILL_KEYS:
            value = skills.get(key)
            if value is not None and not isinstance(value, list):
                errors.append(f"experience.yml: skills.{key} must be a list")
        return errors

    if not isinstance(skills, list):
        return ["experience.yml: skills must be a list or a tiered mapping"]

    for index, skill in enumerate(skills):
        if isinstance(skill, str):
            if not skill.strip():
                errors.append(f"experience.yml: skills[{index}] is blank")
        elif isinstance(skill, dict):
            name = skill.get("name")
            if not isinstance(name, str) or not name.strip():
                errors.append(f"experience.yml: skills[{index}] is missing a name")
        else:
            errors.append(
                f"experience.yml: skills[{index}] must be a name or a mapping with a name"
            )
    return errors


def validate_experience_data(data: Any) -> List[str]:
    """Return problems found in experience.yml content."""
    if not isinstance(data, dict):
        return ["experience.yml: document must be a mapping"]

    errors = []
    if "skills" not in data or data["skills"] is None:
        errors.append("experience.yml: missing required key 'skills'")
    else:
        errors.extend(validate_skills_format(data["skills"]))

    positions = data.get("positions")
    if positions is None:
        errors.append("experience.yml: missing required key 'positions'")
    elif not isinstance(positions, list):
        errors.append("experience.yml: positions must be a list")
    else:
        for index, position in enumerate(positions):
            if not isinstance(position, dict):
                errors.append(f"experience.yml: positions[{index}] must be a mapping")
                continue
            for field in ("company", "title"):
                if not position.get(field):
                    errors.append(f"experience.yml: positions[{index}] is missing '{field}'")
    return errors


def validate_rules_data(data: Any) -> List[str]:
    """Return problems found in rules.yml content."""
    if data is not None and not isinstance(data, dict):
        return ["rules.yml: document must be a mapping"]
    return []


def _load_for_validation(path: Path, errors: List[str]) -> Any:
    try:
        return read_yaml(path)
    except ConfigurationError as e:
        errors.append(f"{path.name}: {e.message}")
        return None


def validate_documents(profile_path: Path, experience_path: Path, rules_path: Path) -> Dict[str, Any]:
    """
    Validate profile, experience and rules documents together.

    Args:
        profile_path: Path to profile.yml
        experience_path: Path to experience.yml
        rules_path: Path to rules.yml

    Returns:
        Mapping with the parsed ``profile``, ``experience`` and ``rules`` data

    Raises:
        ConfigurationError: Listing every problem found across the documents
    """
    errors: List[str] = []

    profile = _load_for_validation(profile_path, errors)
    if profile is not None or profile_path.exists():
        errors.extend(validate_profile_data(profile))

    experience = _load_for_validation(experience_path, errors)
    if experience is not None or experience_path.exists():
        errors.extend(validate_experience_data(experience))

    rules = None
    if rules_path.exists():
        rules = _load_for_validation(rules_path, errors)
        errors.extend(validate_rules_data(rules))

    if errors:
        raise ConfigurationError(
            "YAML document validation failed",
            errors=errors,
            suggestions=[
                "Fix the listed fields and run 'job-wizard validate' again",
                "See config.example/ for annotated sample documents",
            ],
        )

    return {"profile": profile, "experience": experience, "rules": rules or {}}
