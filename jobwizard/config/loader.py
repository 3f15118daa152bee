"""YAML configuration loaders for sources, profile and experience files."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ValidationError

from jobwizard.logging import get_logger

from .exceptions import ConfigurationError
from .models import ProfileConfig, SourcesConfig

logger = get_logger(__name__, component="config")


def read_yaml(path: Path) -> Any:
    """
    Read and parse a YAML file.

    Args:
        path: File to read

    Returns:
        Parsed YAML content (None for an empty file)

    Raises:
        ConfigurationError: If the file is missing, unreadable or not valid YAML
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(
            "Configuration file not found",
            path=path,
            suggestions=[
                f"Create {path.name} in your configuration directory",
                "Set JOB_WIZARD_CONFIG_DIR to the directory holding your YAML files",
            ],
        )
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML: {e}",
            path=path,
            suggestions=[
                "Check YAML syntax in the file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
        )
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            path=path,
            suggestions=["Check file permissions"],
        )


def read_yaml_mapping(path: Path) -> Dict[str, Any]:
    """Read a YAML file that must contain a mapping at the top level."""
    data = read_yaml(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a mapping at the top level, got {type(data).__name__}",
            path=path,
        )
    return data


def format_validation_errors(error: ValidationError) -> List[str]:
    """Convert a pydantic ValidationError into readable messages."""
    messages = []
    for item in error.errors():
        field_path = " -> ".join(str(loc) for loc in item["loc"]) or "(root)"
        error_type = item["type"]

        if error_type == "missing":
            messages.append(f"Missing required field: {field_path}")
        elif error_type.endswith("_type"):
            expected = error_type.replace("_type", "")
            messages.append(
                f"Invalid type for '{field_path}': expected {expected}, got {item.get('input')!r}"
            )
        elif "enum" in error_type:
            messages.append(f"Invalid value for '{field_path}': {item['msg']}")
        else:
            messages.append(f"{field_path}: {item['msg']}")
    return messages


def _validate(model: type, data: Dict[str, Any], path: Path, label: str) -> BaseModel:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"{label} validation failed",
            errors=format_validation_errors(e),
            path=path,
            suggestions=[f"Review the {label.lower()} file against the documented format"],
        )


def load_sources(path: Path) -> SourcesConfig:
    """
    Load sources.yml.

    A missing file is not an error: it yields an empty source list.

    Args:
        path: Path to sources.yml

    Returns:
        Validated SourcesConfig

    Raises:
        ConfigurationError: If the file exists but is invalid
    """
    if not path.exists():
        logger.warning(
            "sources.yml not found, no sources will be fetched",
            extra={"event": "config.sources.missing", "path": str(path)},
        )
        return SourcesConfig()

    return _validate(SourcesConfig, read_yaml_mapping(path), path, "Sources")


def load_profile(path: Path) -> ProfileConfig:
    """Load and validate profile.yml."""
    return _validate(ProfileConfig, read_yaml_mapping(path), path, "Profile")


def load_experience_data(path: Path) -> Dict[str, Any]:
    """Load experience.yml as raw data (format normalization happens in skills)."""
    return read_yaml_mapping(path)


def find_config_dir(config_dir: Optional[Path] = None) -> Path:
    """
    Resolve the directory holding the YAML files.

    Tries the explicit directory, then ./config, then ./config/job_wizard.

    Raises:
        ConfigurationError: If no candidate directory exists
    """
    if config_dir is not None:
        if not config_dir.is_dir():
            raise ConfigurationError(
                f"Configuration directory not found: {config_dir}",
                suggestions=["Check JOB_WIZARD_CONFIG_DIR or the --config-dir flag"],
            )
        return config_dir

    candidates = [Path("config"), Path("config") / "job_wizard"]
    for candidate in candidates:
        if (candidate / "rules.yml").exists() or (candidate / "sources.yml").exists():
            return candidate

    raise ConfigurationError(
        "Configuration directory not found",
        errors=[f"Tried: {candidate}" for candidate in candidates],
        suggestions=[
            "Copy config.example/ to config/",
            "Use --config-dir to specify a custom location",
        ],
    )
