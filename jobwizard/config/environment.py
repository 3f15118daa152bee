"""Environment variable loading and validation."""

import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from pydantic import ValidationError

from .duration import DurationParseError, parse_duration, validate_duration_range
from .exceptions import ConfigurationError
from .models import AdvancedConfig, AIWriterSettings, LogFormat, LogLevel, PathStyle

DEFAULT_DATABASE_URL = "sqlite:///./data/job_wizard.db"
DEFAULT_CONFIG_DIR = "./config"
DEFAULT_OUTPUT_ROOT = "~/Documents/JobWizard"
DEFAULT_TMP_ROOT = "./tmp/outputs"


class EnvironmentConfig:
    """Runtime settings read from environment variables."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        log_format: Optional[str] = None,
        environment: Optional[str] = None,
        config_dir: Optional[Path] = None,
        output_root: Optional[Path] = None,
        tmp_root: Optional[Path] = None,
        path_style: Optional[str] = None,
        schedule_interval_seconds: Optional[int] = None,
        proficiency_threshold: int = 3,
        ai: Optional[AIWriterSettings] = None,
        advanced: Optional[AdvancedConfig] = None,
        fallback_prices: Optional[Dict[str, float]] = None,
    ):
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.log_level = log_level
        self.log_format = log_format or LogFormat.KEY_VALUE.value
        self.environment = environment or "local"
        self.config_dir = Path(config_dir or DEFAULT_CONFIG_DIR)
        self.output_root = Path(output_root or DEFAULT_OUTPUT_ROOT).expanduser()
        self.tmp_root = Path(tmp_root or DEFAULT_TMP_ROOT)
        self.path_style = path_style or PathStyle.SIMPLE.value
        self.schedule_interval_seconds = schedule_interval_seconds
        self.proficiency_threshold = proficiency_threshold
        self.ai = ai or AIWriterSettings()
        self.advanced = advanced or AdvancedConfig()
        self.fallback_prices = fallback_prices or {
            "input": 0.15,
            "cached_input": 0.075,
            "output": 0.60,
        }

    @property
    def rules_path(self) -> Path:
        return self.config_dir / "rules.yml"

    @property
    def sources_path(self) -> Path:
        return self.config_dir / "sources.yml"

    @property
    def profile_path(self) -> Path:
        return self.config_dir / "profile.yml"

    @property
    def experience_path(self) -> Path:
        return self.config_dir / "experience.yml"


def load_environment_config(environ: Optional[Mapping[str, str]] = None) -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Every variable is optional and has a default. Validation errors are
    collected and raised together.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        EnvironmentConfig with validated values

    Raises:
        ConfigurationError: If any variable holds an invalid value
    """
    env = os.environ if environ is None else environ
    errors = []

    log_level = env.get("LOG_LEVEL")
    if log_level and log_level.upper() not in LogLevel.__members__:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: "
            f"{', '.join(LogLevel.__members__)}"
        )

    log_format = env.get("LOG_FORMAT")
    if log_format and log_format not in {f.value for f in LogFormat}:
        errors.append(f"Invalid LOG_FORMAT: '{log_format}'. Must be 'json' or 'key-value'")

    path_style = env.get("JOB_WIZARD_PATH_STYLE")
    if path_style and path_style not in {s.value for s in PathStyle}:
        errors.append(
            f"Invalid JOB_WIZARD_PATH_STYLE: '{path_style}'. Must be 'simple' or 'nested'"
        )

    schedule_seconds = None
    schedule = env.get("JOB_WIZARD_SCHEDULE_FETCH")
    if schedule:
        try:
            schedule_seconds = parse_duration(schedule)
            validate_duration_range(schedule_seconds)
        except DurationParseError as e:
            errors.append(f"Invalid JOB_WIZARD_SCHEDULE_FETCH: {e}")

    threshold = _int_var(env, "JW_PROF_THRESHOLD", 3, errors)
    if threshold is not None and not 1 <= threshold <= 5:
        errors.append(f"Invalid JW_PROF_THRESHOLD: {threshold}. Must be between 1 and 5.")

    fallback_prices = {
        "input": _float_var(env, "OPENAI_PRICE_INPUT_PER_M", 0.15, errors),
        "cached_input": _float_var(env, "OPENAI_PRICE_CACHED_INPUT_PER_M", 0.075, errors),
        "output": _float_var(env, "OPENAI_PRICE_OUTPUT_PER_M", 0.60, errors),
    }

    openai_key = env.get("OPENAI_API_KEY") or None
    writer_default = "openai" if openai_key else "templates"

    ai = None
    advanced = None
    try:
        ai = AIWriterSettings(
            writer=env.get("AI_WRITER") or writer_default,
            openai_api_key=openai_key,
            anthropic_api_key=env.get("ANTHROPIC_API_KEY") or None,
            openai_model=env.get("OPENAI_MODEL") or "gpt-4o-mini",
            anthropic_model=env.get("ANTHROPIC_MODEL") or "claude-3-5-haiku-latest",
            temperature_resume=env.get("OPENAI_TEMP_RESUME") or 0.5,
            temperature_cover_letter=env.get("OPENAI_TEMP_COVER_LETTER") or 0.7,
            max_tokens=env.get("OPENAI_MAX_TOKENS") or 800,
        )
        advanced = AdvancedConfig(
            http_request_timeout=env.get("HTTP_TIMEOUT") or 30,
            user_agent=env.get("HTTP_USER_AGENT") or "JobWizard/1.0",
        )
    except ValidationError as e:
        for error in e.errors():
            field_path = " -> ".join(str(loc) for loc in error["loc"])
            errors.append(f"{field_path}: {error['msg']}")

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and review the values",
                "Unset variables you do not need; every variable has a default",
            ],
        )

    return EnvironmentConfig(
        database_url=env.get("DATABASE_URL"),
        log_level=log_level.upper() if log_level else None,
        log_format=log_format,
        environment=env.get("ENVIRONMENT"),
        config_dir=env.get("JOB_WIZARD_CONFIG_DIR"),
        output_root=env.get("JOB_WIZARD_OUTPUT_ROOT"),
        tmp_root=env.get("JOB_WIZARD_TMP_ROOT"),
        path_style=path_style,
        schedule_interval_seconds=schedule_seconds,
        proficiency_threshold=threshold,
        ai=ai,
        advanced=advanced,
        fallback_prices=fallback_prices,
    )


def _int_var(env: Mapping[str, str], name: str, default: int, errors: list) -> Optional[int]:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        errors.append(f"Invalid {name}: '{raw}'. Must be a valid integer.")
        return None


def _float_var(env: Mapping[str, str], name: str, default: float, errors: list) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        errors.append(f"Invalid {name}: '{raw}'. Must be a number.")
        return default
