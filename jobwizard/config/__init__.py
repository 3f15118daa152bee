"""Configuration management for Job Wizard."""

from .duration import DurationParseError, parse_duration, validate_duration_range
from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import (
    find_config_dir,
    load_experience_data,
    load_profile,
    load_sources,
    read_yaml,
    read_yaml_mapping,
)
from .models import (
    AdvancedConfig,
    AIWriterSettings,
    Education,
    LogFormat,
    LogLevel,
    ModelPrice,
    PathStyle,
    Position,
    ProfileConfig,
    ProviderType,
    SkillEntry,
    SkillLevel,
    SourceEntry,
    SourcesConfig,
)
from .validators import validate_documents

__all__ = [
    # Loaders
    "load_environment_config",
    "load_sources",
    "load_profile",
    "load_experience_data",
    "read_yaml",
    "read_yaml_mapping",
    "find_config_dir",
    "validate_documents",
    # Models
    "EnvironmentConfig",
    "SourcesConfig",
    "SourceEntry",
    "ProfileConfig",
    "Education",
    "SkillEntry",
    "Position",
    "AdvancedConfig",
    "AIWriterSettings",
    "ModelPrice",
    # Enums
    "ProviderType",
    "LogLevel",
    "LogFormat",
    "PathStyle",
    "SkillLevel",
    # Duration
    "parse_duration",
    "validate_duration_range",
    "DurationParseError",
    # Exceptions
    "ConfigurationError",
]
