"""Access to rules.yml with fallback keys and a reloadable process-wide holder."""

import threading
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from jobwizard.logging import get_logger

logger = get_logger(__name__, component="rules")

DEFAULT_RULES_PATH = Path("config") / "rules.yml"


def load_rules_data(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read rules.yml into a mapping.

    A missing file, a YAML error or a non-mapping document yields an empty
    mapping; the problem is logged and never raised.
    """
    path = Path(path)
    if not path.exists():
        logger.debug(
            "Rules file not found, using empty rules",
            extra={"event": "rules.load.missing", "path": str(path)},
        )
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, OSError) as e:
        logger.error(
            f"Failed to load rules from {path}: {e}",
            extra={"event": "rules.load.failed", "path": str(path), "error_type": type(e).__name__},
        )
        return {}

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.error(
            f"Rules file {path} does not contain a mapping",
            extra={"event": "rules.load.failed", "path": str(path), "error_type": "TypeError"},
        )
        return {}
    return data


class Rules:
    """
    Parsed rules.yml content.

    Primary section keys (job_filters, scoring, ranking, ui) win over their
    legacy ``*_ruby`` equivalents.

    Example:
        >>> rules = Rules({"scoring_ruby": {"boosts": {"rails": 5}}})
        >>> rules.scoring
        {'boosts': {'rails': 5}}
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None, path: Optional[Path] = None):
        self.data: Dict[str, Any] = data or {}
        self.path = path

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Rules":
        """Load rules from a YAML file (empty rules on any error)."""
        return cls(load_rules_data(path), path=Path(path))

    def _section(self, key: str, fallback: Optional[str] = None) -> Dict[str, Any]:
        value = self.data.get(key)
        if value is None and fallback:
            value = self.data.get(fallback)
        return value if isinstance(value, dict) else {}

    @property
    def job_filters(self) -> Dict[str, Any]:
        return self._section("job_filters", "job_filters_ruby")

    @property
    def scoring(self) -> Dict[str, Any]:
        return self._section("scoring", "scoring_ruby")

    @property
    def ranking(self) -> Dict[str, Any]:
        return self._section("ranking", "ranking_ruby")

    @property
    def ui(self) -> Dict[str, Any]:
        return self._section("ui", "ui_ruby")

    @property
    def warnings(self) -> Dict[str, Any]:
        return self._section("warnings")

    @property
    def blocking(self) -> Dict[str, Any]:
        return self._section("blocking")

    @property
    def info(self) -> Dict[str, Any]:
        return self._section("info")

    @property
    def skill_verification(self) -> Dict[str, Any]:
        return self._section("skill_verification")

    @property
    def filters(self) -> Dict[str, Any]:
        return self._section("filters")

    def __repr__(self) -> str:
        return f"Rules(path={self.path!s}, sections={sorted(self.data)})"


class RulesProvider:
    """Process-wide holder for the current Rules.

    Services take a Rules argument and fall back to ``RulesProvider.current()``.
    ``reload()`` re-reads the file after rules.yml has been edited.
    """

    _lock = threading.Lock()
    _path: Path = DEFAULT_RULES_PATH
    _current: Optional[Rules] = None

    @classmethod
    def configure(cls, path: Union[str, Path]) -> None:
        """Point the provider at a rules file and drop any cached rules."""
        with cls._lock:
            cls._path = Path(path)
            cls._current = None

    @classmethod
    def current(cls) -> Rules:
        with cls._lock:
            if cls._current is None:
                cls._current = Rules.load(cls._path)
            return cls._current

    @classmethod
    def reload(cls) -> Rules:
        with cls._lock:
            cls._current = Rules.load(cls._path)
            logger.info(
                "Rules reloaded",
                extra={"event": "rules.reloaded", "path": str(cls._path)},
            )
            return cls._current

    @classmethod
    def reset(cls) -> None:
        """Forget cached rules and the configured path (used by tests)."""
        with cls._lock:
            cls._current = None
            cls._path = DEFAULT_RULES_PATH

    @classmethod
    def path(cls) -> Path:
        return cls._path
