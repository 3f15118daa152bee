"""Guarded edits of rules.yml (exclude keywords only)."""

import shutil
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml

from jobwizard.logging import get_logger
from jobwizard.utils.timestamps import utc_now

from .rules import RulesProvider

logger = get_logger(__name__, component="rules")

BACKUPS_TO_KEEP = 5


class SafeRulesWriter:
    """
    Adds or removes ``exclude_keywords`` entries in rules.yml.

    Each write is preceded by a timestamped backup
    (``rules.yml.backup.<timestamp>``); the newest five are kept. A failed
    write restores the backup. After a successful write the process-wide
    rules are reloaded.

    Attributes:
        errors: Messages for failed operations
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        on_change: Optional[Callable[[], Any]] = None,
    ):
        self.rules_path = Path(path) if path else RulesProvider.path()
        self.errors: List[str] = []
        self._on_change = on_change if on_change is not None else RulesProvider.reload

    def add_exclude_keyword(self, keyword: str) -> bool:
        keyword = (keyword or "").strip()
        if not keyword:
            self.errors.append("Keyword cannot be blank")
            return False

        try:
            rules = self._load_rules()
            section = self._filters_section(rules)
            keywords = self._keywords(rules[section])
            if keyword not in keywords:
                keywords.append(keyword)
                rules[section]["exclude_keywords"] = keywords
                self._write_rules(rules)
            return True
        except (OSError, yaml.YAMLError) as e:
            self._record_error(f"Failed to add keyword: {e}")
            return False

    def remove_exclude_keyword(self, keyword: str) -> bool:
        keyword = (keyword or "").strip()
        try:
            rules = self._load_rules()
            section = self._filters_section(rules)
            keywords = [kw for kw in self._keywords(rules[section]) if kw != keyword]
            rules[section]["exclude_keywords"] = keywords
            self._write_rules(rules)
            return True
        except (OSError, yaml.YAMLError) as e:
            self._record_error(f"Failed to remove keyword: {e}")
            return False

    def _load_rules(self) -> Dict[str, Any]:
        """Read rules.yml, raising on parse errors."""
        if not self.rules_path.exists():
            return {}
        with open(self.rules_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise yaml.YAMLError(f"{self.rules_path} does not contain a mapping")
        return data

    @staticmethod
    def _filters_section(rules: Dict[str, Any]) -> str:
        """Pick job_filters, or job_filters_ruby when only that exists."""
        if "job_filters" not in rules and "job_filters_ruby" in rules:
            section = "job_filters_ruby"
        else:
            section = "job_filters"
        if not isinstance(rules.get(section), dict):
            rules[section] = {}
        return section

    @staticmethod
    def _keywords(section: Dict[str, Any]) -> List[str]:
        value = section.get("exclude_keywords") or []
        return [str(kw) for kw in (value if isinstance(value, list) else [value])]

    def _backup_path(self) -> Path:
        stamp = utc_now().strftime("%Y%m%d%H%M%S%f")
        return self.rules_path.with_name(f"{self.rules_path.name}.backup.{stamp}")

    def _write_rules(self, rules: Dict[str, Any]) -> None:
        backup_path = None
        if self.rules_path.exists():
            backup_path = self._backup_path()
            shutil.copy2(self.rules_path, backup_path)

        try:
            self.rules_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.rules_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(rules, f, sort_keys=False, allow_unicode=True)
        except (OSError, yaml.YAMLError):
            if backup_path is not None and backup_path.exists():
                shutil.copy2(backup_path, self.rules_path)
                logger.warning(
                    "Restored rules.yml from backup after failed write",
                    extra={"event": "rules.write.restored", "backup": str(backup_path)},
                )
            raise

        self._cleanup_old_backups()
        logger.info(
            "rules.yml updated",
            extra={"event": "rules.write.succeeded", "path": str(self.rules_path)},
        )
        self._on_change()

    def _cleanup_old_backups(self) -> None:
        pattern = f"{self.rules_path.name}.backup.*"
        backups = sorted(self.rules_path.parent.glob(pattern), reverse=True)
        for backup in backups[BACKUPS_TO_KEEP:]:
            backup.unlink()

    def _record_error(self, message: str) -> None:
        self.errors.append(message)
        logger.error(message, extra={"event": "rules.write.failed", "path": str(self.rules_path)})
