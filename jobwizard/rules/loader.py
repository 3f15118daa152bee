"""Rule-engine filter settings merged over built-in defaults."""

import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Pattern

from jobwizard.logging import get_logger
from jobwizard.utils.text import unique

from .rules import Rules, RulesProvider

logger = get_logger(__name__, component="rules")

DEFAULT_FILTERS: Dict[str, Any] = {
    "company_blocklist": [],
    "content_blocklist": [
        "nsfw",
        "adult",
        "entertainment",
        "porn",
        "gambling",
        "casino",
        "sportsbook",
        "crypto casino",
    ],
    "require_no_security_clearance": True,
    "allow_background_checks": True,
    "allowed_phrases": ["background check", "background screening"],
    "excluded_phrases": [
        "active security clearance",
        "secret clearance",
        "ts/sci",
        "dod clearance",
    ],
    "required_keywords": ["ruby", "rails"],
    "excluded_keywords": ["php", "dotnet", ".net", "golang", "cobol"],
}

REGEX_LITERAL = re.compile(r"^/(.+)/([a-z]*)$")


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def merge_with_defaults(filters: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge a ``filters`` section over DEFAULT_FILTERS.

    List settings keep the YAML entries first, then the defaults, without
    duplicates. Scalar settings take the YAML value unless it is null.
    """
    merged = {}
    for key, default in DEFAULT_FILTERS.items():
        value = filters.get(key)
        if isinstance(default, list):
            merged[key] = unique(_as_list(value) + default)
        else:
            merged[key] = default if value is None else value

    for key, value in filters.items():
        merged.setdefault(key, value)
    return merged


def compile_patterns(items: Iterable[str]) -> List[Pattern]:
    """
    Compile blocklist entries into regexes.

    ``/pattern/flags`` entries become regexes (case-insensitive when flags
    contain ``i``); anything else becomes a case-insensitive literal. An
    invalid regex falls back to the escaped literal.
    """
    compiled = []
    for item in items:
        text = str(item)
        match = REGEX_LITERAL.match(text)
        if match:
            flags = re.IGNORECASE if "i" in match.group(2) else 0
            try:
                compiled.append(re.compile(match.group(1), flags))
                continue
            except re.error as e:
                logger.warning(
                    f"Invalid regex pattern '{text}': {e}",
                    extra={"event": "rules.pattern.invalid", "pattern": text},
                )
        compiled.append(re.compile(re.escape(text), re.IGNORECASE))
    return compiled


class RulesLoader:
    """Exposes the merged ``filters`` section used by the rules engine."""

    def __init__(
        self,
        rules: Optional[Rules] = None,
        blocked_company_names: Optional[Callable[[], List[str]]] = None,
    ):
        """
        Args:
            rules: Parsed rules (defaults to RulesProvider.current())
            blocked_company_names: Callable returning names from the
                blocked companies table
        """
        self.rules = rules if rules is not None else RulesProvider.current()
        self._blocked_company_names = blocked_company_names
        self.filters = merge_with_defaults(self.rules.filters)

    @property
    def company_blocklist(self) -> List[str]:
        yaml_companies = [
            str(name) for name in self.filters["company_blocklist"] if name and str(name).strip()
        ]
        db_companies = self._blocked_company_names() if self._blocked_company_names else []
        return unique(yaml_companies + list(db_companies))

    @property
    def content_blocklist(self) -> List[str]:
        return self.filters["content_blocklist"]

    @property
    def required_keywords(self) -> List[str]:
        return self.filters["required_keywords"]

    @property
    def excluded_keywords(self) -> List[str]:
        return self.filters["excluded_keywords"]

    @property
    def require_no_security_clearance(self) -> bool:
        return bool(self.filters["require_no_security_clearance"])

    @property
    def allow_background_checks(self) -> bool:
        return bool(self.filters["allow_background_checks"])

    @property
    def allowed_phrases(self) -> List[str]:
        return self.filters["allowed_phrases"]

    @property
    def excluded_phrases(self) -> List[str]:
        return self.filters["excluded_phrases"]
