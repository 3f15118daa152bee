"""Rejection rules applied to every fetched or manually added posting."""

from collections import deque
from typing import Any, Callable, Deque, Dict, List, NamedTuple, Optional, Sequence

from jobwizard.logging import get_logger
from jobwizard.utils.timestamps import utc_now

from .loader import REGEX_LITERAL, RulesLoader, compile_patterns
from .rules import Rules

logger = get_logger(__name__, component="rules")

REJECTION_LOG_SIZE = 100
MANUAL_SOURCE = "manual"


class RejectionDecision(NamedTuple):
    """Outcome of RulesEngine.should_reject()."""

    rejected: bool
    reasons: List[str]


class RulesEngine:
    """
    Applies company, content, clearance and keyword rules to a posting.

    ``posting`` may be any object with ``company``, ``title``, ``description``
    and ``source`` attributes, plus an optional ``id``.

    Example:
        >>> engine = RulesEngine(Rules({}))
        >>> decision = engine.should_reject(posting)
        >>> decision.rejected, decision.reasons
        (True, ['Missing required keywords (Ruby/Rails)'])
    """

    def __init__(
        self,
        rules: Optional[Rules] = None,
        blocked_companies: Optional[Callable[[], Sequence[Any]]] = None,
    ):
        """
        Args:
            rules: Parsed rules (defaults to RulesProvider.current())
            blocked_companies: Callable returning BlockedCompany records,
                called once on the first check and kept for this engine
        """
        self._blocked_companies = blocked_companies
        self._blocked_snapshot: Optional[List[Any]] = None
        self.loader = RulesLoader(rules, blocked_company_names=self._blocked_company_names)
        self._rejection_log: Deque[Dict[str, Any]] = deque(maxlen=REJECTION_LOG_SIZE)

    def _blocked_company_records(self) -> Sequence[Any]:
        if self._blocked_snapshot is None:
            self._blocked_snapshot = list(self._blocked_companies()) if self._blocked_companies else []
        return self._blocked_snapshot

    def _blocked_company_names(self) -> List[str]:
        return [record.name for record in self._blocked_company_records()]

    def should_reject(self, posting: Any) -> RejectionDecision:
        """Run every check in order and collect rejection reasons."""
        company = getattr(posting, "company", None) or ""
        title = getattr(posting, "title", None) or ""
        description = getattr(posting, "description", None) or ""
        text = f"{title} {description}".lower()

        reasons = []

        if self.company_blocked(company):
            reasons.append(f"Company '{company}' is blocked")

        if self._contains_any(text, self.loader.content_blocklist):
            reasons.append("Contains blocked content")

        if self.security_clearance_required(text):
            reasons.append("Requires security clearance")

        if not self._manually_added(posting) and not self._contains_any(
            text, self.loader.required_keywords
        ):
            reasons.append("Missing required keywords (Ruby/Rails)")

        if self._contains_any(text, self.loader.excluded_keywords):
            reasons.append("Contains excluded keywords")

        rejected = bool(reasons)
        if rejected:
            self._log_rejection(posting, company, title, reasons)

        return RejectionDecision(rejected, reasons)

    def company_blocked(self, company: str) -> bool:
        if not company or not company.strip():
            return False

        for blocked in self.loader.company_blocklist:
            if REGEX_LITERAL.match(blocked):
                if compile_patterns([blocked])[0].search(company):
                    return True
            elif company.lower() == blocked.lower():
                return True

        return any(record.matches(company) for record in self._blocked_company_records())

    def security_clearance_required(self, text: str) -> bool:
        """Check clearance phrases in lowercased title + description."""
        if not self.loader.require_no_security_clearance:
            return False

        excluded_found = self._contains_any(text, self.loader.excluded_phrases)
        if self.loader.allow_background_checks:
            return excluded_found and not self._contains_any(text, self.loader.allowed_phrases)
        return excluded_found

    def recent_rejections(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Return the newest rejection log entries, oldest first."""
        if limit <= 0:
            return []
        return list(self._rejection_log)[-limit:]

    @staticmethod
    def _contains_any(text: str, terms: Sequence[str]) -> bool:
        return any(str(term).lower() in text for term in terms)

    @staticmethod
    def _manually_added(posting: Any) -> bool:
        source = getattr(posting, "source", None)
        return not source or not str(source).strip() or source == MANUAL_SOURCE

    def _log_rejection(self, posting: Any, company: str, title: str, reasons: List[str]) -> None:
        entry = {
            "job_id": getattr(posting, "id", None),
            "company": company,
            "title": title,
            "reasons": list(reasons),
            "timestamp": utc_now(),
        }
        self._rejection_log.append(entry)

        logger.debug(
            "Posting rejected by rules",
            extra={
                "event": "rules.rejected",
                "company": company,
                "title": title,
                "reasons": reasons,
            },
        )
