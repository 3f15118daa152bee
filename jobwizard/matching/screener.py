"""Combined rules engine, keyword filter and ranker pass for fetched jobs."""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from jobwizard.logging import get_logger
from jobwizard.rules.engine import RulesEngine
from jobwizard.rules.rules import Rules, RulesProvider

from .filter import JobFilter
from .ranker import JobRanker

logger = get_logger(__name__, component="matching")

STAGE_RULES = "rules"
STAGE_FILTER = "filter"
STAGE_SCORE = "score"


@dataclass
class ScreeningResult:
    """Outcome of screening one job.

    Attributes:
        kept: Whether the job should be stored
        score: Relevance score (0.0 when not kept)
        stage: Stage that dropped the job (rules, filter, score), None if kept
        reasons: Rules engine rejection reasons
    """

    kept: bool
    score: float = 0.0
    stage: Optional[str] = None
    reasons: List[str] = field(default_factory=list)


class JobScreener:
    """Runs RulesEngine, then JobFilter, then JobRanker on a job record."""

    def __init__(self, engine: RulesEngine, job_filter: JobFilter, ranker: JobRanker):
        self.engine = engine
        self.job_filter = job_filter
        self.ranker = ranker

    @classmethod
    def from_rules(
        cls,
        rules: Optional[Rules] = None,
        blocked_companies: Optional[Callable[[], Sequence[Any]]] = None,
    ) -> "JobScreener":
        rules = rules if rules is not None else RulesProvider.current()
        return cls(
            engine=RulesEngine(rules, blocked_companies=blocked_companies),
            job_filter=JobFilter(rules.job_filters, rules.ranking),
            ranker=JobRanker.from_rules(rules),
        )

    def screen(self, job: Any) -> ScreeningResult:
        """Screen a JobRecord-like object."""
        decision = self.engine.should_reject(job)
        if decision.rejected:
            return ScreeningResult(kept=False, stage=STAGE_RULES, reasons=decision.reasons)

        if not self.job_filter.keep(job.title, job.description, job.location):
            return ScreeningResult(kept=False, stage=STAGE_FILTER)

        score = self.ranker.score(job.title, job.description, job.location)
        if score <= 0:
            return ScreeningResult(kept=False, stage=STAGE_SCORE)

        return ScreeningResult(kept=True, score=score)
