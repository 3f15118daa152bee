"""Keyword-weighted relevance scoring."""

from typing import Any, Dict, Optional

from jobwizard.rules.rules import Rules

from .filter import JobFilter
from .text import normalize_text, normalize_weights, word_pattern

DEFAULT_MIN_KEEP_SCORE = 1.0


class JobRanker:
    """
    Scores postings from boost, neutral and penalty keywords.

    Score = sum(count * weight) over boosts and neutral terms, minus
    sum(count * abs(weight)) over penalties. Postings the filter rejects, and
    postings scoring below ``min_keep_score``, score 0.0.

    Example:
        >>> scoring = {"boosts": {"ruby": 5, "rails": 5, "rspec": 2.5, "sidekiq": 2}}
        >>> ranker = JobRanker(scoring, {}, {"include_keywords": ["rails"]})
        >>> ranker.score("Rails Engineer", "Ruby, RSpec, Sidekiq")
        14.5
    """

    def __init__(
        self,
        scoring: Dict[str, Any],
        ranking: Dict[str, Any],
        job_filters: Optional[Dict[str, Any]] = None,
    ):
        scoring = scoring or {}
        ranking = ranking or {}

        self.boosts = normalize_weights(scoring.get("boosts"))
        self.penalties = normalize_weights(scoring.get("penalties"))
        self.neutral_or_low = normalize_weights(scoring.get("neutral_or_low"))

        min_keep = ranking.get("min_keep_score")
        self.min_keep_score = DEFAULT_MIN_KEEP_SCORE if min_keep is None else float(min_keep)

        self.filter = JobFilter({**(job_filters or {}), **ranking}, ranking)

        self._weighted = [
            (word_pattern(keyword), weight)
            for keyword, weight in list(self.boosts.items()) + list(self.neutral_or_low.items())
        ]
        self._penalized = [
            (word_pattern(keyword), abs(weight)) for keyword, weight in self.penalties.items()
        ]

    @classmethod
    def from_rules(cls, rules: Rules) -> "JobRanker":
        return cls(rules.scoring, rules.ranking, rules.job_filters)

    def score(self, title: str, description: str, location: Optional[str] = None) -> float:
        if not self.filter.keep(title, description, location):
            return 0.0

        text = normalize_text(f"{title or ''} {description or ''}")

        total = sum(len(pattern.findall(text)) * weight for pattern, weight in self._weighted)
        total -= sum(len(pattern.findall(text)) * weight for pattern, weight in self._penalized)

        return total if total >= self.min_keep_score else 0.0
