"""Text normalization shared by the job filter and ranker."""

import re
from typing import Any, Dict, Iterable, List, Pattern

_SEPARATORS = re.compile(r"[-_]")
_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: Any) -> str:
    """Lowercase, turn punctuation into spaces and collapse whitespace.

    Example:
        >>> normalize_text("Senior Ruby-on-Rails Engineer (Remote)")
        'senior ruby on rails engineer remote'
    """
    if text is None:
        return ""
    value = _SEPARATORS.sub(" ", str(text).lower())
    value = _PUNCTUATION.sub(" ", value)
    return _WHITESPACE.sub(" ", value).strip()


def normalize_keywords(keywords: Any) -> List[str]:
    """Normalize a keyword list, dropping entries that normalize to nothing."""
    if keywords is None:
        return []
    if isinstance(keywords, str):
        keywords = [keywords]
    normalized = (normalize_text(keyword) for keyword in keywords)
    return [keyword for keyword in normalized if keyword]


def normalize_weights(weights: Any) -> Dict[str, float]:
    """Normalize a keyword -> weight mapping."""
    if not isinstance(weights, dict):
        return {}
    result = {}
    for keyword, weight in weights.items():
        key = normalize_text(keyword)
        if key:
            result[key] = float(weight)
    return result


def word_pattern(keyword: str) -> Pattern:
    """Regex matching a keyword on word boundaries."""
    return re.compile(rf"\b{re.escape(keyword)}\b")


def matches_any(text: str, patterns: Iterable[Pattern]) -> bool:
    return any(pattern.search(text) for pattern in patterns)
