"""Small string helpers shared across packages."""

import re
from typing import Iterable, List

_SEPARATORS = re.compile(r"[-_\s]+")


def titleize(value: str) -> str:
    """Turn a slug or identifier into a display name.

    Example:
        >>> titleize("acme-corp")
        'Acme Corp'
    """
    words = _SEPARATORS.split((value or "").strip())
    return " ".join(word[:1].upper() + word[1:] for word in words if word)


def slugify(text: str, max_length: int = 100) -> str:
    """Convert text into a filesystem-safe slug.

    Args:
        text: Company name, role or similar label
        max_length: Maximum slug length

    Returns:
        Slug with special characters dropped and whitespace turned into hyphens

    Raises:
        ValueError: If the text contains path traversal characters

    Example:
        >>> slugify("Senior Engineer (Remote)")
        'Senior-Engineer-Remote'
    """
    value = str(text or "")
    if ".." in value or "/" in value or "\\" in value:
        raise ValueError(f"Invalid path characters detected: {value!r}")

    value = re.sub(r"[^\w\s-]", "", value).strip()
    value = re.sub(r"\s+", "-", value)
    value = re.sub(r"-{2,}", "-", value)
    return value[:max_length]


def unique(items: Iterable[str]) -> List[str]:
    """De-duplicate while keeping first-seen order."""
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def truncate(text: str, max_length: int = 80, suffix: str = "...") -> str:
    """Truncate text for table output."""
    if not text or len(text) <= max_length:
        return text or ""
    return text[: max_length - len(suffix)].rstrip() + suffix
