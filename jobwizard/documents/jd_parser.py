"""Heuristic company and role extraction from job description text."""

import re
from typing import Dict, Optional

COMPANY_PATTERNS = [
    # "Company: Acme Inc" or "Employer - Acme"
    re.compile(
        r"(?:company|organization|employer)[:\-\s]+([A-Z][A-Za-z0-9\s&.,'-]+?)(?:\n|is|has|based)",
        re.IGNORECASE,
    ),
    # "About Acme" or "About us: Acme"
    re.compile(
        r"about\s+(?:us[:\s]+)?([A-Z][A-Za-z0-9\s&.,'-]+?)(?:\n|is|has|we|our)",
        re.IGNORECASE,
    ),
    # jobs@acme.com
    re.compile(r"@([a-z0-9-]+)\.", re.IGNORECASE),
    # Short capitalized first line
    re.compile(r"\A([A-Z][A-Za-z0-9\s&.,'-]{2,40})\s*(?:\n|$)"),
]

_TITLE_NOUNS = "Engineer|Developer|Manager|Designer|Analyst|Lead|Director|Architect"

ROLE_PATTERNS = [
    # "Position: Senior Engineer" or "Job title - Data Analyst"
    re.compile(r"(?:position|role|title|job title)[:\-\s]+([A-Za-z0-9\s,/.-]+?)(?:\n|at|$)", re.IGNORECASE),
    # A line ending in a title noun
    re.compile(
        rf"^([A-Za-z\s]+?(?:{_TITLE_NOUNS}|Specialist|Coordinator)[A-Za-z\s]*?)(?:\n|at|$)",
        re.IGNORECASE | re.MULTILINE,
    ),
    # "We are hiring a Backend Engineer"
    re.compile(rf"(?:hiring|looking for|seeking)(?:\s+an?)?\s+([A-Z][A-Za-z\s]+?(?:{_TITLE_NOUNS}))", re.IGNORECASE),
]

COMPANY_SUFFIX = re.compile(r"\s+(Inc|LLC|Ltd|Corporation|Corp|Limited|Company|Co)\.?$", re.IGNORECASE)
TRAILING_AT = re.compile(r"\s+at\s+.+$", re.IGNORECASE)


class JdParser:
    """
    Pulls a company name and a role title out of free-form job description text.

    Plain pattern matching: each pattern is tried in order and the first
    candidate within the length bounds wins.

    Example:
        >>> JdParser("Company: Acme Inc\\nPosition: Backend Engineer\\n").parse()
        {'company': 'Acme', 'role': 'Backend Engineer'}
    """

    def __init__(self, text: Optional[str]):
        self.text = str(text or "")

    def company(self) -> Optional[str]:
        for pattern in COMPANY_PATTERNS:
            match = pattern.search(self.text)
            if not match:
                continue
            name = COMPANY_SUFFIX.sub("", match.group(1).strip()).strip()
            if 2 < len(name) < 50:
                return name
        return None

    def role(self) -> Optional[str]:
        for pattern in ROLE_PATTERNS:
            match = pattern.search(self.text)
            if not match:
                continue
            title = TRAILING_AT.sub("", match.group(1).strip()).strip()
            if 3 < len(title) < 100:
                return title
        return None

    def parse(self) -> Dict[str, Optional[str]]:
        return {"company": self.company(), "role": self.role()}
