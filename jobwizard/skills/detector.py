"""Skill extraction from job description text."""

import re
from typing import Any, Dict, List, Optional

from jobwizard.utils.text import titleize, unique

from .experience import ExperienceProfile

SKILL_PATTERNS = [
    # Programming languages
    r"\b(ruby|python|javascript|typescript|java|go|rust|php|c\+\+|c#|swift|kotlin|elixir|zig"
    r"|scala|clojure|haskell|erlang)\b",
    # Frameworks and libraries
    r"\b(ruby on rails|rails|react|vue|angular|node\.js|express|django|flask|laravel|spring"
    r"|phoenix|ember|svelte|next\.js|nuxt\.js)\b",
    # Databases
    r"\b(postgresql|mysql|mongodb|redis|elasticsearch|sqlite|oracle|sql server|cassandra"
    r"|dynamodb|neo4j)\b",
    # Cloud and DevOps
    r"\b(aws|azure|gcp|google cloud|docker|kubernetes|terraform|ansible|jenkins|circleci"
    r"|github actions|gitlab ci|heroku|vercel|netlify)\b",
    # Frontend
    r"\b(html|css|sass|scss|less|webpack|vite|babel|eslint|prettier|tailwind|bootstrap"
    r"|material-ui|styled-components)\b",
    # Backend
    r"\b(api|rest|graphql|grpc|microservices|serverless|lambda|nginx|apache|puma|unicorn"
    r"|passenger)\b",
    # Testing
    r"\b(rspec|jest|cypress|selenium|capybara|minitest|testunit|mocha|chai|jasmine|karma"
    r"|vitest)\b",
    # Tools and platforms
    r"\b(git|github|gitlab|bitbucket|jira|confluence|slack|discord|figma|sketch|photoshop"
    r"|illustrator)\b",
    # Methodologies
    r"\b(agile|scrum|kanban|tdd|bdd|ci/cd|devops|microservices|monolith|mvp|lean)\b",
    # Data and analytics
    r"\b(sql|nosql|etl|data pipeline|machine learning|ai|artificial intelligence|tensorflow"
    r"|pytorch|pandas|numpy)\b",
    # Security
    r"\b(oauth|jwt|ssl|tls|encryption|authentication|authorization|security"
    r"|penetration testing|vulnerability)\b",
    # Mobile
    r"\b(ios|android|react native|flutter|swift|kotlin|objective-c|xamarin|cordova|phonegap)\b",
    # OS and editors
    r"\b(linux|ubuntu|centos|debian|macos|windows|bash|shell|zsh|vim|emacs|vscode|intellij"
    r"|eclipse)\b",
]

_COMPILED_PATTERNS = [re.compile(pattern, re.IGNORECASE) for pattern in SKILL_PATTERNS]

DETECTOR_ALIASES = {
    "js": "javascript",
    "ts": "typescript",
    "py": "python",
    "rb": "ruby",
    "rails": "ruby on rails",
    "postgres": "postgresql",
    "mysql": "mysql",
    "mongo": "mongodb",
    "k8s": "kubernetes",
    "gcp": "google cloud platform",
    "aws": "amazon web services",
    "azure": "microsoft azure",
}

# Terms checked by plain substring when seeding per-job assessments
COMMON_TECH = [
    "ruby",
    "rails",
    "javascript",
    "react",
    "python",
    "java",
    "sql",
    "postgresql",
    "mysql",
    "redis",
    "docker",
    "kubernetes",
    "aws",
    "azure",
    "git",
    "github",
]


def normalize_detected_skill(skill: str) -> str:
    """Apply the alias map, titleizing anything without an alias."""
    normalized = skill.lower().strip()
    return DETECTOR_ALIASES.get(normalized) or titleize(normalized)


class SkillDetector:
    """Finds skills in a job description and checks them against experience."""

    def __init__(self, job_description: str, experience: Optional[ExperienceProfile] = None):
        self.job_description = job_description or ""
        self.experience = experience or ExperienceProfile({})

    def extract_skills(self) -> List[str]:
        """Return normalized skills in first-seen order, without duplicates."""
        text = self.job_description.lower()
        found = []
        for pattern in _COMPILED_PATTERNS:
            found.extend(match.strip() for match in pattern.findall(text))
        return unique(normalize_detected_skill(skill) for skill in found if skill)

    def analyze(self) -> Dict[str, List[str]]:
        """Split detected skills into verified and unverified (sorted, unique)."""
        verified, unverified = [], []
        for skill in self.extract_skills():
            if self.experience.has_skill(skill):
                verified.append(skill)
            else:
                unverified.append(skill)
        return {
            "verified": sorted(set(verified)),
            "unverified": sorted(set(unverified)),
        }

    def assessment_candidates(self) -> List[Dict[str, Any]]:
        """
        Suggest skills for a per-job assessment.

        Each candidate carries ``in_profile`` and an ``action`` of ``keep``
        (already declared) or ``prompt`` (ask the user).
        """
        text = self.job_description.lower()
        candidates = []
        for tech in COMMON_TECH:
            if tech not in text:
                continue
            in_profile = self.experience.has_skill(tech)
            candidates.append(
                {
                    "name": tech,
                    "normalized": tech,
                    "evidence": [tech],
                    "confidence": 0.8,
                    "in_profile": in_profile,
                    "have": in_profile,
                    "action": "keep" if in_profile else "prompt",
                }
            )
        return candidates
