"""Shared prompt building and response handling for AI-backed writers."""

import json
from abc import abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import yaml

from jobwizard.ai.recorder import UsageRecorder
from jobwizard.config.models import AIWriterSettings, ProfileConfig
from jobwizard.logging import get_logger
from jobwizard.skills.experience import ExperienceProfile

from ..exceptions import GenerationError
from .base import BaseWriter

logger = get_logger(__name__, component="writer")

COVER_LETTER = "cover_letter"
RESUME = "resume"

DEFAULT_TONE = "warm, professional, concise"

SYSTEM_PROMPT = """You are a professional résumé and cover letter writer. Your task is to create {target}.

CRITICAL RULES (NON-NEGOTIABLE):
1. **TRUTH-ONLY**: You MUST ONLY use facts explicitly stated in the provided PROFILE and EXPERIENCE sections.
2. **NO INVENTION**: NEVER invent skills, projects, tools, or achievements not present in the data.
3. **UNVERIFIED SKILLS**: If the Job Description mentions skills/tools NOT in EXPERIENCE, add them to "unverified_skills" array but DO NOT include them in generated text.
4. **SPECIFIC > GENERIC**: Use concrete examples and quantifiable achievements when data supports it.
5. **HUMAN TONE**: Write in a {tone} voice. Avoid buzzwords and clichés.
6. **JSON ONLY**: Return ONLY valid JSON matching the schema below.
"""

COVER_LETTER_SCHEMA = """
SCHEMA:
{
  "cover_letter": "<string: 3-4 paragraphs of plain text>",
  "unverified_skills": ["<array of skills mentioned in JD but not in experience>"]
}

COVER LETTER STRUCTURE:
- Opening: Express genuine interest, mention 1-2 relevant skills from EXPERIENCE
- Body: Highlight 2-3 specific achievements from EXPERIENCE that align with role
- Closing: Brief, warm statement of interest
"""

RESUME_SCHEMA = """
SCHEMA:
{
  "resume_snippets": ["<array of 3-5 bullet points using EXPERIENCE data>"],
  "unverified_skills": ["<array of skills mentioned in JD but not in experience>"]
}

BULLET POINTS:
- Start with strong action verbs
- Include quantifiable results when data supports it
- Tailor to job requirements using ONLY verified experience
- Keep each bullet to 1-2 lines
"""

USER_PROMPT = """Create {target} for the following position.

COMPANY: {company}
ROLE: {role}

JOB DESCRIPTION:
{jd_text}

PROFILE (verified facts only):
{profile}

EXPERIENCE (verified facts only):
{experience}

Remember: Use ONLY facts from PROFILE and EXPERIENCE. Any skills in JD not in EXPERIENCE go to unverified_skills array.
"""


def build_system_prompt(kind: str, tone: Optional[str] = None) -> str:
    if kind == COVER_LETTER:
        return SYSTEM_PROMPT.format(target="a cover letter", tone=tone or DEFAULT_TONE) + COVER_LETTER_SCHEMA
    return SYSTEM_PROMPT.format(target="resume bullet points", tone=DEFAULT_TONE) + RESUME_SCHEMA


def experience_payload(experience: ExperienceProfile) -> Dict[str, Any]:
    """The declared experience as plain data for prompts."""
    return {
        "skills": [skill.model_dump(exclude_none=True) for skill in experience.skills],
        "positions": [position.model_dump(exclude_none=True) for position in experience.positions],
        "projects": experience.projects,
    }


def build_user_prompt(
    kind: str,
    company: str,
    role: str,
    jd_text: str,
    profile: ProfileConfig,
    experience: ExperienceProfile,
) -> str:
    return USER_PROMPT.format(
        target="a cover letter" if kind == COVER_LETTER else "resume bullet points",
        company=company,
        role=role,
        jd_text=(jd_text or "").strip(),
        profile=yaml.safe_dump(profile.model_dump(exclude_none=True), sort_keys=False, allow_unicode=True),
        experience=yaml.safe_dump(experience_payload(experience), sort_keys=False, allow_unicode=True),
    )


def parse_response(content: str, expected_keys: List[str]) -> Dict[str, Any]:
    """Decode a JSON-only model answer and check its keys.

    Raises:
        GenerationError: If the content is not a JSON object or keys are missing
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise GenerationError(f"Failed to parse JSON response: {e}") from e

    if not isinstance(data, dict):
        raise GenerationError(f"Expected a JSON object, got {type(data).__name__}")

    missing = [key for key in expected_keys if key not in data]
    if missing:
        raise GenerationError(f"Missing keys in response: {', '.join(missing)}")

    skills = data.get("unverified_skills")
    if skills is None:
        data["unverified_skills"] = []
    elif not isinstance(skills, list):
        data["unverified_skills"] = [skills]
    return data


class AIWriter(BaseWriter):
    """Truth-only cover letters and resume bullets from a chat model.

    Subclasses implement ``_complete()`` for their SDK. Failures never
    propagate: the result carries ``error`` and an empty letter so the
    builder can fall back to the template writer.
    """

    api_errors: Tuple[type, ...] = ()

    def __init__(
        self,
        settings: AIWriterSettings,
        client: Any = None,
        recorder: Optional[UsageRecorder] = None,
    ):
        self.settings = settings
        self.client = client if client is not None else self._build_client()
        self.recorder = recorder

    @property
    @abstractmethod
    def model(self) -> str:
        """Model name sent to the API."""

    @abstractmethod
    def _build_client(self) -> Any:
        """Create the SDK client from the configured API key."""

    @abstractmethod
    def _complete(self, system: str, user: str, temperature: float) -> Tuple[str, Dict[str, int]]:
        """Send one request; return (content, usage) with prompt/completion/cached token counts."""

    def cover_letter(
        self,
        profile: ProfileConfig,
        experience: ExperienceProfile,
        jd_text: str,
        company: str,
        role: str,
        allowed_skills: Optional[List[str]] = None,
        tone: str = DEFAULT_TONE,
    ) -> Dict[str, Any]:
        try:
            return self._generate(
                COVER_LETTER,
                build_system_prompt(COVER_LETTER, tone),
                build_user_prompt(COVER_LETTER, company, role, jd_text, profile, experience),
                self.settings.temperature_cover_letter,
                ["cover_letter", "unverified_skills"],
                {"company": company, "role": role},
            )
        except GenerationError as e:
            logger.warning(
                f"{self.name} cover letter generation failed: {e}",
                extra={"event": "writer.generation.failed", "writer": self.name, "feature": COVER_LETTER},
            )
            return {"cover_letter": None, "unverified_skills": [], "error": str(e)}

    def resume_snippets(
        self,
        profile: ProfileConfig,
        experience: ExperienceProfile,
        jd_text: str,
        company: str,
        role: str,
    ) -> Dict[str, Any]:
        try:
            return self._generate(
                RESUME,
                build_system_prompt(RESUME),
                build_user_prompt(RESUME, company, role, jd_text, profile, experience),
                self.settings.temperature_resume,
                ["resume_snippets", "unverified_skills"],
                {"company": company, "role": role},
            )
        except GenerationError as e:
            logger.warning(
                f"{self.name} resume generation failed: {e}",
                extra={"event": "writer.generation.failed", "writer": self.name, "feature": RESUME},
            )
            return {"resume_snippets": [], "unverified_skills": [], "error": str(e)}

    def _generate(
        self,
        feature: str,
        system: str,
        user: str,
        temperature: float,
        expected_keys: List[str],
        meta: Dict[str, Any],
    ) -> Dict[str, Any]:
        try:
            content, usage = self._complete(system, user, temperature)
        except self.api_errors as e:
            raise GenerationError(f"{self.name} API error: {e}") from e

        if self.recorder is not None:
            self.recorder.log(model=self.model, feature=feature, usage=usage, meta=meta)

        if not content or not content.strip():
            raise GenerationError(f"No content in {self.name} response")
        return parse_response(content, expected_keys)
