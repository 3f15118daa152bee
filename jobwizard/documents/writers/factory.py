"""Pick the cover letter writer from the AI settings."""

from typing import Optional

from jobwizard.ai.recorder import UsageRecorder
from jobwizard.config.models import AIWriterSettings
from jobwizard.logging import get_logger

from .anthropic_writer import AnthropicWriter
from .base import BaseWriter
from .openai_writer import OpenAIWriter
from .templates import TemplatesWriter

logger = get_logger(__name__, component="writer")


class WriterFactory:
    @staticmethod
    def build(
        settings: Optional[AIWriterSettings] = None,
        recorder: Optional[UsageRecorder] = None,
    ) -> BaseWriter:
        """
        ``AI_WRITER=openai`` or ``anthropic`` with its key set gives the AI
        writer; anything else gives TemplatesWriter.
        """
        settings = settings or AIWriterSettings()

        if settings.writer == "openai":
            if settings.openai_api_key:
                return OpenAIWriter(settings, recorder=recorder)
            logger.warning(
                "AI_WRITER=openai but OPENAI_API_KEY not set, falling back to templates",
                extra={"event": "writer.fallback", "writer": "openai"},
            )
        elif settings.writer == "anthropic":
            if settings.anthropic_api_key:
                return AnthropicWriter(settings, recorder=recorder)
            logger.warning(
                "AI_WRITER=anthropic but ANTHROPIC_API_KEY not set, falling back to templates",
                extra={"event": "writer.fallback", "writer": "anthropic"},
            )

        return TemplatesWriter()
