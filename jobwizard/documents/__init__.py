"""Resume and cover letter generation.

Example usage:
    >>> from jobwizard.documents import ApplicationDocumentGenerator
    >>> generator = ApplicationDocumentGenerator(env)
    >>> result = generator.generate_for_posting(42)
"""

from .builder import ResumeBuilder, extract_jd_skills, skill_phrase
from .exceptions import DocumentGenerationError, GenerationError
from .generator import ApplicationDocumentGenerator
from .jd_parser import JdParser
from .output import OutputManager
from .render import DocumentRenderer
from .writers import (
    AIWriter,
    AnthropicWriter,
    BaseWriter,
    OpenAIWriter,
    TemplatesWriter,
    WriterFactory,
)

__all__ = [
    "ApplicationDocumentGenerator",
    "ResumeBuilder",
    "JdParser",
    "OutputManager",
    "DocumentRenderer",
    "skill_phrase",
    "extract_jd_skills",
    # Writers
    "BaseWriter",
    "AIWriter",
    "TemplatesWriter",
    "OpenAIWriter",
    "AnthropicWriter",
    "WriterFactory",
    # Exceptions
    "DocumentGenerationError",
    "GenerationError",
]
