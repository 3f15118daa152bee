"""Cover letter writers: templates, OpenAI and Anthropic."""

from .ai import AIWriter, build_system_prompt, build_user_prompt, parse_response
from .anthropic_writer import AnthropicWriter
from .base import BaseWriter
from .factory import WriterFactory
from .openai_writer import OpenAIWriter
from .templates import TemplatesWriter

__all__ = [
    "BaseWriter",
    "AIWriter",
    "TemplatesWriter",
    "OpenAIWriter",
    "AnthropicWriter",
    "WriterFactory",
    "build_system_prompt",
    "build_user_prompt",
    "parse_response",
]
