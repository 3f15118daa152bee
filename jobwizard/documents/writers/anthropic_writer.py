"""Cover letters and resume bullets through the Anthropic messages API."""

from typing import Any, Dict, Tuple

import anthropic

from ..exceptions import GenerationError
from .ai import AIWriter


class AnthropicWriter(AIWriter):
    name = "anthropic"
    api_errors = (anthropic.AnthropicError,)

    @property
    def model(self) -> str:
        return self.settings.anthropic_model

    def _build_client(self) -> Any:
        if not self.settings.anthropic_api_key:
            raise GenerationError("Anthropic client not available: ANTHROPIC_API_KEY is not set")
        return anthropic.Anthropic(api_key=self.settings.anthropic_api_key)

    def _complete(self, system: str, user: str, temperature: float) -> Tuple[str, Dict[str, int]]:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=self.settings.max_tokens,
            temperature=temperature,
            system=system,
            messages=[{"role": "user", "content": user}],
        )

        content = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        usage = response.usage
        return content, {
            "prompt_tokens": getattr(usage, "input_tokens", 0) or 0,
            "completion_tokens": getattr(usage, "output_tokens", 0) or 0,
            "cached_input_tokens": getattr(usage, "cache_read_input_tokens", 0) or 0,
        }
