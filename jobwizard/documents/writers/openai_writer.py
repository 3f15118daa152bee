"""Cover letters and resume bullets through the OpenAI chat completions API."""

from typing import Any, Dict, Tuple

import openai
from openai import OpenAI

from ..exceptions import GenerationError
from .ai import AIWriter


class OpenAIWriter(AIWriter):
    name = "openai"
    api_errors = (openai.OpenAIError,)

    @property
    def model(self) -> str:
        return self.settings.openai_model

    def _build_client(self) -> Any:
        if not self.settings.openai_api_key:
            raise GenerationError("OpenAI client not available: OPENAI_API_KEY is not set")
        return OpenAI(api_key=self.settings.openai_api_key)

    def _complete(self, system: str, user: str, temperature: float) -> Tuple[str, Dict[str, int]]:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=temperature,
            max_tokens=self.settings.max_tokens,
            response_format={"type": "json_object"},
        )

        content = response.choices[0].message.content if response.choices else None
        usage = response.usage
        details = getattr(usage, "prompt_tokens_details", None)
        return content, {
            "prompt_tokens": getattr(usage, "prompt_tokens", 0) or 0,
            "completion_tokens": getattr(usage, "completion_tokens", 0) or 0,
            "cached_input_tokens": getattr(details, "cached_tokens", 0) or 0,
        }
