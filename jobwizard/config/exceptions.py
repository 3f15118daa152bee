"""Custom exceptions for configuration management."""

from pathlib import Path
from typing import List, Optional, Union


class ConfigurationError(Exception):
    """
    Raised when configuration or a YAML document fails validation.

    Collects every validation problem found, plus suggestions for fixing them,
    and renders them as one readable message.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
        path: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize ConfigurationError.

        Args:
            message: Primary error message
            errors: Specific validation errors
            suggestions: Hints for fixing the errors
            path: File the errors refer to, if any
        """
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        self.path = Path(path) if path else None
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        if self.path:
            parts[0] = f"{self.message} ({self.path})"

        if self.errors:
            parts.append("\nValidation Errors:")
            for i, error in enumerate(self.errors, 1):
                parts.append(f"  {i}. {error}")

        if self.suggestions:
            parts.append("\nSuggestions:")
            for suggestion in self.suggestions:
                parts.append(f"  - {suggestion}")

        return "\n".join(parts)
