"""Plain-text rendering of resumes and cover letters using Jinja2."""

from typing import Any, Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from jobwizard.logging import get_logger

from .exceptions import DocumentGenerationError

logger = get_logger(__name__, component="documents")


class DocumentRenderer:
    """Renders document templates from the jobwizard.documents package.

    Missing template variables raise instead of rendering as empty text.
    """

    def __init__(
        self,
        template_dir: str = "templates",
        resume_template: str = "resume.txt.j2",
        cover_letter_template: str = "cover_letter.txt.j2",
    ):
        self.resume_template_name = resume_template
        self.cover_letter_template_name = cover_letter_template
        self.env = Environment(
            loader=PackageLoader("jobwizard.documents", template_dir),
            autoescape=False,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def _render(self, template_name: str, context: Dict[str, Any]) -> str:
        try:
            text = self.env.get_template(template_name).render(context)
        except TemplateError as e:
            logger.error(
                f"Failed to render {template_name}: {e}",
                extra={"event": "documents.render.failed", "template": template_name},
            )
            raise DocumentGenerationError(f"Failed to render {template_name}: {e}") from e
        return text.strip() + "\n"

    def render_resume(self, context: Dict[str, Any]) -> str:
        """
        Args:
            context: name, contact_line, summary, expert_phrases,
                intermediate_names, basic_names, positions, education
        """
        return self._render(self.resume_template_name, context)

    def render_cover_letter(self, context: Dict[str, Any]) -> str:
        """
        Args:
            context: name, contact_line, body
        """
        return self._render(self.cover_letter_template_name, context)
