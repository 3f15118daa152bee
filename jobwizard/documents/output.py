"""Filesystem layout for generated documents.

Output structure (nested style):
    ~/Documents/JobWizard/
      Applications/
        Acme-Corp/
          Senior-Engineer/
            2025-01-15/
              resume.txt
              cover_letter.txt
      Latest -> Applications/Acme-Corp/Senior-Engineer/2025-01-15

The simple style uses one folder per application instead:
    ~/Documents/JobWizard/Acme Corp - Senior Engineer - 2025-01-15/
"""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from jobwizard.config.models import PathStyle
from jobwizard.logging import get_logger
from jobwizard.utils.text import slugify
from jobwizard.utils.timestamps import utc_now

from .exceptions import DocumentGenerationError

logger = get_logger(__name__, component="documents")

RESUME_FILENAME = "resume.txt"
COVER_LETTER_FILENAME = "cover_letter.txt"
LATEST_LINK = "Latest"


class OutputManager:
    """Directories, files and the Latest symlink for one application.

    Raises:
        ValueError: If company or role contain path traversal characters
    """

    def __init__(
        self,
        company: str,
        role: str,
        output_root: Union[str, Path],
        tmp_root: Union[str, Path],
        path_style: str = PathStyle.SIMPLE.value,
        timestamp: Optional[datetime] = None,
    ):
        self.company = company
        self.role = role
        self.output_root = Path(output_root).expanduser()
        self.tmp_root = Path(tmp_root)
        self.path_style = (path_style or PathStyle.SIMPLE.value).lower()
        self.timestamp = timestamp or utc_now()

        self.company_slug = slugify(company)
        self.role_slug = slugify(role)
        self.date_slug = self.timestamp.strftime("%Y-%m-%d")

        self.output_path = self._build_output_path()
        self.tmp_path = self.tmp_root / "Applications" / self.company_slug / self.role_slug / self.date_slug

    def _build_output_path(self) -> Path:
        if self.path_style == PathStyle.SIMPLE.value:
            return self.output_root / f"{self.company} - {self.role} - {self.date_slug}"
        return self.output_root / "Applications" / self.company_slug / self.role_slug / self.date_slug

    def ensure_directories(self) -> "OutputManager":
        try:
            self.output_path.mkdir(parents=True, exist_ok=True)
            self.tmp_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DocumentGenerationError(f"Cannot create output directory {self.output_path}: {e}") from e
        return self

    def _write(self, filename: str, content: str) -> Path:
        target = self.output_path / filename
        try:
            target.write_text(content, encoding="utf-8")
            (self.tmp_path / filename).write_text(content, encoding="utf-8")
        except OSError as e:
            raise DocumentGenerationError(f"Cannot write {target}: {e}") from e
        return target

    def write_resume(self, content: str) -> Path:
        return self._write(RESUME_FILENAME, content)

    def write_cover_letter(self, content: str) -> Path:
        return self._write(COVER_LETTER_FILENAME, content)

    def update_latest_symlink(self) -> "OutputManager":
        """Point <root>/Latest at this application's directory."""
        latest = self.output_root / LATEST_LINK
        try:
            if latest.is_symlink() or latest.is_file():
                latest.unlink()
            latest.symlink_to(self.output_path.resolve(), target_is_directory=True)
        except OSError as e:
            raise DocumentGenerationError(f"Cannot update {latest} symlink: {e}") from e

        logger.debug(
            "Latest symlink updated",
            extra={"event": "documents.latest.updated", "target": str(self.output_path)},
        )
        return self

    @property
    def resume_path(self) -> Path:
        return self.output_path / RESUME_FILENAME

    @property
    def cover_letter_path(self) -> Path:
        return self.output_path / COVER_LETTER_FILENAME

    @property
    def tmp_resume_path(self) -> Path:
        return self.tmp_path / RESUME_FILENAME

    @property
    def tmp_cover_letter_path(self) -> Path:
        return self.tmp_path / COVER_LETTER_FILENAME

    @property
    def display_path(self) -> str:
        return str(self.output_path)

    def documents_exist(self) -> bool:
        return self.resume_path.exists() and self.cover_letter_path.exists()
