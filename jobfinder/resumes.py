"""
Resume handling for JobFinder.

Handles PDF text extraction and short-lived storage of uploaded files.
"""

import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

import PyPDF2
from rich.console import Console
from werkzeug.utils import secure_filename

from .config import get_config_manager
from .errors import PDFExtractionError

console = Console()


class ResumeProcessor:
    """Extracts plain text from resume PDFs."""

    def __init__(self, max_file_size: Optional[int] = None):
        if max_file_size is None:
            config = get_config_manager()
            max_file_size = int(config.get('uploads', 'max_file_size_mb')) * 1024 * 1024
        self.max_file_size = max_file_size

    def extract_text(self, file_path: Union[str, Path]) -> str:
        """
        Extract the text of a PDF as a single whitespace-collapsed line.

        Raises:
            PDFExtractionError: if the file is invalid, unreadable or has no text
        """
        path = Path(file_path)

        validation_error = self._validate_file(path)
        if validation_error:
            console.print(f"[red]Validation error: {validation_error}[/red]")
            raise PDFExtractionError(validation_error)

        try:
            text = self._extract_pdf_text(path)
        except Exception as e:
            console.print(f"[red]Error extracting text from PDF {path.name}: {e}[/red]")
            raise PDFExtractionError(f"Error extracting PDF text: {e}") from e

        if not text:
            console.print(f"[red]No text content could be extracted from {path.name}[/red]")
            raise PDFExtractionError(f"No text content could be extracted from {path.name}")

        console.print(f"[dim]Extracted {len(text)} characters of text content[/dim]")
        return text

    def _validate_file(self, path: Path) -> Optional[str]:
        """Returns an error message if the file is invalid, None if valid."""
        if not path.exists():
            return f"File does not exist: {path}"

        if not path.is_file():
            return f"Path is not a file: {path}"

        file_size = path.stat().st_size
        if file_size > self.max_file_size:
            return f"File too large: {file_size / (1024*1024):.1f}MB (max: {self.max_file_size / (1024*1024):.1f}MB)"

        if file_size == 0:
            return "File is empty"

        return None

    def _extract_pdf_text(self, path: Path) -> str:
        text_content = []

        with open(path, 'rb') as file:
            pdf_reader = PyPDF2.PdfReader(file)

            for page_num, page in enumerate(pdf_reader.pages):
                try:
                    page_text = page.extract_text() or ""
                except Exception as e:
                    console.print(f"[yellow]Warning: Could not extract text from page {page_num + 1}: {e}[/yellow]")
                    continue
                if page_text.strip():
                    text_content.append(page_text)

        return clean_text(" ".join(text_content))


def clean_text(text: str) -> str:
    """Collapse newlines and runs of whitespace into single spaces."""
    return " ".join(text.split())


def _create_upload_file(upload_dir: Path, extension: str):
    # <timestamp_ms><ext>; the name is claimed atomically and bumped while taken
    timestamp = int(time.time() * 1000)
    while True:
        path = upload_dir / f"{timestamp}{extension}"
        try:
            return path, open(path, 'xb')
        except FileExistsError:
            timestamp += 1


@contextmanager
def stored_upload(file_storage, upload_dir: Union[str, Path]) -> Iterator[Path]:
    """
    Save an uploaded file for the duration of the block, then delete it.

    Each upload gets its own file, even when several arrive in the same
    millisecond. The file is removed on every exit path, including errors.
    """
    upload_dir = Path(upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)

    filename = secure_filename(file_storage.filename or "")
    extension = Path(filename).suffix.lower()
    path, destination = _create_upload_file(upload_dir, extension)

    try:
        with destination:
            file_storage.save(destination)
        yield path
    finally:
        if path.exists():
            os.remove(path)


def get_resume_processor() -> ResumeProcessor:
    """Get resume processor instance."""
    return ResumeProcessor()
