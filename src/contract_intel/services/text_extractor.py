"""
Text extraction for uploaded contract files.
"""

from pathlib import Path

import pdfplumber
import structlog

from contract_intel.exceptions import ExtractionFailedError
from contract_intel.models.contract import FileType

logger = structlog.get_logger(__name__)


def detect_file_type(content_type: str | None, file_name: str) -> FileType:
    """Map an upload's MIME type (or, failing that, its suffix) to a FileType."""
    if content_type == "application/pdf":
        return FileType.PDF
    if content_type == "text/plain":
        return FileType.TEXT

    suffix = Path(file_name).suffix.lower()
    if suffix == ".pdf":
        return FileType.PDF
    if suffix in (".txt", ".text"):
        return FileType.TEXT
    raise ExtractionFailedError(
        f"Unsupported file type: {content_type or suffix or 'unknown'}. "
        "Only PDF and text files are allowed."
    )


class TextExtractor:
    """
    Pulls plain text out of PDF and text files.

    Raises ExtractionFailedError when the file cannot be read or yields no text.
    """

    def extract_text(self, file_path: Path | str, file_type: FileType) -> str:
        file_path = Path(file_path)

        if not file_path.exists():
            raise ExtractionFailedError(f"Contract file not found: {file_path}")

        try:
            if file_type == FileType.PDF:
                text = self._extract_pdf_text(file_path)
            else:
                text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error("text_extraction_failed", file=str(file_path), error=str(e))
            raise ExtractionFailedError(f"Could not read {file_path.name}: {e}") from e
        except Exception as e:
            # pdfplumber surfaces malformed documents through several exception types
            logger.error("pdf_extraction_failed", file=str(file_path), error=str(e))
            raise ExtractionFailedError(f"Could not parse PDF {file_path.name}: {e}") from e

        if not text.strip():
            raise ExtractionFailedError(
                f"Could not extract text from {file_path.name}. "
                "Please ensure the file contains readable text."
            )

        logger.info(
            "text_extracted",
            file=file_path.name,
            file_type=file_type.value,
            chars=len(text),
        )
        return text

    def _extract_pdf_text(self, file_path: Path) -> str:
        text_parts = []
        with pdfplumber.open(file_path) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text() or ""
                if page_text.strip():
                    text_parts.append(page_text)
        return "\n\n".join(text_parts)
