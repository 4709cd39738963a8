"""Multi-format text extractor — extracts text from PDF, DOCX and plain text files."""

import logging
import re
from pathlib import Path

from docrag.application.interfaces.text_extractor import TextExtractionResult, TextExtractor
from docrag.domain.entities import DocumentType

logger = logging.getLogger(__name__)

_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_EXCESS_SPACES = re.compile(r"[ \t]{2,}")


def clean_text(text: str) -> str:
    """Normalize extracted text before chunking.

    CRLF becomes LF, three or more newlines collapse to a paragraph break,
    runs of spaces and tabs collapse to one space, and the ends are trimmed.
    """
    text = text.replace("\r\n", "\n")
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    text = _EXCESS_SPACES.sub(" ", text)
    return text.strip()


class MultiFormatTextExtractor(TextExtractor):
    """Infrastructure adapter that extracts text from the supported document types.

    Implements the TextExtractor interface using format-specific libraries:
    - PDF: PyMuPDF (fitz)
    - DOCX: python-docx
    - TXT/MD: built-in
    """

    _HANDLERS: dict[DocumentType, str] = {
        DocumentType.PDF: "_extract_pdf",
        DocumentType.DOCX: "_extract_docx",
        DocumentType.TXT: "_extract_text",
    }

    def supports(self, file_type: DocumentType) -> bool:
        return file_type in self._HANDLERS

    async def extract(self, file_path: str | Path, file_type: DocumentType) -> TextExtractionResult:
        """Extract and clean the text of a file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the document type is not supported.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        handler_name = self._HANDLERS.get(file_type)
        if handler_name is None:
            raise ValueError(f"Unsupported file type: {file_type} ({path.name})")

        raw_text, page_count = await getattr(self, handler_name)(path)
        text = clean_text(raw_text)

        logger.info(
            "Extracted %d characters from %s (%s)",
            len(text),
            path.name,
            file_type.value,
        )
        return TextExtractionResult(
            text=text,
            page_count=page_count,
            word_count=len(text.split()),
            character_count=len(text),
        )

    # ── Format-specific handlers ─────────────────────────────────────

    async def _extract_pdf(self, path: Path) -> tuple[str, int]:
        """Extract text from PDF using PyMuPDF."""
        import fitz  # PyMuPDF

        pages: list[str] = []
        with fitz.open(path) as doc:
            page_count = doc.page_count
            for page_num, page in enumerate(doc):
                text = page.get_text("text")
                if text.strip():
                    pages.append(text)
                else:
                    logger.debug("Page %d has no text layer", page_num + 1)

        if not pages:
            logger.warning("PDF has no extractable text, OCR would be required: %s", path.name)
        return "\n\n".join(pages), page_count

    async def _extract_docx(self, path: Path) -> tuple[str, None]:
        """Extract paragraphs and table rows from DOCX using python-docx."""
        from docx import Document

        doc = Document(str(path))
        parts = [para.text for para in doc.paragraphs if para.text.strip()]

        for table in doc.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    parts.append(" | ".join(cells))

        # Blank line between paragraphs so structure analysis sees them
        return "\n\n".join(parts), None

    async def _extract_text(self, path: Path) -> tuple[str, None]:
        """Read a plain text file, falling back to latin-1 for legacy encodings."""
        try:
            return path.read_text(encoding="utf-8"), None
        except UnicodeDecodeError:
            return path.read_text(encoding="latin-1"), None
