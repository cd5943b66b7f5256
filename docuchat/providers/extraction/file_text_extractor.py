"""Plain-text extraction for uploaded pdf, docx and txt files.

- **pdf**  -- PyMuPDF (``fitz``), page by page, pages joined by blank lines
- **docx** -- python-docx, non-empty paragraphs joined by blank lines
- **txt**  -- strict UTF-8 (a BOM is stripped); invalid bytes are rejected

Parsing is CPU-bound, so it runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import io

import docx
import fitz  # PyMuPDF
import structlog

from docuchat.interfaces.text_extractor import ITextExtractor
from docuchat.models.document import FileType
from docuchat.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)


def _extract_pdf(content: bytes) -> str:
    with fitz.open(stream=content, filetype="pdf") as pdf:
        pages = [page.get_text("text").strip() for page in pdf]
    return "\n\n".join(p for p in pages if p)


def _extract_docx(content: bytes) -> str:
    document = docx.Document(io.BytesIO(content))
    return "\n\n".join(p.text for p in document.paragraphs if p.text.strip())


def _extract_txt(content: bytes) -> str:
    return content.decode("utf-8-sig")


_EXTRACTORS = {
    FileType.PDF: _extract_pdf,
    FileType.DOCX: _extract_docx,
    FileType.TXT: _extract_txt,
}


class FileTextExtractor(ITextExtractor):
    """Default :class:`ITextExtractor` for the three supported formats."""

    async def extract(self, content: bytes, file_type: FileType) -> str:
        extractor = _EXTRACTORS.get(file_type)
        if extractor is None:
            raise ExtractionError(
                message=f"No extractor for file type '{file_type}'",
                provider_name="extractor",
            )

        try:
            text = await asyncio.to_thread(extractor, content)
        except UnicodeDecodeError as exc:
            raise ExtractionError(
                message=f"Text file is not valid UTF-8: {exc.reason} at byte {exc.start}",
                provider_name="extractor",
            ) from exc
        except Exception as exc:
            logger.warning("text_extraction_failed", file_type=file_type.value, error=str(exc))
            raise ExtractionError(
                message=f"Could not read {file_type.value} file: {exc}",
                provider_name="extractor",
            ) from exc

        if not text.strip():
            raise ExtractionError(
                message=f"No extractable text found in {file_type.value} file",
                provider_name="extractor",
            )

        logger.debug("text_extracted", file_type=file_type.value, chars=len(text))
        return text
