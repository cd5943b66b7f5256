"""Character-window text chunking with sentence-aware cut points.

Splits extracted document text into overlapping chunks sized for embedding
models.

The algorithm scans the text in windows of ``chunk_size`` characters:

1. **Sentence-aware cut** -- for every window that does not reach the end
   of the text, the last ``.`` or newline inside the window is
   located.  If it lies past the window midpoint, the chunk ends just after
   it, so chunks rarely stop mid-sentence while staying bounded in size.

2. **Overlapping windows** -- the next window starts ``overlap`` characters
   before the previous cut, so a sentence spanning a boundary is fully
   contained in at least one chunk.

The window that reaches the end of the text is the last one.  Chunks are
whitespace-trimmed and empty chunks are dropped.  The output depends only
on the input text and the two sizes.
"""

from __future__ import annotations

import structlog

from docuchat.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

_BREAK_CHARS = (".", "\n")


class TextChunker:
    """Splits text into overlapping character windows.

    Parameters
    ----------
    chunk_size:
        Maximum window length in characters (default 1000).
    overlap:
        Characters shared by consecutive windows (default 200).  Must be
        smaller than *chunk_size*.
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 200) -> None:
        self._validate(chunk_size, overlap)
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    def chunk(
        self,
        text: str,
        chunk_size: int | None = None,
        overlap: int | None = None,
    ) -> list[str]:
        """Split *text* into chunks.

        Parameters
        ----------
        text:
            The full document text.
        chunk_size, overlap:
            Per-call overrides of the instance defaults.

        Returns
        -------
        list[str]
            Ordered, non-empty, whitespace-trimmed chunks.  Empty or
            whitespace-only text yields ``[]``.

        Raises
        ------
        ConfigurationError
            If ``overlap >= chunk_size`` or either value is out of range.
        """
        size = self._chunk_size if chunk_size is None else chunk_size
        step_back = self._overlap if overlap is None else overlap
        self._validate(size, step_back)

        if not text or not text.strip():
            return []

        text_length = len(text)
        chunks: list[str] = []
        start = 0
        while start < text_length:
            end = start + size
            if end < text_length:
                break_point = max(text.rfind(c, start, end) for c in _BREAK_CHARS)
                if break_point > start + size * 0.5:
                    end = break_point + 1

            piece = text[start:end].strip()
            if piece:
                chunks.append(piece)

            if end >= text_length:
                break
            next_start = end - step_back
            # A sentence cut can fall inside the overlap; keep moving forward.
            start = next_start if next_start > start else end

        logger.debug(
            "text_chunked",
            text_length=text_length,
            chunk_size=size,
            overlap=step_back,
            chunks=len(chunks),
        )
        return chunks

    @staticmethod
    def _validate(chunk_size: int, overlap: int) -> None:
        if chunk_size <= 0:
            raise ConfigurationError(message=f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0:
            raise ConfigurationError(message=f"overlap must not be negative, got {overlap}")
        if overlap >= chunk_size:
            raise ConfigurationError(
                message=f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
            )
