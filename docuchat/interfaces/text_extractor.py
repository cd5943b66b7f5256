"""Abstract base class for file-to-text extraction."""

from __future__ import annotations

from abc import ABC, abstractmethod

from docuchat.models.document import FileType


# Concrete implementation: FileTextExtractor (docuchat/providers/extraction/)
class ITextExtractor(ABC):
    """Turns raw uploaded bytes into plain text."""

    @abstractmethod
    async def extract(self, content: bytes, file_type: FileType) -> str:
        """Return the plain text of *content*.

        Raises
        ------
        docuchat.utils.errors.ExtractionError
            If the file is unreadable, corrupt, or of an unsupported type.
        """
