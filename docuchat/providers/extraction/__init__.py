from docuchat.providers.extraction.file_text_extractor import FileTextExtractor

__all__ = ["FileTextExtractor"]
