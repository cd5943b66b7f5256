from docuchat.providers.registry.sqlite_document_registry import SQLiteDocumentRegistry

__all__ = ["SQLiteDocumentRegistry"]
