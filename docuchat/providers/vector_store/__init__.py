"""Vector store provider implementations.

ChromaDBProvider is the default: a local, persistent store using cosine
distance, filtered per tenant through chunk metadata.
"""

from docuchat.providers.vector_store.chromadb_provider import ChromaDBProvider

__all__ = ["ChromaDBProvider"]
