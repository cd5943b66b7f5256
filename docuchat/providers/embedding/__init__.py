"""Embedding provider implementations.

Embeddings convert text into numeric vectors that capture semantic meaning.
Chunk vectors are stored in ChromaDB and compared against query vectors at
answer time.
"""

from docuchat.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
