"""Public interface definitions for all external collaborators.

Every external API or store in docuchat is accessed exclusively through the
abstract base classes defined in this package.  Concrete adapters implement
these interfaces and are constructed once in ``docuchat/main.py`` and
injected into the services (adapter pattern + dependency injection), so
tests can substitute fakes without touching globals.

CONCRETE PROVIDER MAP:
    Interface              ->  Concrete implementations (in docuchat/providers/)
    ---------------------------------------------------------------------
    ICompletionProvider    ->  OpenAICompletionProvider,
                               GeminiCompletionProvider,
                               AnthropicCompletionProvider
    IEmbeddingProvider     ->  OpenAIEmbeddingProvider
    IVectorStoreProvider   ->  ChromaDBProvider
    ITextExtractor         ->  FileTextExtractor
    IBlobStore             ->  LocalBlobStore
    IDocumentRegistry      ->  SQLiteDocumentRegistry
"""

from docuchat.interfaces.blob_store import IBlobStore
from docuchat.interfaces.completion_provider import ICompletionProvider
from docuchat.interfaces.document_registry import IDocumentRegistry
from docuchat.interfaces.embedding_provider import IEmbeddingProvider
from docuchat.interfaces.text_extractor import ITextExtractor
from docuchat.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IBlobStore",
    "ICompletionProvider",
    "IDocumentRegistry",
    "IEmbeddingProvider",
    "ITextExtractor",
    "IVectorStoreProvider",
]
