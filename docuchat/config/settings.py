"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from two sources (in priority order):

  1. **Environment variables**, e.g. ``OPENAI_API_KEY=sk-abc123``
  2. **.env file** in the working directory (local development)

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.  Defaults apply
when neither source sets a value.  The ``.env`` file is never committed.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """docuchat application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === AI Providers ===
    # Empty string = "not configured" -> the model registry skips providers
    # without credentials.
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint override
    openai_embedding_model: str = ""  # Defaults to text-embedding-3-small
    google_api_key: str = ""
    anthropic_api_key: str = ""
    provider_timeout_seconds: float = 30.0

    # === Completion defaults ===
    completion_temperature: float = 0.7
    completion_max_tokens: int = 1000
    # Model used for translation and language detection.
    utility_model: str = "gpt-3.5-turbo"

    # === Uploads ===
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_file_types: list[str] = Field(default_factory=lambda: ["pdf", "docx", "txt"])

    # === Chunking / retrieval ===
    chunk_size: int = 1000
    chunk_overlap: int = 200
    # Calibrated for cosine similarity (1 - cosine distance).  A store using
    # a different metric needs a recalibrated value.
    similarity_threshold: float = 0.70
    search_limit: int = 5
    cross_tenant_search_limit: int = 10
    vector_batch_size: int = 20

    # === Storage ===
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "document_embeddings"
    registry_db_path: str = "data/documents.db"
    blob_storage_dir: str = "data/blobs"
    blob_public_base_url: str = ""

    # === Internal analytics ===
    # Empty = cross-tenant analytics endpoint disabled.
    internal_api_key: str = ""

    # === App Config ===
    config_path: str = "config/config.yaml"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    def get_available_llm_providers(self) -> list[str]:
        """Return a list of LLM provider names that have non-empty API keys configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.google_api_key:
            providers.append("gemini")
        if self.anthropic_api_key:
            providers.append("anthropic")
        return providers
