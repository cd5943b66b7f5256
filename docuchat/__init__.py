"""docuchat: multi-tenant document chat over retrieval-augmented generation."""

__version__ = "0.1.0"
