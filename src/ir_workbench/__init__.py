"""In-memory text search workbench for comparing analyzers and ranking models."""

__version__ = "0.1.0"
