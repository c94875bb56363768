"""News digest service: topic search, LLM synthesis, cached digest."""

__version__ = "0.1.0"
