"""Chef Compadre: a cooking assistant that talks to a hosted LLM."""

__version__ = "0.1.0"
