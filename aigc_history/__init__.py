"""Storage and HTTP API for branching AI conversation histories."""

__version__ = "0.1.0"