"""Social Publisher - OAuth-backed multi-platform video publishing."""

__version__ = "0.1.0"
