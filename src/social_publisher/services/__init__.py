"""Core publishing services."""
