"""Adapters for external platform APIs."""
