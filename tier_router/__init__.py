"""Quota-aware LLM provider tier router."""

__version__ = "0.1.0"
