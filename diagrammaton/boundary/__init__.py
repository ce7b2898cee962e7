"""Boundary adapters: relational storage and LLM provider SDKs."""
