"""LLM-backed collaborators (visitor chat assistant)."""
