"""LLM trace helpers."""
