"""Clients for external services (LLM provider, document parsing)."""
