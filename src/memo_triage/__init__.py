"""Memo triage: document chunking, classification and summarization for investment memos."""

__version__ = "0.1.0"
