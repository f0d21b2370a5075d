"""Persistent document storage."""

from director_ops.state.manager import Document, DocumentStore

__all__ = ["Document", "DocumentStore"]
