"""
Forager Document Store

Processed documents keyed by document ID.
"""

from .document_store import (
    DocumentNotFoundError,
    DocumentStore,
    InMemoryDocumentStore,
    JsonDocumentStore,
    format_document_summary,
    load_document_file,
)

__all__ = [
    "DocumentNotFoundError",
    "DocumentStore",
    "InMemoryDocumentStore",
    "JsonDocumentStore",
    "format_document_summary",
    "load_document_file",
]
