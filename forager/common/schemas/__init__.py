"""
Forager Page Schemas

Page-level metadata records produced by the ingestion pipeline.
"""

from .page_record import PageRecord, StoredDocument, generate_document_id

__all__ = [
    "PageRecord",
    "StoredDocument",
    "generate_document_id",
]
