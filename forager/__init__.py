"""
Forager

Document question answering without vector embeddings.

Philosophy:
- Every page carries a summary, semantic tags and section references
- An LLM triages the whole document from those digests, keywords fill the gaps
- Answers cite pages and follow cross-references instead of similarity scores

Usage:
    from forager.common import load_config, LLMClient
    from forager.common.schemas import PageRecord, StoredDocument
    from forager.store import JsonDocumentStore
    from forager.retriever import RetrievalAgent
"""

__version__ = "0.1.0"
