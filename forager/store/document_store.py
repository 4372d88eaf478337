"""
Document Store

Repository for processed documents. The retriever never touches storage; it
is handed a page snapshot taken from one of these stores.

Implementations:
- InMemoryDocumentStore: dict-backed, for tests and embedding in other apps
- JsonDocumentStore: one directory per document under a root directory

Concurrency: every store guards its document map with an RLock, and readers
get tuples/copies. Saving a document replaces the stored object instead of
mutating it, so a query holding an older snapshot is unaffected.
"""

import json
import logging
import os
import shutil
import threading
from abc import ABC, abstractmethod
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..common.schemas import PageRecord, StoredDocument

logger = logging.getLogger("forager.store.document_store")

DOCUMENT_FILE = "uploaded-document.json"
PAGES_FILE = "document-pages.json"


class DocumentNotFoundError(KeyError):
    """No document with the requested ID."""
    pass


class DocumentStore(ABC):
    """
    Abstract document repository.

    Each implementation must provide save/get/list/delete; page snapshots are
    built on top of those.
    """

    @abstractmethod
    def save(self, document: StoredDocument) -> str:
        """Store (or replace) a document and return its ID"""
        pass

    @abstractmethod
    def get(self, document_id: str) -> Optional[StoredDocument]:
        pass

    @abstractmethod
    def list_documents(self) -> List[StoredDocument]:
        """All documents, oldest upload first"""
        pass

    @abstractmethod
    def delete(self, document_id: str) -> bool:
        pass

    def pages_for(self, document_id: Optional[str] = None) -> Tuple[PageRecord, ...]:
        """
        Page snapshot for a query.

        Args:
            document_id: One document, or None for every stored document

        Raises:
            DocumentNotFoundError: document_id is given but unknown
        """
        if document_id is not None:
            document = self.get(document_id)
            if document is None:
                raise DocumentNotFoundError(document_id)
            return tuple(document.pages)

        pages: List[PageRecord] = []
        for document in self.list_documents():
            pages.extend(document.pages)
        return tuple(pages)

    def get_stats(self) -> Dict[str, int]:
        documents = self.list_documents()
        return {
            "documents": len(documents),
            "pages": sum(d.page_count for d in documents),
        }


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store. Contents are lost with the instance."""

    def __init__(self, documents: Optional[List[StoredDocument]] = None):
        self._lock = threading.RLock()
        self._documents: Dict[str, StoredDocument] = {}
        for document in documents or []:
            self.save(document)

    def save(self, document: StoredDocument) -> str:
        with self._lock:
            self._documents[document.id] = document
        return document.id

    def get(self, document_id: str) -> Optional[StoredDocument]:
        with self._lock:
            return self._documents.get(document_id)

    def list_documents(self) -> List[StoredDocument]:
        with self._lock:
            documents = list(self._documents.values())
        return sorted(documents, key=lambda d: d.uploaded_at)

    def delete(self, document_id: str) -> bool:
        with self._lock:
            return self._documents.pop(document_id, None) is not None


class JsonDocumentStore(DocumentStore):
    """
    Durable store: ``<root>/<document_id>/uploaded-document.json``.

    A ``document-pages.json`` copy of the pages is written alongside for
    inspection. Documents are loaded lazily on first access; files that fail
    to parse are logged and skipped.
    """

    def __init__(self, root_dir: Path):
        """
        Initialize store.

        Args:
            root_dir: Directory holding one sub-directory per document
        """
        self._root = Path(root_dir).expanduser()
        self._lock = threading.RLock()
        self._documents: Optional[Dict[str, StoredDocument]] = None

    @property
    def root_dir(self) -> Path:
        return self._root

    def _load_all(self) -> Dict[str, StoredDocument]:
        """Load every document from disk (once)"""
        if self._documents is not None:
            return self._documents

        documents: Dict[str, StoredDocument] = {}
        if self._root.exists():
            for doc_dir in sorted(p for p in self._root.iterdir() if p.is_dir()):
                path = doc_dir / DOCUMENT_FILE
                if not path.exists():
                    continue
                try:
                    document = load_document_file(path)
                except (json.JSONDecodeError, IOError, ValidationError) as e:
                    logger.warning("Skipping unreadable document %s: %s", path, e)
                    continue
                documents[document.id] = document

        logger.info("Loaded %d documents from %s", len(documents), self._root)
        self._documents = documents
        return documents

    def _document_dir(self, document_id: str) -> Path:
        """Directory of a document; must be a direct child of the root."""
        root = self._root.resolve()
        doc_dir = (root / document_id).resolve()
        if doc_dir.parent != root:
            raise ValueError(f"invalid document id: {document_id!r}")
        return doc_dir

    def _write_json(self, path: Path, data) -> None:
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)

    def save(self, document: StoredDocument) -> str:
        with self._lock:
            documents = self._load_all()
            doc_dir = self._document_dir(document.id)
            doc_dir.mkdir(parents=True, exist_ok=True)

            data = document.model_dump(mode="json")
            self._write_json(doc_dir / DOCUMENT_FILE, data)
            self._write_json(doc_dir / PAGES_FILE, data["pages"])

            documents[document.id] = document

        logger.info("Saved document %s (%d pages)", document.id, document.page_count)
        return document.id

    def get(self, document_id: str) -> Optional[StoredDocument]:
        with self._lock:
            return self._load_all().get(document_id)

    def list_documents(self) -> List[StoredDocument]:
        with self._lock:
            documents = list(self._load_all().values())
        return sorted(documents, key=lambda d: d.uploaded_at)

    def delete(self, document_id: str) -> bool:
        with self._lock:
            documents = self._load_all()
            if document_id not in documents:
                return False
            del documents[document_id]
            doc_dir = self._document_dir(document_id)
            if doc_dir.exists():
                shutil.rmtree(doc_dir)
        logger.info("Deleted document %s", document_id)
        return True


def load_document_file(path: Path) -> StoredDocument:
    """Read a document JSON dump (snake_case or camelCase keys)."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return StoredDocument.model_validate(data)


def format_document_summary(document: StoredDocument) -> str:
    """Format a processing summary of a document for display"""
    total_pages = document.page_count
    total_content = sum(len(page.content) for page in document.pages)
    avg_content = round(total_content / total_pages) if total_pages else 0

    all_tags = [tag for page in document.pages for tag in page.tags]
    unique_tags = list(dict.fromkeys(all_tags))
    unique_references = list(dict.fromkeys(
        ref for page in document.pages for ref in page.references
    ))

    lines = [
        "Document Processing Summary",
        "=" * 40,
        "",
        f"Filename: {document.filename}",
        f"Document ID: {document.id}",
        f"Upload Time: {document.uploaded_at.isoformat()}",
        f"Total Pages: {total_pages}",
        f"Total Content Characters: {total_content:,}",
        f"Average Content per Page: {avg_content:,} characters",
        "",
        "Semantic Analysis:",
        f"  Unique Tags: {len(unique_tags)}",
        f"  Unique References: {len(unique_references)}",
        "",
        "Most Common Tags:",
    ]

    for tag, count in Counter(all_tags).most_common(10):
        lines.append(f"  - {tag}: {count} pages")

    if unique_references:
        lines.append("")
        lines.append("References Found:")
        for ref in unique_references[:20]:
            lines.append(f"  - {ref}")

    return "\n".join(lines)
