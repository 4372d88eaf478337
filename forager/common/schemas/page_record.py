"""
Page Record Schema

Core principle: a page is read-only once it reaches the retriever.
Text extraction and metadata generation happen upstream; this module only
describes and validates what they produce.
"""

import secrets
from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class PageRecord(BaseModel):
    """One page of a processed document"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    page_number: int = Field(..., ge=1, alias="pageNbr", description="Position in the source PDF")
    page_content_number: Optional[int] = Field(
        default=None,
        alias="pageContentNbr",
        description="Page number as printed on the page itself",
    )
    content: str = Field(..., description="Full extracted page text")
    summary: str = Field(default="", description="1-5 sentence summary")
    tags: List[str] = Field(default_factory=list, description="Semantic topic tags")
    references: List[str] = Field(
        default_factory=list,
        description='Section/heading tokens cited on the page (e.g. "3.1.2", "§ 9.8")',
    )

    @field_validator("content")
    @classmethod
    def content_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("page content must not be empty")
        return v

    def digest_line(self) -> str:
        """Compact one-line description sent to page triage"""
        return f"Page {self.page_number}: {self.summary} (Tags: {', '.join(self.tags)})"


def generate_document_id() -> str:
    """Generate a sortable document ID: doc_{timestamp}_{random}"""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"doc_{stamp}_{secrets.token_hex(4)}"


class StoredDocument(BaseModel):
    """A processed document and its pages"""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        default_factory=generate_document_id,
        pattern=r"^[A-Za-z0-9_-]+$",
        description="Also the directory name in JsonDocumentStore",
    )
    filename: str
    pages: List[PageRecord] = Field(default_factory=list)
    uploaded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="uploadedAt",
    )

    @model_validator(mode="after")
    def page_numbers_unique(self) -> "StoredDocument":
        seen = set()
        for page in self.pages:
            if page.page_number in seen:
                raise ValueError(f"duplicate page number {page.page_number} in document {self.id}")
            seen.add(page.page_number)
        return self

    @property
    def page_count(self) -> int:
        return len(self.pages)
