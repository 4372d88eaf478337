"""
Evidence Aggregator

Builds the bounded evidence set passed to synthesis:
1. Triage candidates, trusted fully (fixed score)
2. Keyword scan over every other page, admitted above a raw-score threshold
3. Stable sort by relevance

All size bounds come from RetrieverConfig.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from ..common.config import RetrieverConfig
from ..common.schemas import PageRecord
from .scorer import score, tokenize_query

logger = logging.getLogger("forager.retriever.aggregator")


@dataclass
class EvidenceItem:
    """A page excerpt used as context for one query"""
    page_number: int
    content_excerpt: str
    relevance_score: float
    origin: str = "triage"  # "triage" or "keyword"

    def to_dict(self) -> Dict:
        return {
            "pageNbr": self.page_number,
            "content": self.content_excerpt,
            "relevance": self.relevance_score,
        }


@dataclass
class AggregatedEvidence:
    """Ranked evidence plus the order in which pages were found"""
    items: List[EvidenceItem] = field(default_factory=list)
    discovered_page_numbers: List[int] = field(default_factory=list)

    @property
    def page_numbers(self) -> List[int]:
        return [item.page_number for item in self.items]


class EvidenceAggregator:
    """
    Combines triage-selected pages with keyword-scored pages.

    Features:
    - Candidate cap and per-source excerpt truncation
    - Deduplication by page number
    - Evidence set size bound
    - Stable relevance ranking
    """

    def __init__(self, bounds: RetrieverConfig = None):
        self._bounds = bounds or RetrieverConfig()

    def aggregate(
        self,
        pages: Sequence[PageRecord],
        query: str,
        candidate_page_numbers: Sequence[int],
    ) -> AggregatedEvidence:
        """
        Assemble evidence for a query.

        Args:
            pages: Full page collection
            query: User question
            candidate_page_numbers: Triage output, in model order

        Returns:
            AggregatedEvidence with items sorted by relevance (ties keep
            discovery order)
        """
        bounds = self._bounds
        by_number = {page.page_number: page for page in pages}
        items: List[EvidenceItem] = []
        discovered: List[int] = []

        # Triage candidates
        for page_number in list(candidate_page_numbers)[:bounds.max_candidate_pages]:
            page = by_number.get(page_number)
            if page is None or page_number in discovered:
                continue
            discovered.append(page_number)
            items.append(EvidenceItem(
                page_number=page_number,
                content_excerpt=page.content[:bounds.candidate_excerpt_chars],
                relevance_score=bounds.candidate_score,
                origin="triage",
            ))

        # Keyword scan over everything triage did not pick
        keywords = tokenize_query(query)
        if keywords:
            candidates = set(candidate_page_numbers)
            for page in pages:
                if page.page_number in candidates or page.page_number in discovered:
                    continue

                raw_score = score(page, keywords)
                if raw_score > bounds.keyword_admission_threshold and len(items) < bounds.max_evidence_items:
                    discovered.append(page.page_number)
                    items.append(EvidenceItem(
                        page_number=page.page_number,
                        content_excerpt=page.content[:bounds.scanned_excerpt_chars],
                        relevance_score=raw_score / len(keywords),
                        origin="keyword",
                    ))

        # sort() is stable: equal scores keep discovery order
        items.sort(key=lambda item: item.relevance_score, reverse=True)

        logger.debug(
            "Aggregated %d evidence items (%d from triage)",
            len(items),
            sum(1 for item in items if item.origin == "triage"),
        )
        return AggregatedEvidence(items=items, discovered_page_numbers=discovered)
