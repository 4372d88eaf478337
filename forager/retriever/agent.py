"""
Retrieval Agent

Answers one question over one page collection.

Pipeline:
1. PageSelector: triage the corpus digest into candidate pages
2. EvidenceAggregator: candidates + keyword scan → ranked evidence
3. Synthesizer: one completion over the evidence

Failure policy:
- triage failures degrade to default pages (never surfaced)
- an empty corpus fails before any model call
- synthesis failures propagate as SynthesisError
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..common.config import ForagerConfig
from ..common.schemas import PageRecord
from .aggregator import EvidenceAggregator, EvidenceItem
from .errors import EmptyCorpusError, SynthesisError
from .page_selector import PageSelector
from .scorer import find_referencing_pages, find_related_pages, get_page, search_pages
from .synthesizer import Synthesizer

logger = logging.getLogger("forager.retriever.agent")


@dataclass
class QueryResult:
    """The agent's answer to one query"""
    answer: str
    relevant_page_numbers: List[int]
    sources: List[EvidenceItem]
    evidence_count: int = 0
    degraded_triage: bool = False
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "answer": self.answer,
            "relevantPages": list(self.relevant_page_numbers),
            "sources": [s.to_dict() for s in self.sources],
        }


class RetrievalAgent:
    """
    Orchestrates triage, aggregation and synthesis for a document.

    The page collection is frozen into a tuple at construction. Nothing else
    is stored between calls, so concurrent process_query calls on one
    instance are independent.
    """

    def __init__(
        self,
        pages: Sequence[PageRecord],
        selector: PageSelector,
        aggregator: EvidenceAggregator,
        synthesizer: Synthesizer,
        max_sources: int = 5,
    ):
        self._pages = tuple(pages)
        self._selector = selector
        self._aggregator = aggregator
        self._synthesizer = synthesizer
        self._max_sources = max_sources

    @classmethod
    def from_config(
        cls,
        pages: Sequence[PageRecord],
        llm_client,
        config: Optional[ForagerConfig] = None,
    ) -> "RetrievalAgent":
        """Wire all stages to one LLM client using configured bounds."""
        config = config or ForagerConfig()
        bounds = config.retriever
        selector = PageSelector(
            llm_client,
            default_pages=bounds.default_pages,
            max_tokens=bounds.triage_max_tokens,
            temperature=config.llm.temperature,
            timeout=config.llm.timeout,
        )
        synthesizer = Synthesizer(
            llm_client,
            temperature=config.llm.temperature,
            max_tokens=bounds.synthesis_max_tokens,
            timeout=config.llm.timeout,
        )
        return cls(
            pages,
            selector=selector,
            aggregator=EvidenceAggregator(bounds),
            synthesizer=synthesizer,
            max_sources=bounds.max_sources,
        )

    @property
    def pages(self) -> Sequence[PageRecord]:
        return self._pages

    async def process_query(self, query: str) -> QueryResult:
        """
        Answer a question from the page collection.

        Args:
            query: Non-empty user question

        Returns:
            QueryResult with answer, contributing pages and top sources

        Raises:
            ValueError: query is blank
            EmptyCorpusError: no pages to search
            SynthesisError: the completion call failed
        """
        if not query or not query.strip():
            raise ValueError("query must not be empty")
        if not self._pages:
            raise EmptyCorpusError("No documents available to query")

        pages = self._pages
        logger.info("Processing query over %d pages: %r", len(pages), query[:80])

        triage = await self._selector.select_candidate_pages(pages, query)
        evidence = self._aggregator.aggregate(pages, query, triage.page_numbers)

        try:
            synthesized = await self._synthesizer.synthesize(query, evidence.items)
        except Exception as e:
            logger.error("Answer synthesis failed: %s", e, exc_info=True)
            raise SynthesisError(f"Answer synthesis failed: {e}") from e

        existing = {page.page_number for page in pages}
        relevant = list(dict.fromkeys(
            [n for n in triage.page_numbers if n in existing] + evidence.discovered_page_numbers
        ))

        warnings = []
        if triage.degraded:
            warnings.append("Page triage unavailable, searched default pages and keywords only")
        if synthesized.used_fallback:
            warnings.append("Model returned no answer text")

        logger.info(
            "Answered with %d evidence items from pages %s",
            len(evidence.items),
            evidence.page_numbers,
        )
        return QueryResult(
            answer=synthesized.answer,
            relevant_page_numbers=relevant,
            sources=evidence.items[:self._max_sources],
            evidence_count=len(evidence.items),
            degraded_triage=triage.degraded,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Page tools
    # ------------------------------------------------------------------

    def search_pages(self, keywords: List[str]) -> List[Dict[str, Any]]:
        """Pages containing the keywords, best first (top 10)."""
        return [
            {"pageNbr": page.page_number, "relevance": relevance, "summary": page.summary}
            for page, relevance in search_pages(self._pages, keywords)
        ]

    def get_page_content(self, page_number: int) -> Optional[str]:
        page = get_page(self._pages, page_number)
        return page.content if page else None

    def search_references(self, reference: str) -> List[Dict[str, Any]]:
        """Pages citing a section, chapter or heading token."""
        return [
            {"pageNbr": page.page_number, "references": list(page.references)}
            for page in find_referencing_pages(self._pages, reference)
        ]

    def get_related_pages(self, page_number: int) -> List[Dict[str, Any]]:
        """Pages sharing semantic tags with a page (top 5)."""
        results = []
        target = get_page(self._pages, page_number)
        if target is None:
            return results
        target_tags = {t.lower() for t in target.tags}
        for page, _ in find_related_pages(self._pages, page_number):
            results.append({
                "pageNbr": page.page_number,
                "commonTags": [t for t in page.tags if t.lower() in target_tags],
            })
        return results
