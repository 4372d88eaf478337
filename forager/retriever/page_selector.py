"""
Page Selector

First-pass triage over the whole document. One classification call per query:
the model sees a one-line digest of every page (summary + tags, never the page
text) and returns the page numbers worth reading.

Triage may degrade but never fails a query: any client error or unparseable
answer falls back to a fixed default page set.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..common.llm_utils import Malformed, parse_page_numbers
from ..common.schemas import PageRecord

logger = logging.getLogger("forager.retriever.page_selector")

DEFAULT_CANDIDATE_PAGES = (1, 2, 3)

TRIAGE_SYSTEM = "You are an expert at identifying relevant document pages. Return only a JSON array of page numbers."

TRIAGE_PROMPT = """Given this query: "{query}"

And these page summaries:
{digest}

Return a JSON array of page numbers that are most relevant for answering this query. Consider:
1. Direct mentions of relevant topics
2. Related concepts that might use different terminology
3. References that might point to other relevant pages

Limit to the top 5-10 most relevant pages.

Return only JSON array: [1, 2, 3, ...]"""


@dataclass
class TriageResult:
    """Candidate pages chosen by triage"""
    page_numbers: List[int] = field(default_factory=list)
    degraded: bool = False  # True when the default page set was substituted
    raw_response: Optional[str] = None


def build_corpus_digest(pages: Sequence[PageRecord]) -> str:
    """One line per page: "Page N: summary (Tags: t1, t2)"."""
    return "\n".join(page.digest_line() for page in pages)


class PageSelector:
    """
    Selects candidate pages for a query with a single LLM call.

    Any object with ``generate(prompt, *, system, max_tokens, temperature)``
    works as the client; tests pass a Mock.
    """

    def __init__(
        self,
        llm_client,
        default_pages: Sequence[int] = DEFAULT_CANDIDATE_PAGES,
        max_tokens: int = 512,
        temperature: float = 0.1,
        timeout: float = 60.0,
    ):
        self._llm = llm_client
        self._default_pages = list(default_pages)
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout = timeout

    def _fallback(self, raw: Optional[str] = None) -> TriageResult:
        return TriageResult(
            page_numbers=list(self._default_pages),
            degraded=True,
            raw_response=raw,
        )

    async def select_candidate_pages(
        self,
        pages: Sequence[PageRecord],
        query: str,
    ) -> TriageResult:
        """
        Ask the model which pages answer the query.

        Args:
            pages: Full page collection of the document(s)
            query: User question

        Returns:
            TriageResult in model order; the default pages when degraded
        """
        prompt = TRIAGE_PROMPT.format(query=query, digest=build_corpus_digest(pages))

        try:
            raw = await asyncio.to_thread(
                self._llm.generate,
                prompt,
                system=TRIAGE_SYSTEM,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                timeout=self._timeout,
            )
        except Exception as e:
            logger.warning("Page triage failed, using default pages %s: %s", self._default_pages, e)
            return self._fallback()

        parsed = parse_page_numbers(raw)
        if isinstance(parsed, Malformed):
            logger.warning(
                "Unparseable triage response (%s), using default pages %s",
                parsed.reason,
                self._default_pages,
            )
            return self._fallback(raw)

        if not parsed.value:
            logger.warning("Triage returned no pages, using default pages %s", self._default_pages)
            return self._fallback(raw)

        logger.debug("Triage selected pages %s", parsed.value)
        return TriageResult(page_numbers=parsed.value, raw_response=raw)
