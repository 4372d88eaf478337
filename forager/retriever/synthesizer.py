"""
Synthesizer

LLM-based answer synthesis from page evidence.

Key principle: answer only from the supplied pages.
- cite page numbers for every claim
- say plainly when the pages do not contain the answer
- follow cross-references ("see section 3.4.1") mentioned in the text
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Sequence

from ..common.language import detect_language
from .aggregator import EvidenceItem

logger = logging.getLogger("forager.retriever.synthesizer")

NO_ANSWER_FALLBACK = "No answer could be generated from the available content."

SYNTHESIS_SYSTEM = """You are Forager, an expert document analysis assistant. Answer the user's question based on the provided document content.

Rules:
1. Use only the information provided in the context
2. Be comprehensive and detailed in your answer
3. Reference specific pages when citing information
4. If information is not available, say so clearly
5. Follow cross-references and citations mentioned in the text"""

SYNTHESIS_PROMPT = """Question: {query}

Context from document pages:
{context}

{language_instruction}
Please provide a comprehensive answer based on the available information."""


@dataclass
class SynthesizedAnswer:
    """Answer text from the completion service"""
    answer: str
    used_fallback: bool = False  # True when the model returned no text


def format_evidence_context(evidence: Sequence[EvidenceItem]) -> str:
    """Join evidence as "Page {n}: {excerpt}" blocks separated by blank lines."""
    return "\n\n".join(f"Page {item.page_number}: {item.content_excerpt}" for item in evidence)


class Synthesizer:
    """
    Writes the final answer with one completion call.

    Client failures are not caught here; a query without an answer has
    failed and the caller decides whether to retry.
    """

    def __init__(
        self,
        llm_client,
        temperature: float = 0.1,
        max_tokens: int = 5000,
        timeout: float = 60.0,
    ):
        self._llm = llm_client
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout

    def build_prompt(self, query: str, evidence: Sequence[EvidenceItem]) -> str:
        language = detect_language(query)
        if language.is_english:
            language_instruction = "Respond in English."
        else:
            language_instruction = (
                f"IMPORTANT: The user asked in {language.code}. "
                f"Respond in the SAME language ({language.code}). "
                f"The document pages may be in another language; translate relevant parts."
            )

        return SYNTHESIS_PROMPT.format(
            query=query,
            context=format_evidence_context(evidence),
            language_instruction=language_instruction,
        )

    async def synthesize(self, query: str, evidence: List[EvidenceItem]) -> SynthesizedAnswer:
        """
        Synthesize an answer from evidence.

        Args:
            query: User question
            evidence: Ranked evidence from EvidenceAggregator

        Returns:
            SynthesizedAnswer; the fixed fallback text if the model said nothing
        """
        prompt = self.build_prompt(query, evidence)

        answer_text = await asyncio.to_thread(
            self._llm.generate,
            prompt,
            system=SYNTHESIS_SYSTEM,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            timeout=self._timeout,
        )

        if not answer_text or not answer_text.strip():
            logger.warning("Completion returned no text for query %r", query[:80])
            return SynthesizedAnswer(answer=NO_ANSWER_FALLBACK, used_fallback=True)

        return SynthesizedAnswer(answer=answer_text.strip())
