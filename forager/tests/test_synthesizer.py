"""
Tests for the Synthesizer

Context assembly, prompt rules, the empty-answer fallback and error propagation.
"""

import pytest
from unittest.mock import Mock


@pytest.fixture
def evidence():
    from forager.retriever.aggregator import EvidenceItem
    return [
        EvidenceItem(page_number=1, content_excerpt="See section 3.4.1.", relevance_score=1.0),
        EvidenceItem(page_number=3, content_excerpt="3.4.1 Termination.", relevance_score=1.0, origin="keyword"),
    ]


@pytest.fixture
def llm():
    llm = Mock()
    llm.generate.return_value = "  Either party may terminate with thirty days notice (page 3).  "
    return llm


class TestFormatEvidenceContext:
    def test_blocks_separated_by_blank_lines(self, evidence):
        from forager.retriever.synthesizer import format_evidence_context

        assert format_evidence_context(evidence) == "Page 1: See section 3.4.1.\n\nPage 3: 3.4.1 Termination."

    def test_empty_evidence(self):
        from forager.retriever.synthesizer import format_evidence_context

        assert format_evidence_context([]) == ""


class TestSynthesize:
    @pytest.mark.asyncio
    async def test_returns_stripped_answer(self, llm, evidence):
        from forager.retriever.synthesizer import Synthesizer

        result = await Synthesizer(llm).synthesize("What is the termination policy?", evidence)

        assert result.answer == "Either party may terminate with thirty days notice (page 3)."
        assert result.used_fallback is False

    @pytest.mark.asyncio
    async def test_prompt_and_sampling(self, llm, evidence):
        from forager.retriever.synthesizer import SYNTHESIS_SYSTEM, Synthesizer

        await Synthesizer(llm).synthesize("What is the termination policy?", evidence)

        prompt = llm.generate.call_args.args[0]
        kwargs = llm.generate.call_args.kwargs
        assert prompt.startswith("Question: What is the termination policy?")
        assert "Page 1: See section 3.4.1.\n\nPage 3: 3.4.1 Termination." in prompt
        assert "Respond in English." in prompt
        assert kwargs["system"] == SYNTHESIS_SYSTEM
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 5000

    def test_system_instruction_rules(self):
        from forager.retriever.synthesizer import SYNTHESIS_SYSTEM

        assert "Use only the information provided in the context" in SYNTHESIS_SYSTEM
        assert "Reference specific pages" in SYNTHESIS_SYSTEM
        assert "If information is not available, say so clearly" in SYNTHESIS_SYSTEM
        assert "Follow cross-references" in SYNTHESIS_SYSTEM

    def test_non_english_question_gets_language_instruction(self, llm, evidence):
        from forager.retriever.synthesizer import Synthesizer

        prompt = Synthesizer(llm).build_prompt("계약 해지 정책은 무엇입니까? 통지 기간도 알려주세요.", evidence)

        assert "Respond in the SAME language (ko)" in prompt

    @pytest.mark.asyncio
    async def test_empty_completion_uses_fallback(self, llm, evidence):
        from forager.retriever.synthesizer import NO_ANSWER_FALLBACK, Synthesizer

        llm.generate.return_value = "   "

        result = await Synthesizer(llm).synthesize("What is the termination policy?", evidence)

        assert result.answer == NO_ANSWER_FALLBACK
        assert result.answer == "No answer could be generated from the available content."
        assert result.used_fallback is True

    @pytest.mark.asyncio
    async def test_none_completion_uses_fallback(self, llm, evidence):
        from forager.retriever.synthesizer import NO_ANSWER_FALLBACK, Synthesizer

        llm.generate.return_value = None

        result = await Synthesizer(llm).synthesize("What is the termination policy?", evidence)

        assert result.answer == NO_ANSWER_FALLBACK

    @pytest.mark.asyncio
    async def test_client_error_propagates(self, llm, evidence):
        from forager.retriever.synthesizer import Synthesizer

        llm.generate.side_effect = TimeoutError("completion timed out")

        with pytest.raises(TimeoutError, match="timed out"):
            await Synthesizer(llm).synthesize("What is the termination policy?", evidence)
