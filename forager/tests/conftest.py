"""Shared fixtures: page factories and a scripted LLM client."""

import pytest
from unittest.mock import Mock


@pytest.fixture
def make_page():
    from forager.common.schemas import PageRecord

    def _make(page_number, content=None, summary="", tags=None, references=None, **kwargs):
        return PageRecord(
            page_number=page_number,
            content=content if content is not None else f"Body text of page {page_number}.",
            summary=summary,
            tags=tags or [],
            references=references or [],
            **kwargs,
        )
    return _make


@pytest.fixture
def termination_corpus(make_page):
    """Page 1 points at section 3.4.1, page 3 is section 3.4.1, page 2 is unrelated."""
    return [
        make_page(
            1,
            content="Section 2 overview. Contractual obligations are outlined here. See section 3.4.1 for details.",
            summary="Overview of the termination policy, which is defined in section 3.4.1.",
            tags=["policy", "contracts"],
            references=["3.4.1"],
        ),
        make_page(
            2,
            content="Quarterly revenue figures for the fiscal year, broken down by region.",
            summary="Financial results by region.",
            tags=["finance"],
        ),
        make_page(
            3,
            content="3.4.1 Termination. Either party may end the agreement with thirty days notice. "
                    "Termination for cause takes effect immediately.",
            summary="Section 3.4.1 on ending the agreement.",
            tags=["legal"],
        ),
    ]


@pytest.fixture
def scripted_llm():
    """LLM client answering triage and synthesis prompts from fixed strings."""
    from forager.retriever.page_selector import TRIAGE_SYSTEM

    def _make(triage_response="[1]", answer="The policy is described on page 3."):
        llm = Mock()
        llm.is_available = True

        def _generate(prompt, *, system=None, **kwargs):
            if system == TRIAGE_SYSTEM:
                if isinstance(triage_response, Exception):
                    raise triage_response
                return triage_response
            if isinstance(answer, Exception):
                raise answer
            return answer

        llm.generate.side_effect = _generate
        return llm
    return _make
