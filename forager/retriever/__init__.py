"""
Retriever Agent - Page-level Document Question Answering

Answers questions by choosing and reading pages rather than by embedding
similarity.

Key Components:
- PageSelector: LLM triage over page summaries and tags
- EvidenceAggregator: merges triage pages with keyword hits, bounded and ranked
- Synthesizer: LLM answer from the evidence, citing pages
- RetrievalAgent: runs the three stages for one query

Pipeline:
1. Digest every page to one line and ask the model which pages matter
2. Read those pages, then scan the rest for query keywords
3. Rank and truncate the evidence
4. Synthesize an answer that cites page numbers
"""

from .agent import QueryResult, RetrievalAgent
from .aggregator import AggregatedEvidence, EvidenceAggregator, EvidenceItem
from .errors import EmptyCorpusError, RetrievalError, SynthesisError
from .page_selector import PageSelector, TriageResult
from .synthesizer import NO_ANSWER_FALLBACK, SynthesizedAnswer, Synthesizer

__all__ = [
    "QueryResult",
    "RetrievalAgent",
    "AggregatedEvidence",
    "EvidenceAggregator",
    "EvidenceItem",
    "EmptyCorpusError",
    "RetrievalError",
    "SynthesisError",
    "PageSelector",
    "TriageResult",
    "NO_ANSWER_FALLBACK",
    "SynthesizedAnswer",
    "Synthesizer",
]
