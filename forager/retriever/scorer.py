"""
Relevance Scorer

Pure keyword scoring over page metadata. No model calls.

Weights per keyword (case-insensitive substring match):
- content match → 3
- summary match → 2
- any tag containing the keyword → 1
"""

from typing import List, Optional, Sequence

from ..common.schemas import PageRecord

CONTENT_WEIGHT = 3
SUMMARY_WEIGHT = 2
TAG_WEIGHT = 1

# Query tokens this short ("the", "is", "of") carry no signal
MIN_KEYWORD_LENGTH = 4


def tokenize_query(query: str) -> List[str]:
    """Split on whitespace, keep tokens longer than 3 characters, lowercase."""
    return [word.lower() for word in query.split() if len(word) >= MIN_KEYWORD_LENGTH]


def score(page: PageRecord, keywords: Sequence[str]) -> int:
    """Weighted keyword relevance of a page. 0 means no keyword matched."""
    content = page.content.lower()
    summary = page.summary.lower()
    tags = [t.lower() for t in page.tags]

    relevance = 0
    for keyword in keywords:
        keyword_lower = keyword.lower()
        if keyword_lower in content:
            relevance += CONTENT_WEIGHT
        if keyword_lower in summary:
            relevance += SUMMARY_WEIGHT
        if any(keyword_lower in tag for tag in tags):
            relevance += TAG_WEIGHT
    return relevance


def score_references(page: PageRecord, reference_token: str) -> bool:
    """True if any of the page's references contains the token."""
    token = reference_token.lower()
    return any(token in ref.lower() for ref in page.references)


def score_tag_overlap(page: PageRecord, target_page: PageRecord) -> int:
    """Number of the page's tags that also appear on the target page."""
    target_tags = {t.lower() for t in target_page.tags}
    return sum(1 for tag in page.tags if tag.lower() in target_tags)


def get_page(pages: Sequence[PageRecord], page_number: int) -> Optional[PageRecord]:
    for page in pages:
        if page.page_number == page_number:
            return page
    return None


def search_pages(
    pages: Sequence[PageRecord],
    keywords: Sequence[str],
    limit: int = 10,
) -> List[tuple]:
    """
    Rank pages by keyword score.

    Returns:
        (page, score) pairs with score > 0, best first, at most ``limit``.
        Equal scores keep corpus order.
    """
    scored = [(page, score(page, keywords)) for page in pages]
    scored = [pair for pair in scored if pair[1] > 0]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:limit]


def find_referencing_pages(pages: Sequence[PageRecord], reference_token: str) -> List[PageRecord]:
    """Pages citing a section/heading token, in corpus order."""
    return [page for page in pages if score_references(page, reference_token)]


def find_related_pages(
    pages: Sequence[PageRecord],
    page_number: int,
    limit: int = 5,
) -> List[tuple]:
    """
    Pages sharing semantic tags with a given page.

    Returns:
        (page, common_tag_count) pairs, most overlap first, at most ``limit``.
        Empty when the target page does not exist.
    """
    target = get_page(pages, page_number)
    if target is None:
        return []

    related = [
        (page, score_tag_overlap(page, target))
        for page in pages
        if page.page_number != page_number
    ]
    related = [pair for pair in related if pair[1] > 0]
    related.sort(key=lambda pair: pair[1], reverse=True)
    return related[:limit]
