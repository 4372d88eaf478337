"""
Language Detection

Detects the language of a user question so the synthesized answer can be
written in the same language as the question, whatever the document language.
"""

import re
from dataclasses import dataclass

from langdetect import DetectorFactory, LangDetectException, detect_langs

# Seed langdetect for deterministic results
DetectorFactory.seed = 0

# Matches any Hangul, Kana, or CJK character
_NON_LATIN_RE = re.compile(
    r'[\u1100-\u11FF\u3040-\u309F\u30A0-\u30FF\u3130-\u318F'
    r'\u3400-\u4DBF\u4E00-\u9FFF\uAC00-\uD7AF]'
)

# Below this many characters langdetect guesses more than it detects
MIN_DETECTION_LENGTH = 20
LATIN_MIN_CONFIDENCE = 0.9


@dataclass(frozen=True)
class LanguageInfo:
    """Detected language information"""
    code: str           # ISO 639-1: "en", "de", "ko"
    confidence: float   # 0.0~1.0

    @property
    def is_english(self) -> bool:
        return self.code == "en"


ENGLISH = LanguageInfo(code="en", confidence=1.0)


def detect_language(text: str) -> LanguageInfo:
    """Detect language of a question.

    Short Latin-script questions default to English; langdetect misreads
    them as fr, af, nl and similar far too often.
    """
    if not text or not text.strip():
        return ENGLISH

    cleaned = text.strip()
    if len(cleaned) < MIN_DETECTION_LENGTH and not _NON_LATIN_RE.search(cleaned):
        return LanguageInfo(code="en", confidence=0.5)

    try:
        results = detect_langs(cleaned)
    except LangDetectException:
        return LanguageInfo(code="en", confidence=0.5)

    if not results:
        return LanguageInfo(code="en", confidence=0.5)

    top = results[0]
    # Latin-script guesses other than English need strong support
    if top.lang != "en" and not _NON_LATIN_RE.search(cleaned) and top.prob < LATIN_MIN_CONFIDENCE:
        return LanguageInfo(code="en", confidence=0.5)

    return LanguageInfo(code=top.lang, confidence=round(top.prob, 4))
