"""
Forager Common Module

Shared infrastructure for the retriever and the document store.
"""

from .config import ForagerConfig, load_config
from .language import LanguageInfo, detect_language
from .llm_client import LLMClient
from .llm_utils import Malformed, Parsed, parse_page_numbers

__all__ = [
    "ForagerConfig",
    "load_config",
    "LanguageInfo",
    "detect_language",
    "LLMClient",
    "Malformed",
    "Parsed",
    "parse_page_numbers",
]
