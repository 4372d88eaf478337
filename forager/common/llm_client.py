"""
Provider-agnostic LLM client for Forager.

Supports Anthropic, OpenAI, and Google Gemini with a shared text-generation
interface. Page triage and answer synthesis both go through this client.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Callable, Dict, Optional, Tuple

from .config import LLMConfig

logger = logging.getLogger("forager.common.llm_client")


def _anthropic_sdk(api_key: str):
    import anthropic

    return anthropic.Anthropic(api_key=api_key)


def _openai_sdk(api_key: str):
    from openai import OpenAI

    return OpenAI(api_key=api_key)


def _google_sdk(api_key: str):
    import google.generativeai as genai

    genai.configure(api_key=api_key)
    return genai  # the module; models are built per system instruction


# provider -> (distribution name, SDK factory)
_PROVIDERS: Dict[str, Tuple[str, Callable]] = {
    "anthropic": ("anthropic", _anthropic_sdk),
    "openai": ("openai", _openai_sdk),
    "google": ("google-generativeai", _google_sdk),
}


def _gemini_text(response) -> str:
    """Text of a Gemini response, "" for blocked or part-less candidates.

    ``response.text`` raises ValueError when the first candidate has no parts
    (safety block, empty finish), so check before reading it.
    """
    candidates = list(getattr(response, "candidates", None) or [])
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    if content is None or not list(getattr(content, "parts", None) or []):
        return ""
    return (response.text or "").strip()


class LLMClient:
    """Unified text generation client across LLM providers."""

    def __init__(
        self,
        provider: str = "openai",
        model: str = "",
        anthropic_api_key: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        google_api_key: Optional[str] = None,
    ) -> None:
        self.provider = (provider or "openai").lower()
        self.model = model
        self._client = None
        self._google_models = {}

        if self.provider not in _PROVIDERS:
            logger.warning("Unsupported LLM provider: %s", self.provider)
            return

        api_key = {
            "anthropic": anthropic_api_key,
            "openai": openai_api_key,
            "google": google_api_key,
        }[self.provider]
        if not api_key:
            logger.info("%s API key not provided, LLM client unavailable", self.provider)
            return

        package, factory = _PROVIDERS[self.provider]
        try:
            self._client = factory(api_key)
        except ImportError:
            logger.warning("%s package not installed", package)
        except Exception as e:
            logger.warning("Failed to initialize %s client: %s", self.provider, e)

    @classmethod
    def from_config(cls, config: LLMConfig) -> "LLMClient":
        return cls(
            provider=config.provider,
            model=config.model_for_provider(),
            anthropic_api_key=config.anthropic_api_key or None,
            openai_api_key=config.openai_api_key or None,
            google_api_key=config.google_api_key or None,
        )

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: int = 512,
        temperature: Optional[float] = None,
        timeout: float = 60.0,
    ) -> str:
        """Run one completion and return the stripped text (may be empty).

        Provider errors propagate; an answer without text is "".
        """
        if not self.is_available:
            raise RuntimeError("LLM client is not available")

        sampling = {} if temperature is None else {"temperature": temperature}
        if self.provider == "anthropic":
            return self._generate_anthropic(prompt, system, max_tokens, sampling, timeout)
        if self.provider == "openai":
            return self._generate_openai(prompt, system, max_tokens, sampling, timeout)
        return self._generate_google(prompt, system, max_tokens, sampling, timeout)

    def _generate_anthropic(self, prompt, system, max_tokens, sampling, timeout) -> str:
        kwargs = dict(sampling)
        if system:
            kwargs["system"] = system
        response = self._client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
            timeout=timeout,
            **kwargs,
        )
        if not response.content:
            return ""
        return (response.content[0].text or "").strip()

    def _generate_openai(self, prompt, system, max_tokens, sampling, timeout) -> str:
        messages = [{"role": "system", "content": system}] if system else []
        messages.append({"role": "user", "content": prompt})
        response = self._client.chat.completions.create(
            model=self.model,
            max_tokens=max_tokens,
            messages=messages,
            timeout=timeout,
            **sampling,
        )
        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()

    def _generate_google(self, prompt, system, max_tokens, sampling, timeout) -> str:
        # One GenerativeModel per system instruction (triage vs synthesis)
        cache_key = hashlib.md5((system or "").encode()).hexdigest()
        if cache_key not in self._google_models:
            kwargs = {"model_name": self.model}
            if system:
                kwargs["system_instruction"] = system
            self._google_models[cache_key] = self._client.GenerativeModel(**kwargs)

        response = self._google_models[cache_key].generate_content(
            prompt,
            generation_config={"max_output_tokens": max_tokens, **sampling},
            request_options={"timeout": timeout},
        )
        return _gemini_text(response)
