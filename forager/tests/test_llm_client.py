"""Tests for LLMClient provider abstraction."""

import logging

import pytest
from types import SimpleNamespace
from unittest.mock import Mock, patch

from forager.common.llm_client import LLMClient


class _BlockedGeminiResponse:
    """Safety-blocked Gemini reply: a candidate without parts."""
    candidates = [SimpleNamespace(content=SimpleNamespace(parts=[]), finish_reason="SAFETY")]

    @property
    def text(self):
        raise ValueError("The response has no parts")


def _with_backend(provider, model="test-model"):
    """Client with a mocked provider SDK in place of a real one."""
    client = LLMClient(provider=provider, model=model)
    client._client = Mock()
    return client


class TestLLMClientInit:
    def test_missing_anthropic_key_logs_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="forager.common.llm_client"):
            client = LLMClient(provider="anthropic")
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_missing_openai_key_logs_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="forager.common.llm_client"):
            client = LLMClient(provider="openai")
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_missing_google_key_logs_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="forager.common.llm_client"):
            client = LLMClient(provider="google")
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_unsupported_provider_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="forager.common.llm_client"):
            client = LLMClient(provider="unsupported_xyz")
        assert not client.is_available
        assert "Unsupported" in caplog.text

    def test_provider_is_case_insensitive(self):
        assert LLMClient(provider="OpenAI").provider == "openai"

    def test_from_config_uses_active_provider_model(self):
        from forager.common.config import LLMConfig

        client = LLMClient.from_config(LLMConfig(provider="anthropic", anthropic_model="claude-x"))

        assert client.provider == "anthropic"
        assert client.model == "claude-x"
        assert not client.is_available


class TestLLMClientGenerate:
    def test_generate_raises_when_unavailable(self):
        client = LLMClient(provider="anthropic")
        with pytest.raises(RuntimeError, match="not available"):
            client.generate("test")

    def test_openai_generate(self):
        client = _with_backend("openai")
        message = Mock(content="  [1, 3]\n")
        client._client.chat.completions.create.return_value = Mock(choices=[Mock(message=message)])

        text = client.generate("prompt", system="sys", max_tokens=64, temperature=0.1, timeout=5)

        assert text == "[1, 3]"
        kwargs = client._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["max_tokens"] == 64
        assert kwargs["temperature"] == 0.1
        assert kwargs["timeout"] == 5
        assert kwargs["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "prompt"},
        ]

    def test_openai_null_content_is_empty(self):
        client = _with_backend("openai")
        client._client.chat.completions.create.return_value = Mock(choices=[Mock(message=Mock(content=None))])

        assert client.generate("prompt") == ""

    def test_openai_no_choices_is_empty(self):
        client = _with_backend("openai")
        client._client.chat.completions.create.return_value = Mock(choices=[])

        assert client.generate("prompt") == ""

    def test_anthropic_generate(self):
        client = _with_backend("anthropic")
        client._client.messages.create.return_value = Mock(content=[Mock(text=" answer ")])

        text = client.generate("prompt", system="sys", max_tokens=5000, temperature=0.1)

        assert text == "answer"
        kwargs = client._client.messages.create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 5000
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    def test_anthropic_omits_unset_temperature(self):
        client = _with_backend("anthropic")
        client._client.messages.create.return_value = Mock(content=[])

        assert client.generate("prompt") == ""
        assert "temperature" not in client._client.messages.create.call_args.kwargs

    def test_google_generate_caches_model_per_system(self):
        client = _with_backend("google")
        model = client._client.GenerativeModel.return_value
        model.generate_content.return_value = Mock(text="ok ", candidates=[Mock(content=Mock(parts=[Mock()]))])

        assert client.generate("a", system="sys") == "ok"
        assert client.generate("b", system="sys") == "ok"

        client._client.GenerativeModel.assert_called_once_with(model_name="test-model", system_instruction="sys")
        config = model.generate_content.call_args.kwargs["generation_config"]
        assert config == {"max_output_tokens": 512}

    def test_provider_errors_propagate(self):
        client = _with_backend("openai")
        client._client.chat.completions.create.side_effect = TimeoutError("timed out")

        with pytest.raises(TimeoutError):
            client.generate("prompt")

    def test_google_blocked_response_is_empty(self):
        client = _with_backend("google")
        model = client._client.GenerativeModel.return_value
        model.generate_content.return_value = _BlockedGeminiResponse()

        assert client.generate("prompt", system="sys") == ""

    def test_google_no_candidates_is_empty(self):
        client = _with_backend("google")
        model = client._client.GenerativeModel.return_value
        model.generate_content.return_value = Mock(candidates=[])

        assert client.generate("prompt") == ""

    @pytest.mark.asyncio
    async def test_blocked_gemini_answer_uses_fallback(self):
        from forager.retriever.aggregator import EvidenceItem
        from forager.retriever.synthesizer import NO_ANSWER_FALLBACK, Synthesizer

        client = _with_backend("google")
        client._client.GenerativeModel.return_value.generate_content.return_value = _BlockedGeminiResponse()
        evidence = [EvidenceItem(page_number=1, content_excerpt="text", relevance_score=1.0)]

        result = await Synthesizer(client).synthesize("What is the termination policy?", evidence)

        assert result.answer == NO_ANSWER_FALLBACK


class TestLLMClientSdkInit:
    def test_missing_sdk_logs_warning(self, caplog):
        def _not_installed(api_key):
            raise ImportError("no module")

        with patch.dict("forager.common.llm_client._PROVIDERS", {"openai": ("openai", _not_installed)}), \
             caplog.at_level(logging.WARNING, logger="forager.common.llm_client"):
            client = LLMClient(provider="openai", openai_api_key="sk-test")

        assert not client.is_available
        assert "openai package not installed" in caplog.text

    def test_sdk_built_with_key(self):
        factory = Mock(return_value=Mock())

        with patch.dict("forager.common.llm_client._PROVIDERS", {"anthropic": ("anthropic", factory)}):
            client = LLMClient(provider="anthropic", anthropic_api_key="ak-test")

        factory.assert_called_once_with("ak-test")
        assert client.is_available
