"""
Configuration Management for Forager

Loads configuration from ~/.forager/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import List

logger = logging.getLogger("forager.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".forager"
CONFIG_PATH = CONFIG_DIR / "config.json"
DOCUMENTS_DIR = CONFIG_DIR / "documents"


@dataclass
class LLMConfig:
    """LLM provider configuration shared by triage and synthesis"""
    provider: str = "openai"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    google_api_key: str = ""
    google_model: str = "gemini-2.0-flash"
    temperature: float = 0.1
    timeout: float = 60.0

    def model_for_provider(self) -> str:
        """Model name configured for the active provider"""
        return {
            "anthropic": self.anthropic_model,
            "openai": self.openai_model,
            "google": self.google_model,
        }.get(self.provider.lower(), "")


@dataclass
class RetrieverConfig:
    """Retrieval bounds: how much evidence reaches the model"""
    max_candidate_pages: int = 5
    candidate_excerpt_chars: int = 1000
    candidate_score: float = 1.0
    keyword_admission_threshold: int = 2
    max_evidence_items: int = 10
    scanned_excerpt_chars: int = 800
    max_sources: int = 5
    default_pages: List[int] = field(default_factory=lambda: [1, 2, 3])
    triage_max_tokens: int = 512
    synthesis_max_tokens: int = 5000


@dataclass
class StoreConfig:
    """Document store configuration"""
    backend: str = "json"  # "json" or "memory"
    path: str = str(DOCUMENTS_DIR)


@dataclass
class ForagerConfig:
    """Main Forager configuration"""
    llm: LLMConfig = field(default_factory=LLMConfig)
    retriever: RetrieverConfig = field(default_factory=RetrieverConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    log_level: str = "INFO"
    _env_sourced_keys: set = field(default_factory=set, repr=False)


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    defaults = LLMConfig()
    return LLMConfig(
        provider=llm_data.get("provider", defaults.provider),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", defaults.anthropic_model),
        openai_api_key=llm_data.get("openai_api_key", ""),
        openai_model=llm_data.get("openai_model", defaults.openai_model),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", defaults.google_model),
        temperature=float(llm_data.get("temperature", defaults.temperature)),
        timeout=float(llm_data.get("timeout", defaults.timeout)),
    )


def _parse_retriever_config(data: dict) -> RetrieverConfig:
    """Parse retriever section from config dict.

    Unknown keys are ignored so older config files keep loading.
    """
    retriever_data = data.get("retriever", {})
    config = RetrieverConfig()
    for name in config.__dataclass_fields__:
        if name not in retriever_data:
            continue
        default = getattr(config, name)
        try:
            setattr(config, name, _coerce_like(default, retriever_data[name]))
        except (TypeError, ValueError):
            logger.warning(
                "Invalid retriever.%s value %r in config, keeping %r", name, retriever_data[name], default
            )
    return config


def _coerce_like(default, value):
    """Convert a config value to the type of the field default."""
    if isinstance(default, list):
        if not isinstance(value, list):
            raise TypeError(f"expected a list, got {type(value).__name__}")
        return [int(v) for v in value]
    return type(default)(value)


def _parse_store_config(data: dict) -> StoreConfig:
    """Parse store section from config dict"""
    store_data = data.get("store", {})
    return StoreConfig(
        backend=store_data.get("backend", "json"),
        path=store_data.get("path", str(DOCUMENTS_DIR)),
    )


def load_config() -> ForagerConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.forager/config.json)
    3. Default values
    """
    config = ForagerConfig()

    # Load from config file if exists
    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.llm = _parse_llm_config(data)
            config.retriever = _parse_retriever_config(data)
            config.store = _parse_store_config(data)
            config.log_level = data.get("log_level", "INFO")
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file %s: %s", CONFIG_PATH, e)

    # LLM env var overrides (track env-sourced keys)
    _env_llm_map = {
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "ANTHROPIC_MODEL": "anthropic_model",
        "OPENAI_API_KEY": "openai_api_key",
        "OPENAI_MODEL": "openai_model",
        "GOOGLE_API_KEY": "google_api_key",
        "GEMINI_API_KEY": "google_api_key",
        "GOOGLE_MODEL": "google_model",
        "FORAGER_LLM_PROVIDER": "provider",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)
            config._env_sourced_keys.add(attr)

    if os.getenv("FORAGER_STORE_BACKEND"):
        config.store.backend = os.getenv("FORAGER_STORE_BACKEND")
    if os.getenv("FORAGER_STORE_PATH"):
        config.store.path = os.getenv("FORAGER_STORE_PATH")
    if os.getenv("FORAGER_MAX_SOURCES"):
        try:
            config.retriever.max_sources = int(os.getenv("FORAGER_MAX_SOURCES"))
        except ValueError:
            logger.warning(
                "Ignoring non-integer FORAGER_MAX_SOURCES=%r", os.getenv("FORAGER_MAX_SOURCES")
            )
    if os.getenv("FORAGER_LOG_LEVEL"):
        config.log_level = os.getenv("FORAGER_LOG_LEVEL")

    return config


def save_config(config: ForagerConfig) -> None:
    """Save configuration to file.

    API key fields that were sourced from environment variables are written
    as empty strings so that secrets are not persisted to disk.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    env_sourced = getattr(config, "_env_sourced_keys", set())

    llm_section = {
        "provider": config.llm.provider,
        "anthropic_api_key": config.llm.anthropic_api_key,
        "anthropic_model": config.llm.anthropic_model,
        "openai_api_key": config.llm.openai_api_key,
        "openai_model": config.llm.openai_model,
        "google_api_key": config.llm.google_api_key,
        "google_model": config.llm.google_model,
        "temperature": config.llm.temperature,
        "timeout": config.llm.timeout,
    }
    for key in ("anthropic_api_key", "openai_api_key", "google_api_key"):
        if key in env_sourced:
            llm_section[key] = ""

    retriever = config.retriever
    data = {
        "llm": llm_section,
        "retriever": {name: getattr(retriever, name) for name in retriever.__dataclass_fields__},
        "store": {
            "backend": config.store.backend,
            "path": config.store.path,
        },
        "log_level": config.log_level,
    }

    with open(CONFIG_PATH, "w") as f:
        json.dump(data, f, indent=2)

    # Set secure permissions
    CONFIG_PATH.chmod(0o600)


def ensure_directories(config: ForagerConfig) -> None:
    """Ensure required directories exist"""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    if config.store.backend == "json":
        Path(config.store.path).expanduser().mkdir(parents=True, exist_ok=True)
