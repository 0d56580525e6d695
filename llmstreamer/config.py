"""
llmstreamer - Configuration

Adapter configuration and environment lookup.

Credentials are passed explicitly to the adapters; the helpers here
only read them from the environment for callers that want that.
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional

from .core.models import Provider


DEFAULT_MAX_TOKENS = 1024


@dataclass
class AdapterConfig:
    """Configuration for a provider adapter."""
    api_key: str
    model: Optional[str] = None
    base_url: Optional[str] = None
    max_tokens: int = DEFAULT_MAX_TOKENS


def _env_prefix(provider: Provider) -> str:
    return provider.value.upper()


def parse_provider(value: str) -> Provider:
    """
    Parse a provider name.

    Raises ValueError for unknown providers.
    """
    try:
        return Provider(value.lower().strip())
    except ValueError:
        valid = ", ".join(p.value for p in Provider)
        raise ValueError(f"Unsupported provider: {value!r}. Use one of: {valid}")


def get_provider_env_keys() -> Dict[str, Optional[str]]:
    """Get provider API keys from the environment."""
    return {
        provider.value: os.getenv(f"{_env_prefix(provider)}_API_KEY")
        for provider in Provider
    }


def load_adapter_config(provider: str) -> AdapterConfig:
    """
    Build an AdapterConfig from environment variables.

    Reads <PROVIDER>_API_KEY, <PROVIDER>_MODEL, <PROVIDER>_BASE_URL and
    LLMSTREAMER_MAX_TOKENS. A missing key yields an empty string so the
    streamer reports it through `on_error` instead of failing here.
    """
    resolved = parse_provider(provider)
    prefix = _env_prefix(resolved)

    max_tokens_raw = os.getenv("LLMSTREAMER_MAX_TOKENS", "").strip()
    if max_tokens_raw:
        try:
            max_tokens = int(max_tokens_raw)
        except ValueError:
            raise ValueError("LLMSTREAMER_MAX_TOKENS must be an integer")
        if max_tokens <= 0:
            raise ValueError("LLMSTREAMER_MAX_TOKENS must be positive")
    else:
        max_tokens = DEFAULT_MAX_TOKENS

    return AdapterConfig(
        api_key=os.getenv(f"{prefix}_API_KEY", ""),
        model=os.getenv(f"{prefix}_MODEL") or None,
        base_url=os.getenv(f"{prefix}_BASE_URL") or None,
        max_tokens=max_tokens,
    )


def get_bridge_provider() -> Provider:
    """Provider used by the WebSocket bridge (LLMSTREAMER_PROVIDER, default openai)."""
    return parse_provider(os.getenv("LLMSTREAMER_PROVIDER", "openai"))
