"""
llmstreamer Adapters Module

Provider-specific adapters: request building and event-shape parsing
for each provider's streaming API.
"""

from typing import Union

from .base import BaseAdapter
from .openai_adapter import OpenAIAdapter
from .anthropic_adapter import AnthropicAdapter
from ..config import AdapterConfig, parse_provider
from ..core.models import Provider

__all__ = [
    "BaseAdapter",
    "AdapterConfig",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "get_adapter",
]


def get_adapter(provider: Union[str, Provider], config: AdapterConfig) -> BaseAdapter:
    """
    Factory function to get the appropriate adapter for a provider.

    Args:
        provider: Provider name ("openai", "anthropic") or Provider
        config: Adapter configuration with API key

    Returns:
        Configured adapter instance

    Raises:
        ValueError: If provider is not supported
    """
    adapters = {
        Provider.OPENAI: OpenAIAdapter,
        Provider.ANTHROPIC: AnthropicAdapter,
    }

    if not isinstance(provider, Provider):
        provider = parse_provider(provider)

    return adapters[provider](config)
