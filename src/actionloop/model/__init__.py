"""Model client module for actionloop.

Provides a provider-agnostic interface for sending the turn history and
action schemas to a language model and receiving a normalized ModelTurn.

Public API:
    ModelClient -- Abstract base class
    BackendFailure -- Raised when the backend cannot respond
    RetryingModelClient -- Retry wrapper
    AnthropicModelClient -- Claude API implementation
    OpenAIModelClient -- OpenAI / OpenRouter implementation
"""

from actionloop.model.base import (
    BackendFailure,
    ModelClient,
    is_malformed_fragment,
    normalize_fragments,
)
from actionloop.model.retry import RetryingModelClient

__all__ = [
    "AnthropicModelClient",
    "BackendFailure",
    "ModelClient",
    "OpenAIModelClient",
    "RetryingModelClient",
    "is_malformed_fragment",
    "normalize_fragments",
]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "AnthropicModelClient":
        from actionloop.model.anthropic import AnthropicModelClient
        return AnthropicModelClient
    if name == "OpenAIModelClient":
        from actionloop.model.openai import OpenAIModelClient
        return OpenAIModelClient
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
