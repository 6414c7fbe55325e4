"""Model gateway: provider envelopes, credential lookup and the httpx client."""

from .client import ModelGateway
from .credentials import CredentialStore
from .providers import (
    PROVIDERS,
    AnthropicProvider,
    ModelProvider,
    OpenAIProvider,
    get_provider,
)

__all__ = [
    "PROVIDERS",
    "AnthropicProvider",
    "CredentialStore",
    "ModelGateway",
    "ModelProvider",
    "OpenAIProvider",
    "get_provider",
]
