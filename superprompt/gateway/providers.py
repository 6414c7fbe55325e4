"""Provider request/response envelopes.

Each provider is a small strategy object: it knows its default endpoint and
model, builds the JSON body and headers for one multimodal call, and pulls
the reply text out of the provider's response document.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .. import config
from ..errors import InvalidArgument, ProviderError
from ..imaging import SourceImage


class ModelProvider(ABC):
    """Envelope strategy for one model provider."""

    name: str = ""
    default_base_url: str = ""
    path: str = ""
    default_model: str = ""

    def endpoint(self, override: str = "") -> str:
        """Full request URL; ``override`` is a base URL (or already the full URL)."""
        base = (override or self.default_base_url).rstrip("/")
        if base.endswith(self.path):
            return base
        return f"{base}{self.path}"

    @abstractmethod
    def headers(self, api_key: str) -> Dict[str, str]:
        ...

    @abstractmethod
    def build_request(
        self,
        *,
        model: str,
        user_prompt: str,
        system_prompt: Optional[str],
        temperature: float,
        json_response: bool,
        max_tokens: int,
        image: Optional[SourceImage],
    ) -> Dict[str, Any]:
        ...

    @abstractmethod
    def parse_response(self, data: Dict[str, Any], status_code: int = 200) -> str:
        ...


def _require_text(value: Any, status_code: int, provider: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ProviderError(
            status_code, f"Unexpected {provider} content type: {type(value).__name__}",
        )
    return value


class OpenAIProvider(ModelProvider):
    """Chat Completions: flat message list, image as a ``data:`` URL part."""

    name = "openai"
    default_base_url = "https://api.openai.com/v1"
    path = "/chat/completions"
    default_model = "gpt-4o"

    def headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

    def build_request(
        self,
        *,
        model: str,
        user_prompt: str,
        system_prompt: Optional[str],
        temperature: float,
        json_response: bool,
        max_tokens: int,
        image: Optional[SourceImage],
    ) -> Dict[str, Any]:
        messages: List[Dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        content: List[Dict[str, Any]] = [{"type": "text", "text": user_prompt}]
        if image is not None:
            content.append({
                "type": "image_url",
                "image_url": {"url": image.data_url(), "detail": "high"},
            })
        messages.append({"role": "user", "content": content})

        body: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_response:
            body["response_format"] = {"type": "json_object"}
        return body

    def parse_response(self, data: Dict[str, Any], status_code: int = 200) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(status_code, f"Unexpected OpenAI response shape: {str(data)[:300]}") from e
        return _require_text(content, status_code, "OpenAI")


class AnthropicProvider(ModelProvider):
    """Messages API: separate ``system`` field, image as a base64 source block.

    Anthropic has no JSON mode, so ``json_response`` is advisory here.
    """

    name = "anthropic"
    default_base_url = "https://api.anthropic.com/v1"
    path = "/messages"
    default_model = "claude-3-5-sonnet-20241022"

    def headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": config.ANTHROPIC_VERSION,
        }

    def build_request(
        self,
        *,
        model: str,
        user_prompt: str,
        system_prompt: Optional[str],
        temperature: float,
        json_response: bool,
        max_tokens: int,
        image: Optional[SourceImage],
    ) -> Dict[str, Any]:
        content: List[Dict[str, Any]] = [{"type": "text", "text": user_prompt}]
        if image is not None:
            content.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": image.media_type,
                    "data": image.to_base64(),
                },
            })

        body: Dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": content}],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if system_prompt:
            body["system"] = system_prompt
        return body

    def parse_response(self, data: Dict[str, Any], status_code: int = 200) -> str:
        try:
            blocks = data["content"]
            text = next(b["text"] for b in blocks if b.get("type", "text") == "text")
        except (KeyError, TypeError, AttributeError, StopIteration) as e:
            raise ProviderError(status_code, f"Unexpected Anthropic response shape: {str(data)[:300]}") from e
        return _require_text(text, status_code, "Anthropic")


PROVIDERS: Dict[str, ModelProvider] = {
    OpenAIProvider.name: OpenAIProvider(),
    AnthropicProvider.name: AnthropicProvider(),
}


def get_provider(name: str) -> ModelProvider:
    """Look up a provider strategy by name (case-insensitive)."""
    provider = PROVIDERS.get((name or "").lower())
    if provider is None:
        raise InvalidArgument(
            f"Unsupported API provider: {name}. Available: {sorted(PROVIDERS)}"
        )
    return provider
