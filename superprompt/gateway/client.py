"""Model gateway: one structured multimodal request in, raw reply text out.

No pipeline logic lives here: the gateway checks the credential, builds the
provider envelope, sends it over httpx and returns the reply text. It never
retries; connection-level retries are configured on the httpx transport.

Usage:
    async with ModelGateway.from_credentials(store, provider="openai") as gateway:
        text = await gateway.invoke(
            user_prompt="What activity is shown in this image?",
            system_prompt="Describe this webpage activity in a few sentences.",
            image=SourceImage.from_path("screen.png"),
        )
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .. import config, settings
from ..errors import AuthenticationError, ProviderError
from ..imaging import SourceImage
from .credentials import CredentialStore
from .providers import ModelProvider, get_provider

logger = logging.getLogger(__name__)


class ModelGateway:
    """Async client for one configured model provider.

    Args:
        provider: Provider strategy (see ``providers.get_provider``)
        api_key: Secret token; empty is allowed until ``invoke`` is called
        endpoint: Base URL override; empty uses the provider default
        model: Model name; empty uses the provider default
        timeout: Per-call deadline in seconds
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
    """

    def __init__(
        self,
        provider: ModelProvider,
        api_key: str = "",
        endpoint: str = "",
        model: Optional[str] = None,
        timeout: float = settings.GATEWAY_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._provider = provider
        self._api_key = api_key
        self._url = provider.endpoint(endpoint)
        self.model = model or provider.default_model
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_credentials(
        cls,
        store: CredentialStore,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        **kwargs: Any,
    ) -> "ModelGateway":
        """Build a gateway from the credential store (key + endpoint by provider name)."""
        strategy = get_provider(provider or config.MODEL_PROVIDER)
        api_key = store.get_token(strategy.name)
        if not api_key:
            logger.warning("API key not found for %s", strategy.name)
        return cls(
            strategy,
            api_key=api_key,
            endpoint=store.get_endpoint(strategy.name),
            model=model or config.MODEL_NAME or None,
            **kwargs,
        )

    @property
    def provider_name(self) -> str:
        return self._provider.name

    @property
    def has_credentials(self) -> bool:
        return bool(self._api_key)

    def check_credentials(self) -> None:
        if not self._api_key:
            raise AuthenticationError(
                f"API key not set for {self._provider.name}. "
                f"Set {self._provider.name.upper()}_API_KEY or configure it in settings."
            )

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            transport = self._transport or httpx.AsyncHTTPTransport(
                retries=settings.GATEWAY_CONNECT_RETRIES,
                limits=httpx.Limits(
                    max_connections=settings.GATEWAY_MAX_CONNECTIONS,
                    max_keepalive_connections=settings.GATEWAY_MAX_KEEPALIVE,
                ),
            )
            self._client = httpx.AsyncClient(transport=transport, timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ModelGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def invoke(
        self,
        *,
        user_prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.1,
        json_response: bool = False,
        max_tokens: int = 2048,
        image: Optional[SourceImage] = None,
    ) -> str:
        """Send one request and return the stripped reply text.

        Raises:
            AuthenticationError: No API key configured (no request is sent)
            ProviderError: Transport failure, timeout, non-2xx status or an
                unexpected response envelope
        """
        self.check_credentials()

        body = self._provider.build_request(
            model=self.model,
            user_prompt=user_prompt,
            system_prompt=system_prompt,
            temperature=temperature,
            json_response=json_response,
            max_tokens=max_tokens,
            image=image,
        )
        logger.info(
            "Calling %s API (%s): %s...",
            self._provider.name, self.model, user_prompt[:30].replace("\n", " "),
        )

        client = await self._get_client()
        try:
            resp = await client.post(
                self._url, json=body, headers=self._provider.headers(self._api_key),
            )
        except httpx.TimeoutException as e:
            raise ProviderError(None, f"Request timed out after {self._timeout}s: {self._url}") from e
        except httpx.HTTPError as e:
            raise ProviderError(None, f"Transport error calling {self._url}: {e}") from e

        if not resp.is_success:
            logger.error(
                "%s API error %d: %s", self._provider.name, resp.status_code, resp.text[:200],
            )
            raise ProviderError(resp.status_code, resp.text)

        try:
            data: Dict[str, Any] = resp.json()
        except ValueError as e:
            raise ProviderError(resp.status_code, f"Non-JSON response body: {resp.text[:300]}") from e

        return self._provider.parse_response(data, resp.status_code).strip()
