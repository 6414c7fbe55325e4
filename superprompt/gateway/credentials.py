"""Provider credential lookup.

Two strings per provider: the API key and an optional endpoint (base URL)
override. Values set at runtime win over the environment
(``<PROVIDER>_API_KEY`` / ``<PROVIDER>_BASE_URL``).
"""

import logging
import os
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class CredentialStore:
    """In-memory key-value store with environment fallback.

    A missing key is a valid state; it only becomes an error when the
    gateway is asked to make a call.
    """

    def __init__(self, env_fallback: bool = True):
        self._tokens: Dict[str, str] = {}
        self._endpoints: Dict[str, str] = {}
        self._env_fallback = env_fallback

    def set(self, provider: str, api_key: Optional[str] = None, endpoint: Optional[str] = None) -> None:
        """Store or clear (empty string) values for ``provider``; ``None`` leaves them as-is."""
        provider = provider.lower()
        if api_key is not None:
            self._tokens[provider] = api_key
        if endpoint is not None:
            self._endpoints[provider] = endpoint
        logger.info("Credentials updated for %s", provider)

    def get_token(self, provider: str) -> str:
        provider = provider.lower()
        if provider in self._tokens:
            return self._tokens[provider]
        if self._env_fallback:
            return os.getenv(f"{provider.upper()}_API_KEY", "")
        return ""

    def get_endpoint(self, provider: str) -> str:
        provider = provider.lower()
        if provider in self._endpoints:
            return self._endpoints[provider]
        if self._env_fallback:
            return os.getenv(f"{provider.upper()}_BASE_URL", "")
        return ""

    def has_token(self, provider: str) -> bool:
        return bool(self.get_token(provider))
