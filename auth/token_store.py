"""Persistent bearer token storage.

Tokens issued by the billing backend are kept in Valkey so they survive a
console restart. The backend client reads the access token on every
request; there is no in-process copy to go stale.
"""

import logging

from clients.valkey_client import ValkeyClient

logger = logging.getLogger(__name__)


class TokenStore:
    """Access/refresh token persistence in Valkey."""

    KEY_PREFIX = "billing:auth:"

    def __init__(self, valkey: ValkeyClient, namespace: str = "default"):
        self._valkey = valkey
        self._namespace = namespace

    def _key(self, name: str) -> str:
        """Generate Valkey key for a token slot."""
        return f"{self.KEY_PREFIX}{self._namespace}:{name}"

    def set_tokens(self, access_token: str, refresh_token: str | None = None) -> None:
        """Store tokens. An empty access token is ignored, a missing refresh token is kept."""
        if access_token:
            self._valkey.set(self._key("access_token"), access_token)
        if refresh_token:
            self._valkey.set(self._key("refresh_token"), refresh_token)
        logger.info(f"Stored backend tokens for '{self._namespace}'")

    def get_access_token(self) -> str | None:
        return self._valkey.get(self._key("access_token"))

    def get_refresh_token(self) -> str | None:
        return self._valkey.get(self._key("refresh_token"))

    def clear(self) -> None:
        """Forget both tokens (logout)."""
        self._valkey.delete(self._key("access_token"))
        self._valkey.delete(self._key("refresh_token"))
        logger.info(f"Cleared backend tokens for '{self._namespace}'")
