"""Authentication service - obtains bearer tokens from the billing backend."""

import logging

from auth.exceptions import InvalidCredentialsError, MissingTokenError
from auth.token_store import TokenStore
from auth.types import AuthTokens, LoginRequest, RegisterRequest
from clients.billing_client import BackendResponseError, BillingAPIClient

logger = logging.getLogger(__name__)


def _extract_tokens(data) -> AuthTokens | None:
    """Tokens from {"tokens": {"accessToken", "refreshToken"}}, None if absent."""
    if not isinstance(data, dict):
        return None
    tokens = data.get("tokens")
    if not isinstance(tokens, dict) or not tokens.get("accessToken"):
        return None
    return AuthTokens.model_validate(tokens)


class AuthService:
    """Login, registration and logout against the billing backend.

    Only token storage and injection are handled here; the backend owns
    accounts, passwords and token issuance.
    """

    def __init__(self, client: BillingAPIClient, token_store: TokenStore):
        self._client = client
        self._token_store = token_store

    def login(self, request: LoginRequest) -> AuthTokens:
        """
        Log in and persist the issued tokens.

        Raises:
            InvalidCredentialsError: Backend rejected the credentials
            MissingTokenError: Backend returned no access token
            BackendUnavailableError: Backend unreachable
        """
        try:
            data = self._client.post("/auth/login", request.to_wire())
        except BackendResponseError as e:
            if e.status_code < 500:
                raise InvalidCredentialsError(e.message or "Invalid email or password")
            raise

        tokens = _extract_tokens(data)
        if tokens is None:
            raise MissingTokenError("No access token returned by server")

        self._token_store.set_tokens(tokens.access_token, tokens.refresh_token)
        logger.info(f"Logged in as {request.email}")
        return tokens

    def register(self, request: RegisterRequest) -> AuthTokens | None:
        """
        Register a new account.

        Tokens are stored only if the backend issues them on registration;
        otherwise the caller proceeds to login.

        Raises:
            InvalidCredentialsError: Backend rejected the registration
        """
        try:
            data = self._client.post("/auth/register", request.to_wire())
        except BackendResponseError as e:
            if e.status_code < 500:
                raise InvalidCredentialsError(e.message or "Registration failed")
            raise

        tokens = _extract_tokens(data)
        if tokens is not None:
            self._token_store.set_tokens(tokens.access_token, tokens.refresh_token)
        logger.info(f"Registered {request.email}")
        return tokens

    def logout(self) -> None:
        self._token_store.clear()

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token_store.get_access_token())
