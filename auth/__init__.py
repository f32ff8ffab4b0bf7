"""Authentication: backend token acquisition and persistence."""

from auth.exceptions import AuthError, InvalidCredentialsError, MissingTokenError
from auth.types import LoginRequest, RegisterRequest, AuthTokens
from auth.token_store import TokenStore
