"""Console middleware - requires a stored backend token for protected routes."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from auth.token_store import TokenStore
from api.base import error_response, ErrorCodes


class AuthMiddleware(BaseHTTPMiddleware):
    """Rejects protected requests until the console has logged in.

    The console holds one backend bearer token in the TokenStore. Without
    it every backend call would fail with 401, so protected routes answer
    401 straight away. Public paths bypass the check.
    """

    PUBLIC_PATHS = [
        "/api/auth/login",
        "/api/auth/register",
        "/api/auth/logout",
        "/api/auth/status",
        "/health",
        "/docs",
        "/openapi.json",
    ]

    def __init__(self, app, token_store: TokenStore):
        super().__init__(app)
        self._token_store = token_store

    def _is_public_path(self, path: str) -> bool:
        return any(path == p or path.startswith(p) for p in self.PUBLIC_PATHS)

    async def dispatch(self, request: Request, call_next):
        if self._is_public_path(request.url.path):
            return await call_next(request)

        if not self._token_store.get_access_token():
            return JSONResponse(
                status_code=401,
                content=error_response(
                    ErrorCodes.NOT_AUTHENTICATED,
                    "Login required",
                ).model_dump(mode="json"),
            )

        return await call_next(request)
