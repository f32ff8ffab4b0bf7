"""HTTP routes for console authentication."""

from fastapi import APIRouter

from api.base import success_response
from auth.service import AuthService
from auth.types import LoginRequest, RegisterRequest


def create_auth_router(auth_service: AuthService) -> APIRouter:
    """Create auth router with injected service."""
    router = APIRouter(tags=["auth"])

    @router.post("/login")
    async def login(body: LoginRequest):
        """Log in to the billing backend and store the issued tokens."""
        auth_service.login(body)
        return success_response({"authenticated": True, "email": body.email})

    @router.post("/register")
    async def register(body: RegisterRequest):
        """Register an account. Logged in only if the backend issued tokens."""
        tokens = auth_service.register(body)
        return success_response({
            "registered": True,
            "authenticated": tokens is not None,
        })

    @router.post("/logout")
    async def logout():
        auth_service.logout()
        return success_response({"message": "Logged out successfully"})

    @router.get("/status")
    async def status():
        return success_response({"authenticated": auth_service.is_authenticated})

    return router
