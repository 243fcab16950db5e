"""HTTP routes for authentication."""

from fastapi import APIRouter, Request

from auth.service import AuthService
from auth.types import EmailRequest, VerifyOTPRequest
from api.base import success_response


def create_auth_router(auth_service: AuthService) -> APIRouter:
    """Create auth router with injected service.

    Domain errors propagate to the handlers in api.errors.
    """
    router = APIRouter(tags=["auth"])

    @router.post("/register")
    def register(body: EmailRequest):
        """Create an account for an institutional email and send a login code."""
        account = auth_service.register(body.email)
        return success_response({
            "message": "OTP sent successfully",
            "email": account.email,
        }).model_dump(mode="json")

    @router.post("/request-otp")
    def request_otp(body: EmailRequest):
        """Send a fresh login code to an existing account."""
        account = auth_service.request_otp(body.email)
        return success_response({
            "message": "OTP sent successfully",
            "email": account.email,
        }).model_dump(mode="json")

    @router.post("/verify-otp")
    def verify_otp(body: VerifyOTPRequest):
        """Exchange a valid login code for a bearer token."""
        result = auth_service.verify_otp(body.email, body.otp)
        return success_response({
            "message": "Login successful",
            "token": result.token,
            "user": {
                "id": str(result.account.id),
                "email": result.account.email,
                "role": result.account.role.value,
            },
        }).model_dump(mode="json")

    @router.get("/me")
    async def get_current_account(request: Request):
        """Identity attached by AuthMiddleware."""
        identity = request.state.identity
        return success_response({
            "id": str(identity.account_id),
            "email": identity.email,
            "role": identity.role.value,
        }).model_dump(mode="json")

    return router
