"""Access guard for FastAPI - bearer token validation and identity context."""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from auth.tokens import TokenIssuer
from auth.types import TokenClaims
from auth.exceptions import InvalidTokenError, NotAuthenticatedError, ForbiddenError
from api.base import error_json, ErrorCodes
from utils.user_context import set_current_identity, clear_current_identity


def extract_bearer_token(authorization: str | None) -> str:
    """
    Pull the token out of an Authorization header value.

    Raises:
        NotAuthenticatedError: If the header is missing or not 'Bearer <token>'.
    """
    if not authorization:
        raise NotAuthenticatedError("Authorization token is required")

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise NotAuthenticatedError("Authorization header must use the Bearer scheme")
    return token


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that verifies bearer tokens and sets identity context.

    For protected routes:
    1. Extracts the token from the 'Authorization: Bearer' header
    2. Verifies it via TokenIssuer
    3. Sets identity in request.state and identity context
    4. Clears context after request completes

    Public routes (method + path prefix) bypass authentication entirely.
    """

    PUBLIC_ROUTES = [
        ("POST", "/auth/register"),
        ("POST", "/auth/request-otp"),
        ("POST", "/auth/verify-otp"),
        ("GET", "/materials"),
        ("HEAD", "/materials"),
        ("GET", "/health"),
        ("GET", "/docs"),
        ("GET", "/openapi.json"),
        ("OPTIONS", "/"),
    ]

    def __init__(self, app, token_issuer: TokenIssuer):
        super().__init__(app)
        self._token_issuer = token_issuer

    def _is_public_route(self, method: str, path: str) -> bool:
        """Check if method and path match a public route."""
        for public_method, public_path in self.PUBLIC_ROUTES:
            if method == public_method and (path == public_path or path.startswith(public_path)):
                return True
        return False

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        if self._is_public_route(request.method, request.url.path):
            return await call_next(request)

        try:
            token = extract_bearer_token(request.headers.get("Authorization"))
        except NotAuthenticatedError as e:
            return error_json(
                401,
                ErrorCodes.NOT_AUTHENTICATED,
                str(e),
                headers={"WWW-Authenticate": "Bearer"},
            )

        try:
            identity = self._token_issuer.verify(token)
        except InvalidTokenError:
            return error_json(
                401,
                ErrorCodes.INVALID_TOKEN,
                "Invalid token",
                headers={"WWW-Authenticate": "Bearer"},
            )

        set_current_identity(identity)
        request.state.identity = identity

        try:
            response = await call_next(request)
            return response
        finally:
            # Always clear context
            clear_current_identity()


def require_admin(request: Request) -> TokenClaims:
    """
    FastAPI dependency allowing only admin identities through.

    Raises:
        NotAuthenticatedError: If no identity was attached by AuthMiddleware.
        ForbiddenError: If the identity's role is not admin.
    """
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise NotAuthenticatedError("Authentication required")
    if not identity.is_admin:
        raise ForbiddenError("Access denied: Admin permissions required")
    return identity
