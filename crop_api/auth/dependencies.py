from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from crop_api.auth.tokens import Identity, TokenService
from crop_api.core.errors import TokenError, Unauthorized

security = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.context.tokens


def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    x_auth_token: str | None = Header(default=None, alias="x-auth-token"),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    token = (x_auth_token or "").strip()
    if not token and credentials is not None:
        token = credentials.credentials
    if not token:
        raise Unauthorized("No token, authorization denied", reason="missing")

    try:
        identity = tokens.verify(token)
    except TokenError as exc:
        raise Unauthorized(exc.message, reason=exc.reason) from exc

    request.state.identity = identity
    return identity
