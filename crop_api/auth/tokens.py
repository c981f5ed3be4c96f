from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from crop_api.core.errors import TokenExpired, TokenInvalid


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: str


class TokenService:
    """Issues and verifies HS256 (by default) access tokens.

    Tokens carry `sub` (the user id, as a string), `role`, `iat` and `exp`.
    Nothing is stored server side; a token is valid as long as its signature
    checks out and `exp` has not passed.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", default_ttl_minutes: int = 60 * 24 * 7):
        if not secret_key:
            raise ValueError("jwt_secret_blank")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.default_ttl = timedelta(minutes=default_ttl_minutes)

    def issue(self, user_id: int, role: str, ttl: timedelta | None = None) -> str:
        now = datetime.now(timezone.utc)
        expire = now + (ttl if ttl is not None else self.default_ttl)
        payload = {"sub": str(user_id), "role": role, "iat": now, "exp": expire}
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> Identity:
        if not token:
            raise TokenInvalid("Token is not valid")
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenInvalid("Token is not valid") from exc

        role = payload.get("role")
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise TokenInvalid("Token is not valid") from exc
        if not isinstance(role, str) or not role:
            raise TokenInvalid("Token is not valid")
        return Identity(user_id=user_id, role=role)
