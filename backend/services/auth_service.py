"""Authentication service - verifies JWTs issued by the external auth provider.

Sign-in, sign-up and sessions live with the provider. This service only checks
the bearer token signature and extracts the user identity.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from config import get_settings


class TokenData(BaseModel):
    """Data extracted from JWT token."""
    user_id: str
    email: Optional[str] = None


class AuthService:
    """JWT decoding for provider-issued access tokens."""

    @staticmethod
    def decode_token(token: str) -> Optional[TokenData]:
        """Decode and validate a provider JWT. Returns None when invalid."""
        settings = get_settings()
        options = {"verify_aud": bool(settings.auth_jwt_audience)}
        try:
            payload = jwt.decode(
                token,
                settings.auth_jwt_secret,
                algorithms=[settings.auth_jwt_algorithm],
                audience=settings.auth_jwt_audience or None,
                options=options,
            )
        except JWTError:
            return None

        user_id = payload.get("sub")
        if not user_id:
            return None
        return TokenData(user_id=user_id, email=payload.get("email"))

    @staticmethod
    def create_token(user_id: str, email: Optional[str] = None, expires_in: int = 3600) -> str:
        """Issue a token the way the provider does. Used by scripts and tests."""
        settings = get_settings()
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "email": email,
            "iat": now,
            "exp": now + timedelta(seconds=expires_in),
        }
        if settings.auth_jwt_audience:
            payload["aud"] = settings.auth_jwt_audience
        return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)
