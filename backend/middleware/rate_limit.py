"""Rate limiting middleware using SlowAPI."""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from services.auth_service import AuthService


def client_key(request: Request) -> str:
    """Rate limit key: the signed-in user when a valid token is sent, else the IP."""
    auth_header = request.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        token_data = AuthService.decode_token(auth_header[7:].strip())
        if token_data is not None:
            return f"user:{token_data.user_id}"
    return get_remote_address(request)


limiter = Limiter(key_func=client_key)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Return a JSON 429 with the limit that was hit."""
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many requests. Please try again later.",
            "retry_after": exc.detail,
        }
    )
