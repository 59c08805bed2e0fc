from fastapi import Depends, Request
import logging
import redis

from ..core.config import settings
from ..core.database import get_redis
from ..core.exceptions import InternalError, RateLimitedError, ServiceUnavailableError
from ..core.security import verify_token, AuthenticationError, CurrentUser

logger = logging.getLogger(__name__)

async def get_current_user(request: Request) -> CurrentUser:
    """Extract and verify the bearer token from the Authorization header.

    The header must start with exactly "Bearer "; otherwise the request
    fails with 401 Unauthenticated. Bad tokens fail with 401 InvalidToken.
    Anything else that goes wrong while verifying is reported as a 500 so
    it is not mistaken for a bad credential.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise AuthenticationError()
    
    token = auth_header.split(" ")[1]
    
    try:
        return verify_token(token)
    except AuthenticationError:
        raise
    except Exception as e:
        logger.error(f"Auth middleware error: {e}")
        raise InternalError("Server error", error=str(e))

def client_address(request: Request) -> str:
    """Address the rate limiter counts requests against."""
    if settings.TRUST_FORWARDED_FOR:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Fixed-window rate limiting for the signup and login endpoints."""
    client_ip = client_address(request)
    key = f"rate_limit:{request.url.path}:{client_ip}"
    
    try:
        # INCR is atomic; the first request of a window starts its expiry
        current_requests = redis_client.incr(key)
        if current_requests == 1:
            redis_client.expire(key, settings.RATE_LIMIT_WINDOW_SECONDS)
    except redis.RedisError as e:
        logger.error(f"Rate limiter unavailable: {e}")
        raise ServiceUnavailableError()
    
    if current_requests > settings.RATE_LIMIT_REQUESTS:
        logger.info(f"Rate limit exceeded for {client_ip} on {request.url.path}")
        raise RateLimitedError()
