from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import status
from pydantic import BaseModel, ValidationError
import logging

from .config import Settings, settings
from .exceptions import APIError

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

class TokenPayload(BaseModel):
    userId: int
    username: str
    exp: int
    iat: Optional[int] = None

class CurrentUser(BaseModel):
    """Authenticated identity attached to a protected request."""
    user_id: int
    username: str

# Security exceptions
class AuthenticationError(APIError):
    code = "Unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authorization token required"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})

class InvalidTokenError(AuthenticationError):
    code = "InvalidToken"
    default_message = "Invalid token"

class InvalidCredentialsError(AuthenticationError):
    code = "InvalidCredentials"
    default_message = "Invalid credentials"

# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)

# JWT utilities
def create_access_token(
    user_id: int,
    username: str,
    expires_delta: Optional[timedelta] = None,
    config: Settings = settings,
) -> str:
    """Create a signed access token for a user."""
    if config.uses_fallback_secret:
        logger.warning("Signing access token with the fallback JWT secret")
    
    issued_at = datetime.utcnow()
    if expires_delta is None:
        expires_delta = timedelta(hours=config.ACCESS_TOKEN_EXPIRE_HOURS)
    
    to_encode = {
        "userId": user_id,
        "username": username,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    }
    
    return jwt.encode(
        to_encode,
        config.signing_secret,
        algorithm=config.JWT_ALGORITHM
    )

def verify_token(token: str, config: Settings = settings) -> CurrentUser:
    """Verify a token's signature and expiry and return the identity it carries.

    Raises InvalidTokenError for bad signatures, malformed or expired tokens
    and tokens without the expected claims.
    """
    try:
        payload = jwt.decode(
            token,
            config.signing_secret,
            algorithms=[config.JWT_ALGORITHM]
        )
        token_payload = TokenPayload(**payload)
    except (JWTError, ValidationError) as e:
        logger.info(f"Token verification failed: {e}")
        raise InvalidTokenError()
    
    return CurrentUser(
        user_id=token_payload.userId,
        username=token_payload.username
    )
