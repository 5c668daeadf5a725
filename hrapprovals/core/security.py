"""
Token utilities for the authentication boundary

Tokens are issued by the external auth service; this service only verifies
them. create_access_token mirrors the issuer contract for tooling and tests.
"""
import logging
from datetime import timedelta
from typing import Dict, Optional
from jose import JWTError, jwt
from hrapprovals.core.config import settings
from hrapprovals.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)


def create_access_token(data: Dict, expires_minutes: Optional[int] = None) -> str:
    """Create a JWT access token"""
    to_encode = data.copy()

    if expires_minutes is None:
        expires_minutes = settings.JWT_EXPIRE_MINUTES

    expire = now_utc() + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire})

    encoded_jwt = jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )
    return encoded_jwt


def decode_token(token: str) -> Dict:
    """Decode and verify a JWT token"""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
        return payload
    except JWTError as e:
        logger.debug("Token rejected: %s", e)
        raise ValueError("Invalid token")
