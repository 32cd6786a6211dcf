"""
Security utilities for authentication
Tokens are issued by the external identity provider and signed with the shared secret
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from jose import JWTError, jwt

from .config import settings
from .exceptions import UnauthorizedException

class SecurityUtils:
    """Security utility functions"""

    @staticmethod
    def create_access_token(subject: str, extra: Optional[Dict[str, Any]] = None) -> str:
        """Create JWT access token for an identity provider subject"""
        to_encode: Dict[str, Any] = dict(extra or {})
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        to_encode.update({"sub": subject, "exp": expire, "type": "access"})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """Decode and validate JWT token"""
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            raise UnauthorizedException("Invalid authentication credentials")

        if payload.get("type") != "access" or not payload.get("sub"):
            raise UnauthorizedException("Invalid token type")

        return payload
