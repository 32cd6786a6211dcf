"""
Authentication dependencies
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging

from liveshop.core.database import get_db
from liveshop.core.exceptions import ForbiddenException, NotFoundException, UnauthorizedException
from liveshop.core.security import SecurityUtils
from liveshop.models import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

async def _user_for_subject(db: AsyncSession, subject: str) -> Optional[User]:
    result = await db.execute(
        select(User).where(User.external_id == subject, User.is_active == True)  # noqa: E712
    )
    return result.scalar_one_or_none()

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get current authenticated user (required)
    Raises 401 without a valid token and 404 when the subject has no local profile
    """
    if credentials is None:
        raise UnauthorizedException("Not authenticated")

    payload = SecurityUtils.decode_token(credentials.credentials)
    user = await _user_for_subject(db, payload["sub"])

    if user is None:
        logger.warning("Authenticated subject %s has no local user", payload["sub"])
        raise NotFoundException("User not found", error_code="USER_NOT_FOUND")

    return user

async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Require administrative access"""
    if not current_user.is_admin:
        raise ForbiddenException("Admin access required")
    return current_user
