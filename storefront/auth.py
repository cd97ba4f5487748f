"""
Request Identity

Authentication happens upstream; the gateway forwards the verified user
id (and email, when known) in headers. Admin rights come from the
user_roles table.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db
from storefront.models import UserRole, UserRoleName

logger = logging.getLogger(__name__)


@dataclass
class CurrentUser:
    id: str
    email: Optional[str] = None
    is_admin: bool = False


async def is_admin(user_id: str, db: AsyncSession) -> bool:
    result = await db.execute(
        select(UserRole.id).where(
            UserRole.user_id == user_id,
            UserRole.role == UserRoleName.ADMIN,
        )
    )
    return result.first() is not None


async def grant_admin_roles(user_ids: list[str], db: AsyncSession) -> int:
    """Ensure every listed user holds the admin role. Returns rows added."""
    added = 0
    for user_id in user_ids:
        if await is_admin(user_id, db):
            continue
        db.add(UserRole(user_id=user_id, role=UserRoleName.ADMIN))
        added += 1
    if added:
        await db.commit()
        logger.info(f"Granted admin role to {added} user(s)")
    return added


async def get_optional_user(
    x_user_id: Optional[str] = Header(None, alias="x-user-id"),
    x_user_email: Optional[str] = Header(None, alias="x-user-email"),
    db: AsyncSession = Depends(get_db),
) -> Optional[CurrentUser]:
    if not x_user_id:
        return None
    return CurrentUser(
        id=x_user_id,
        email=x_user_email,
        is_admin=await is_admin(x_user_id, db),
    )


async def get_current_user(
    user: Optional[CurrentUser] = Depends(get_optional_user),
) -> CurrentUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Please sign in to continue")
    return user


async def require_admin(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    if not user.is_admin:
        logger.warning(f"User {user.id} denied admin access")
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
