"""
Profile of the signed-in user.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth import CurrentUser, get_current_user
from storefront.database import get_db
from storefront.models import Profile
from storefront.schemas import ProfileResponse, ProfileUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/profile", tags=["Profile"])


async def get_or_create_profile(user: CurrentUser, db: AsyncSession) -> Profile:
    profile = await db.get(Profile, user.id)
    if profile is None:
        profile = Profile(id=user.id, email=user.email)
        db.add(profile)
        await db.commit()
        await db.refresh(profile)
        logger.info(f"Created profile for user {user.id}")
    return profile


@router.get("", response_model=ProfileResponse)
async def read_profile(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    return await get_or_create_profile(user, db)


@router.put("", response_model=ProfileResponse)
async def update_profile(
    payload: ProfileUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    """Only fields present in the request are changed."""
    profile = await get_or_create_profile(user, db)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(profile, key, value)
    if user.email and not profile.email:
        profile.email = user.email

    await db.commit()
    await db.refresh(profile)
    return profile
