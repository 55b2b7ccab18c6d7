"""Profile routes: read and edit the caller's profile and payout details."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from goagent.app.routes.auth import get_current_user_dep
from goagent.domain.models import Profile
from goagent.domain.schemas import ProfileResponse, ProfileUpdate
from goagent.infra.database import get_db
from goagent.services.profile_service import upsert_profile

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def read_profile(user: Profile = Depends(get_current_user_dep)):
    return ProfileResponse.model_validate(user)


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    data: ProfileUpdate,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    profile = await upsert_profile(db, user.id, data)
    return ProfileResponse.model_validate(profile)
