"""Authentication routes and the shared auth dependencies."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from goagent.domain.enums import UserRole
from goagent.domain.models import Identity, Profile
from goagent.domain.schemas import (
    LoginRequest,
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordUpdate,
    ProfileResponse,
    SignUpRequest,
    TokenResponse,
)
from goagent.infra.database import get_db
from goagent.services import identity_service
from goagent.services.profile_service import get_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


async def get_current_identity(
    request: Request, db: AsyncSession = Depends(get_db)
) -> Identity:
    """Dependency: resolve the Bearer token to an identity."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid token",
        )
    payload = identity_service.decode_token(auth_header.removeprefix("Bearer "))
    if not payload or "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    identity = await identity_service.get_identity(db, payload["sub"])
    if not identity:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account not found",
        )
    return identity


async def get_current_user_dep(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    """Dependency: the caller's profile, repaired if the row is missing."""
    return await get_profile(db, identity.id)


def require_role(*roles: UserRole):
    """Factory: dependency that checks the user holds one of ``roles``."""
    allowed = {r.value for r in roles}

    async def checker(user: Profile = Depends(get_current_user_dep)) -> Profile:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return checker


async def require_signed_agreement(user: Profile = Depends(get_current_user_dep)) -> Profile:
    """Dependency: block product use until the Field Operations Agreement is signed."""
    if not user.agreement_signed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sign the Field Operations Agreement to continue.",
        )
    return user


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(data: SignUpRequest, db: AsyncSession = Depends(get_db)):
    identity, profile = await identity_service.sign_up(db, data)
    token = identity_service.create_access_token(identity.id, profile.role)
    return TokenResponse(access_token=token, user=ProfileResponse.model_validate(profile))


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    identity = await identity_service.sign_in(db, data.email, data.password)
    profile = await get_profile(db, identity.id)
    token = identity_service.create_access_token(identity.id, profile.role)
    return TokenResponse(access_token=token, user=ProfileResponse.model_validate(profile))


@router.get("/me", response_model=ProfileResponse)
async def me(user: Profile = Depends(get_current_user_dep)):
    return ProfileResponse.model_validate(user)


@router.post("/password-reset", response_model=MessageResponse)
async def password_reset(data: PasswordResetRequest, db: AsyncSession = Depends(get_db)):
    await identity_service.request_password_reset(db, data.email)
    # Same answer whether or not the account exists
    return MessageResponse(message="If an account exists for this email, a reset link has been sent.")


@router.post("/password-reset/confirm", response_model=MessageResponse)
async def password_reset_confirm(data: PasswordResetConfirm, db: AsyncSession = Depends(get_db)):
    await identity_service.confirm_password_reset(
        db, data.token, data.new_password, data.confirm_password
    )
    return MessageResponse(message="Password updated. You can now sign in.")


@router.post("/password", response_model=MessageResponse)
async def update_password(
    data: PasswordUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    await identity_service.update_user_password(
        db, identity, data.new_password, data.confirm_password
    )
    return MessageResponse(message="Password updated.")
