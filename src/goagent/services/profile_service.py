"""Profile service: self-healing profile reads, edits and the agent directory.

Identities created during signup races can exist without a profile row. A
read repairs that from the identity's signup metadata, and if the repair
cannot be saved the caller still gets a usable in-memory profile so sign-in
does not fail.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from goagent.domain.enums import UserRole
from goagent.domain.errors import SyncFailure
from goagent.domain.models import Identity, Profile
from goagent.domain.schemas import ProfileUpdate
from goagent.infra.database import contains_pattern

logger = logging.getLogger(__name__)


def _profile_from_identity(identity: Identity) -> Profile:
    """Build an unsaved Profile from identity signup metadata."""
    meta = identity.user_metadata or {}
    role = meta.get("role")
    if role not in {r.value for r in UserRole}:
        role = UserRole.AGENT.value
    return Profile(
        id=identity.id,
        full_name=(meta.get("full_name") or "").strip() or "User",
        email=identity.email or "",
        phone=meta.get("phone") or "",
        state=meta.get("state") or "",
        role=role,
        bank_details=None,
        agreement_signed=False,
    )


async def get_profile(db: AsyncSession, user_id: str) -> Profile:
    """Return the profile for ``user_id``, repairing it if the row is missing.

    Raises:
        SyncFailure: the store could not be read, or no identity exists.
    """
    try:
        result = await db.execute(select(Profile).where(Profile.id == user_id))
        profile = result.scalar_one_or_none()
        if profile:
            return profile

        result = await db.execute(select(Identity).where(Identity.id == user_id))
        identity = result.scalar_one_or_none()
    except SQLAlchemyError as exc:
        logger.error("Profile read failed for %s: %s", user_id, exc)
        raise SyncFailure("Profile sync failure. Check network connectivity.") from exc

    if not identity:
        raise SyncFailure("No account exists for this session.")

    logger.warning("Profile missing for identity %s, repairing from signup metadata", user_id)
    repaired = _profile_from_identity(identity)
    # Built before the commit: a rollback expires `identity`
    fallback = _profile_from_identity(identity)
    db.add(repaired)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Profile repair failed for %s, using in-memory profile: %s", user_id, exc)
        return fallback

    await db.refresh(repaired)
    return repaired


async def upsert_profile(db: AsyncSession, user_id: str, updates: ProfileUpdate) -> Profile:
    """Apply profile edits. Role and agreement fields never change here."""
    profile = await get_profile(db, user_id)

    if updates.full_name is not None and updates.full_name.strip():
        profile.full_name = updates.full_name.strip()
    if updates.phone is not None:
        profile.phone = updates.phone
    if updates.state is not None:
        profile.state = updates.state
    if updates.bank_details is not None:
        profile.bank_details = updates.bank_details.model_dump()

    db.add(profile)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Profile update failed for %s: %s", user_id, exc)
        raise SyncFailure("Could not save your profile. Please try again.") from exc

    await db.refresh(profile)
    return profile


async def list_profiles(
    db: AsyncSession,
    role: UserRole | None = None,
    search: str | None = None,
) -> list[Profile]:
    """List profiles for the admin agent directory, newest first."""
    stmt = select(Profile).order_by(Profile.created_at.desc())
    if role is not None:
        stmt = stmt.where(Profile.role == role.value)
    if search:
        pattern = contains_pattern(search.strip())
        stmt = stmt.where(
            or_(
                Profile.full_name.ilike(pattern, escape="\\"),
                Profile.email.ilike(pattern, escape="\\"),
            )
        )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        logger.error("Profile listing failed: %s", exc)
        raise SyncFailure() from exc
    return list(result.scalars().all())
