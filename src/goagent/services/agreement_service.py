"""Agreement Gate: one-time acceptance of the Field Operations Agreement.

The recorded IP comes from the client (or the request peer when the client
sends none). It is kept for record-keeping only and proves nothing about who
signed.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from goagent.domain.errors import SyncFailure
from goagent.domain.models import Profile
from goagent.services.commission import COMMISSION_RATE_NGN
from goagent.services.profile_service import get_profile

logger = logging.getLogger(__name__)

AGREEMENT_VERSION = "1.0"
AGREEMENT_TITLE = "Field Operations Agreement"

AGREEMENT_CLAUSES = [
    "1. ENGAGEMENT: You are engaged to report property onboarding drives on behalf of "
    "EstateGO. Nothing in this agreement creates an employment relationship.",
    f"2. COMMISSION: Approved drives earn NGN {COMMISSION_RATE_NGN} per unit reported. "
    "Commission is payable only after the submission is approved and marked paid.",
    "3. PROOF OF VISIT: Every drive must carry GPS coordinates captured at the site. "
    "Fabricated or duplicate reports are rejected and may end the engagement.",
    "4. DATA: Landlord and manager contact details collected in the field are used only "
    "for EstateGO onboarding.",
    "5. DIGITAL SIGNATURE: Acceptance of these terms is logged with your account ID, "
    "a timestamp and the IP address reported by your device.",
]


async def sign_agreement(db: AsyncSession, user_id: str, ip: str | None) -> Profile:
    """Record agreement acceptance on the user's profile.

    Signing twice keeps the first timestamp and IP.

    Raises:
        SyncFailure: the profile could not be loaded or saved.
    """
    profile = await get_profile(db, user_id)
    if profile.agreement_signed:
        return profile

    profile.agreement_signed = True
    profile.agreement_timestamp = datetime.now(timezone.utc)
    profile.agreement_ip = (ip or "unknown")[:64]
    db.add(profile)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Agreement signature write failed for %s: %s", user_id, exc)
        raise SyncFailure("Error signing agreement. Please try again.") from exc

    await db.refresh(profile)
    logger.info("Agreement v%s signed by %s", AGREEMENT_VERSION, user_id)
    return profile
