"""Agreement routes: terms text, signing and status."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from goagent.app.routes.auth import get_current_user_dep
from goagent.domain.models import Profile
from goagent.domain.schemas import (
    AgreementSignRequest,
    AgreementStatusResponse,
    AgreementTermsResponse,
)
from goagent.infra.database import get_db
from goagent.services.agreement_service import (
    AGREEMENT_CLAUSES,
    AGREEMENT_TITLE,
    AGREEMENT_VERSION,
    sign_agreement,
)

router = APIRouter(prefix="/api/agreements", tags=["agreements"])


def _reported_ip(request: Request, body: AgreementSignRequest | None) -> str | None:
    """IP to record with the signature: client-reported first, then proxy/peer."""
    if body and body.ip:
        return body.ip.strip()
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.get("/terms", response_model=AgreementTermsResponse)
async def get_terms():
    return AgreementTermsResponse(
        version=AGREEMENT_VERSION,
        title=AGREEMENT_TITLE,
        clauses=AGREEMENT_CLAUSES,
    )


@router.post("/sign", response_model=AgreementStatusResponse)
async def sign(
    request: Request,
    data: AgreementSignRequest | None = None,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    """Record acceptance of the Field Operations Agreement.

    The stored IP is whatever the client or proxy reported and is kept for
    reference only.
    """
    profile = await sign_agreement(db, user.id, _reported_ip(request, data))
    return AgreementStatusResponse(
        signed=profile.agreement_signed,
        signed_at=profile.agreement_timestamp,
        ip=profile.agreement_ip,
    )


@router.get("/status", response_model=AgreementStatusResponse)
async def agreement_status(user: Profile = Depends(get_current_user_dep)):
    return AgreementStatusResponse(
        signed=user.agreement_signed,
        signed_at=user.agreement_timestamp,
        ip=user.agreement_ip,
    )
