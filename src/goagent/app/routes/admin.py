"""Admin review console routes: lead review, verification, payouts, agent directory.

Every route requires an ADMIN who has signed the agreement. Status changes
from two admins at once are not coordinated; the last write wins.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from goagent.agents.insight_agents import LeadAnalysisAgent
from goagent.agents.verification_agent import VerificationAgent
from goagent.app.routes.auth import require_role, require_signed_agreement
from goagent.domain.enums import SubmissionScope, SubmissionStatus, UserRole, Verdict
from goagent.domain.models import Profile
from goagent.domain.schemas import (
    DriveSubmissionResponse,
    LeadAnalysisResponse,
    ProfileResponse,
    StatusUpdateRequest,
    VerificationResult,
    VerifyRequest,
)
from goagent.infra.database import get_db
from goagent.services import submission_service
from goagent.services.profile_service import list_profiles

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_signed_agreement)],
)

require_admin = require_role(UserRole.ADMIN)

MANUAL_REVIEW_FINDINGS = "Reviewed manually by an administrator."


# ---------------------------------------------------------------------------
# Injectable agents
# ---------------------------------------------------------------------------


def get_verification_agent() -> VerificationAgent:
    return VerificationAgent()


def get_lead_analysis_agent() -> LeadAnalysisAgent:
    return LeadAnalysisAgent()


def _with_admin_note(
    verification: VerificationResult,
    admin: Profile,
    manual_note: str | None,
) -> VerificationResult:
    updates = {"verified_by": verification.verified_by or admin.full_name}
    if manual_note:
        updates["manual_note"] = manual_note
    return verification.model_copy(update=updates)


# ---------------------------------------------------------------------------
# Lead review
# ---------------------------------------------------------------------------


@router.get("/submissions", response_model=list[DriveSubmissionResponse])
async def list_all_submissions(
    status: SubmissionStatus | None = Query(None),
    search: str | None = Query(None, description="Property or agent name"),
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    subs = await submission_service.list_submissions(
        db, SubmissionScope.ALL, status=status, search=search
    )
    return [DriveSubmissionResponse.model_validate(s) for s in subs]


@router.get("/submissions/export")
async def export_submissions(
    status: SubmissionStatus | None = Query(None),
    search: str | None = Query(None),
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Download the filtered lead list as CSV."""
    subs = await submission_service.list_submissions(
        db, SubmissionScope.ALL, status=status, search=search
    )
    filename = f"goagent_leads_{datetime.now(timezone.utc):%Y%m%d}.csv"
    return StreamingResponse(
        iter([submission_service.export_submissions_csv(subs)]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/submissions/{submission_id}/status", response_model=DriveSubmissionResponse)
async def update_status(
    submission_id: str,
    data: StatusUpdateRequest,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    verifier: VerificationAgent = Depends(get_verification_agent),
):
    """Approve, reject or mark paid.

    With ``run_verification`` the oracle is consulted first. Its failures come
    back as an INCONCLUSIVE verdict, so the status update still goes through.
    """
    verification = data.verification
    if data.run_verification:
        submission = await submission_service.get_submission(db, submission_id)
        # Reject an illegal transition before spending an oracle call on it
        submission_service.lifecycle.validate_transition(
            SubmissionStatus(submission.status), data.status
        )
        verification = await verifier.verify(submission)
    elif verification is None and data.manual_note:
        submission = await submission_service.get_submission(db, submission_id)
        if submission.verification:
            verification = VerificationResult.model_validate(submission.verification)
        else:
            verification = VerificationResult(
                score=0, verdict=Verdict.INCONCLUSIVE, findings=MANUAL_REVIEW_FINDINGS
            )

    if verification is not None:
        verification = _with_admin_note(verification, admin, data.manual_note)

    submission = await submission_service.update_submission(
        db, submission_id, data.status, admin, verification=verification
    )
    return DriveSubmissionResponse.model_validate(submission)


@router.post("/submissions/{submission_id}/verify", response_model=DriveSubmissionResponse)
async def verify_submission(
    submission_id: str,
    data: VerifyRequest | None = None,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    verifier: VerificationAgent = Depends(get_verification_agent),
):
    """Run the field visit check and attach the verdict, replacing any earlier one."""
    submission = await submission_service.get_submission(db, submission_id)
    verification = await verifier.verify(submission)
    verification = _with_admin_note(verification, admin, data.manual_note if data else None)
    submission = await submission_service.attach_verification(db, submission_id, verification)
    return DriveSubmissionResponse.model_validate(submission)


@router.post("/submissions/{submission_id}/analysis", response_model=LeadAnalysisResponse)
async def analyze_submission(
    submission_id: str,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    analyst: LeadAnalysisAgent = Depends(get_lead_analysis_agent),
):
    submission = await submission_service.get_submission(db, submission_id)
    analysis = await analyst.analyze(submission)
    return LeadAnalysisResponse(submission_id=submission.id, analysis=analysis)


# ---------------------------------------------------------------------------
# Agent directory
# ---------------------------------------------------------------------------


@router.get("/agents", response_model=list[ProfileResponse])
async def list_agents(
    search: str | None = Query(None, description="Name or email"),
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    agents = await list_profiles(db, role=UserRole.AGENT, search=search)
    return [ProfileResponse.model_validate(a) for a in agents]
