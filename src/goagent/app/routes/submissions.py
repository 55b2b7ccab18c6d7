"""Agent-facing drive submission routes."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from goagent.app.routes.auth import require_signed_agreement
from goagent.domain.enums import SubmissionScope, UserRole
from goagent.domain.models import Profile
from goagent.domain.schemas import (
    CommissionSummaryResponse,
    DriveSubmissionCreate,
    DriveSubmissionResponse,
)
from goagent.infra.database import get_db
from goagent.services import submission_service
from goagent.services.commission import summarize_commissions

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


def _scope_for(user: Profile) -> SubmissionScope:
    return SubmissionScope.ALL if user.role == UserRole.ADMIN.value else SubmissionScope.BY_AGENT


@router.get("", response_model=list[DriveSubmissionResponse])
async def list_my_submissions(
    user: Profile = Depends(require_signed_agreement),
    db: AsyncSession = Depends(get_db),
):
    """Agents see their own drives; admins see every drive."""
    subs = await submission_service.list_submissions(db, _scope_for(user), agent_id=user.id)
    return [DriveSubmissionResponse.model_validate(s) for s in subs]


@router.post("", response_model=DriveSubmissionResponse, status_code=status.HTTP_201_CREATED)
async def report_drive(
    data: DriveSubmissionCreate,
    user: Profile = Depends(require_signed_agreement),
    db: AsyncSession = Depends(get_db),
):
    submission = await submission_service.create_submission(db, user, data)
    return DriveSubmissionResponse.model_validate(submission)


@router.get("/summary", response_model=CommissionSummaryResponse)
async def commission_summary(
    user: Profile = Depends(require_signed_agreement),
    db: AsyncSession = Depends(get_db),
):
    subs = await submission_service.list_submissions(db, _scope_for(user), agent_id=user.id)
    summary = summarize_commissions(subs)
    return CommissionSummaryResponse(**asdict(summary))


@router.get("/{submission_id}", response_model=DriveSubmissionResponse)
async def get_submission(
    submission_id: str,
    user: Profile = Depends(require_signed_agreement),
    db: AsyncSession = Depends(get_db),
):
    submission = await submission_service.get_submission(db, submission_id)
    if user.role != UserRole.ADMIN.value and submission.agent_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
    return DriveSubmissionResponse.model_validate(submission)
