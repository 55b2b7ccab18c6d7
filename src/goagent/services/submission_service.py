"""Drive submission store: listing, creation, status updates and export."""

import csv
import io
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from goagent.domain.enums import SubmissionScope, SubmissionStatus
from goagent.domain.errors import AppError, SyncFailure
from goagent.domain.models import DriveSubmission, Profile
from goagent.domain.schemas import DriveSubmissionCreate, VerificationResult
from goagent.infra.database import contains_pattern
from goagent.services.commission import compute_commission
from goagent.services.submission_lifecycle import SubmissionLifecycle

logger = logging.getLogger(__name__)

lifecycle = SubmissionLifecycle()

CSV_COLUMNS = [
    "id",
    "submission_date",
    "agent_name",
    "property_name",
    "property_address",
    "state_location",
    "property_type",
    "no_of_units",
    "status",
    "estimated_commission",
    "verdict",
    "score",
]


class SubmissionNotFound(Exception):
    """Raised when no submission exists for the given id."""

    def __init__(self, submission_id: str):
        self.submission_id = submission_id
        super().__init__(f"Submission {submission_id} not found")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_submission(payload: DriveSubmissionCreate) -> None:
    """Reject drive reports that must never reach the store.

    Raises:
        AppError: VALIDATION with the offending field.
    """
    if payload.coordinates is None:
        raise AppError.validation(
            "Please capture your current GPS location to confirm your physical "
            "presence at the site.",
            field="coordinates",
        )
    for field_name in ("property_name", "property_address", "state_location"):
        if not (getattr(payload, field_name) or "").strip():
            label = field_name.replace("_", " ").capitalize()
            raise AppError.validation(f"{label} is required.", field=field_name)
    if payload.no_of_units < 0:
        raise AppError.validation("Number of units cannot be negative.", field="no_of_units")
    if not 0 <= payload.occupancy_rate <= 100:
        raise AppError.validation(
            "Occupancy rate must be between 0 and 100.", field="occupancy_rate"
        )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_submissions(
    db: AsyncSession,
    scope: SubmissionScope,
    agent_id: str | None = None,
    status: SubmissionStatus | None = None,
    search: str | None = None,
) -> list[DriveSubmission]:
    """List submissions newest first.

    ``scope=BY_AGENT`` requires ``agent_id``. ``search`` matches property name
    or agent name, case-insensitively.
    """
    stmt = select(DriveSubmission).order_by(DriveSubmission.submission_date.desc())
    if scope == SubmissionScope.BY_AGENT:
        if not agent_id:
            raise ValueError("agent_id is required for by_agent scope")
        stmt = stmt.where(DriveSubmission.agent_id == agent_id)
    if status is not None:
        stmt = stmt.where(DriveSubmission.status == status.value)
    if search and search.strip():
        pattern = contains_pattern(search.strip())
        stmt = stmt.where(
            or_(
                DriveSubmission.property_name.ilike(pattern, escape="\\"),
                DriveSubmission.agent_name.ilike(pattern, escape="\\"),
            )
        )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        logger.error("Submission listing failed: %s", exc)
        raise SyncFailure() from exc
    return list(result.scalars().all())


async def get_submission(db: AsyncSession, submission_id: str) -> DriveSubmission:
    try:
        result = await db.execute(
            select(DriveSubmission).where(DriveSubmission.id == submission_id)
        )
    except SQLAlchemyError as exc:
        logger.error("Submission read failed for %s: %s", submission_id, exc)
        raise SyncFailure() from exc
    submission = result.scalar_one_or_none()
    if not submission:
        raise SubmissionNotFound(submission_id)
    return submission


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def create_submission(
    db: AsyncSession,
    agent: Profile,
    payload: DriveSubmissionCreate,
) -> DriveSubmission:
    """Validate and store a drive report as PENDING with its commission."""
    validate_submission(payload)
    agent_id = agent.id

    submission = DriveSubmission(
        id=str(uuid.uuid4()),
        agent_id=agent_id,
        agent_name=agent.full_name,
        submission_date=datetime.now(timezone.utc),
        status=SubmissionStatus.PENDING.value,
        agent_status=payload.agent_status.value,
        property_name=payload.property_name.strip(),
        property_address=payload.property_address.strip(),
        state_location=payload.state_location,
        coordinates=payload.coordinates.model_dump(),
        property_photo=payload.property_photo,
        property_category=payload.property_category.value,
        property_type=payload.property_type,
        no_of_units=payload.no_of_units,
        occupancy_rate=payload.occupancy_rate,
        metering_type=payload.metering_type,
        landlord_name=payload.landlord_name,
        management_type=payload.management_type.value,
        contact_phone=payload.contact_phone,
        interest_level=payload.interest_level.value,
        features_interested=list(payload.features_interested),
        subscription_type=payload.subscription_type,
        marketing_channels=list(payload.marketing_channels),
        feedback=payload.feedback,
        estimated_commission=compute_commission(payload.no_of_units),
    )
    db.add(submission)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Submission write failed for agent %s: %s", agent_id, exc)
        raise SyncFailure("Submission could not be saved. Please check your network connection.") from exc

    await db.refresh(submission)
    logger.info(
        "Drive %s reported by %s: %d units, commission %d",
        submission.id, agent_id, submission.no_of_units, submission.estimated_commission,
    )
    return submission


async def update_submission(
    db: AsyncSession,
    submission_id: str,
    status: SubmissionStatus,
    actor: Profile,
    verification: VerificationResult | None = None,
) -> DriveSubmission:
    """Advance a submission's status, optionally replacing its verification.

    Concurrent admins are not coordinated: whichever commit lands last wins.

    Raises:
        SubmissionNotFound, InvalidTransitionError, SyncFailure.
    """
    submission = await get_submission(db, submission_id)
    lifecycle.advance(submission, status, actor, verification=verification)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Status update failed for %s: %s", submission_id, exc)
        raise SyncFailure() from exc
    await db.refresh(submission)
    return submission


async def attach_verification(
    db: AsyncSession,
    submission_id: str,
    verification: VerificationResult,
) -> DriveSubmission:
    """Store a verdict without changing status. Overwrites any earlier verdict."""
    submission = await get_submission(db, submission_id)
    submission.verification = verification.model_dump(mode="json")
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Verification write failed for %s: %s", submission_id, exc)
        raise SyncFailure() from exc
    await db.refresh(submission)
    return submission


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def export_submissions_csv(submissions: list[DriveSubmission]) -> str:
    """Render submissions as CSV for the admin export."""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=CSV_COLUMNS)
    writer.writeheader()
    for sub in submissions:
        verification = sub.verification or {}
        writer.writerow({
            "id": sub.id,
            "submission_date": sub.submission_date.isoformat() if sub.submission_date else "",
            "agent_name": sub.agent_name,
            "property_name": sub.property_name,
            "property_address": sub.property_address,
            "state_location": sub.state_location,
            "property_type": sub.property_type,
            "no_of_units": sub.no_of_units,
            "status": sub.status,
            "estimated_commission": sub.estimated_commission,
            "verdict": verification.get("verdict", ""),
            "score": verification.get("score", ""),
        })
    return output.getvalue()
