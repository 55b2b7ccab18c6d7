"""SQLAlchemy ORM models for GoAgent.

All models use SQLite-compatible types:
- String(36) for UUID primary keys
- JSON for structured data (no JSONB)
- DateTime for timestamps (no TIMESTAMPTZ)
"""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from goagent.infra.database import Base


# ---------------------------------------------------------------------------
# Identity / Profile
# ---------------------------------------------------------------------------


class Identity(Base):
    """Identity-provider account: credentials plus signup metadata.

    ``user_metadata`` holds what the registrant typed at signup (full_name,
    phone, state, role). The profile row is repaired from it when missing.
    """

    __tablename__ = "identities"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    user_metadata = Column(JSON, default=dict)
    created_at = Column(DateTime, default=func.now())
    last_login_at = Column(DateTime, nullable=True)


class Profile(Base):
    """Per-user profile record (the User of the domain)."""

    __tablename__ = "profiles"

    id = Column(String(36), ForeignKey("identities.id"), primary_key=True)
    full_name = Column(String(255), nullable=False, default="User")
    email = Column(String(255), nullable=False, default="")
    phone = Column(String(50), nullable=False, default="")
    state = Column(String(100), nullable=False, default="")
    role = Column(String(10), nullable=False, default="AGENT")  # ADMIN, AGENT
    bank_details = Column(JSON, nullable=True)  # bank_name, account_number, account_name
    agreement_signed = Column(Boolean, nullable=False, default=False)
    agreement_timestamp = Column(DateTime, nullable=True)
    # Client-supplied; not evidence of anything
    agreement_ip = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=func.now())


class PasswordResetToken(Base):
    """Single-use password reset token."""

    __tablename__ = "password_reset_tokens"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    identity_id = Column(String(36), ForeignKey("identities.id"), nullable=False, index=True)
    token = Column(String(100), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now())


# ---------------------------------------------------------------------------
# Drive submissions
# ---------------------------------------------------------------------------


class DriveSubmission(Base):
    """A property lead reported by an agent after a field visit."""

    __tablename__ = "drive_submissions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    agent_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    agent_name = Column(String(255), nullable=False)
    submission_date = Column(DateTime, default=func.now(), index=True)
    status = Column(String(10), nullable=False, default="PENDING", index=True)
    agent_status = Column(String(20), nullable=False, default="Freelance")

    # Property descriptors
    property_name = Column(String(255), nullable=False)
    property_address = Column(String(500), nullable=False)
    state_location = Column(String(100), nullable=False)
    property_category = Column(String(20), nullable=False, default="Residential")
    property_type = Column(String(100), nullable=False, default="")
    no_of_units = Column(Integer, nullable=False, default=0)
    occupancy_rate = Column(Integer, nullable=False, default=0)
    metering_type = Column(String(50), nullable=False, default="Prepaid")

    # Capture proof
    coordinates = Column(JSON, nullable=True)  # {"lat": float, "lng": float}
    property_photo = Column(Text, nullable=True)

    # Stakeholder contact
    landlord_name = Column(String(255), nullable=False, default="")
    management_type = Column(String(20), nullable=False, default="Individual")
    contact_phone = Column(String(50), nullable=False, default="")

    # Sales intel
    interest_level = Column(String(10), nullable=False, default="High")
    features_interested = Column(JSON, default=list)
    subscription_type = Column(String(50), nullable=False, default="Residential")
    marketing_channels = Column(JSON, default=list)
    feedback = Column(Text, nullable=False, default="")

    estimated_commission = Column(Integer, nullable=False, default=0)
    verification = Column(JSON, nullable=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


# ---------------------------------------------------------------------------
# Preferences / audit
# ---------------------------------------------------------------------------


class Preference(Base):
    """Per-user list of form choices (feature tags, quick feedback templates)."""

    __tablename__ = "preferences"
    __table_args__ = (UniqueConstraint("owner_id", "key", name="uq_preferences_owner_key"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(36), nullable=False, index=True)
    key = Column(String(50), nullable=False)
    values = Column(JSON, default=list)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class AgentLog(Base):
    """Audit trail of AI agent calls."""

    __tablename__ = "agent_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    agent_name = Column(String(50), nullable=False)
    action = Column(String(50), nullable=False)
    input_summary = Column(Text)
    output_summary = Column(Text)
    tokens_used = Column(Integer, default=0)
    latency_ms = Column(Integer, default=0)
    related_submission_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=func.now())
