"""Pydantic v2 schemas for API request/response validation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from goagent.domain.enums import (
    AgentStatus,
    InterestLevel,
    ManagementType,
    PropertyCategory,
    SubmissionStatus,
    Verdict,
)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class BankDetails(BaseModel):
    """Payout account for commissions."""

    bank_name: str = ""
    account_number: str = ""
    account_name: str = ""


class SignUpRequest(BaseModel):
    """Schema for registering a new agent (or admin, with the ops code)."""

    email: EmailStr
    password: str
    confirm_password: str | None = None
    full_name: str
    phone: str = ""
    state: str = ""
    bank_details: BankDetails | None = None
    ops_code: str | None = None


class LoginRequest(BaseModel):
    """Schema for signing in."""

    email: EmailStr
    password: str


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str
    confirm_password: str | None = None


class PasswordUpdate(BaseModel):
    new_password: str
    confirm_password: str | None = None


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


class ProfileResponse(BaseModel):
    """Schema for profile API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    email: str
    phone: str = ""
    state: str = ""
    role: str
    bank_details: BankDetails | None = None
    agreement_signed: bool = False
    agreement_timestamp: datetime | None = None
    agreement_ip: str | None = None
    created_at: datetime | None = None


class ProfileUpdate(BaseModel):
    """Editable profile fields. Role and agreement fields are not editable."""

    full_name: str | None = None
    phone: str | None = None
    state: str | None = None
    bank_details: BankDetails | None = None


class TokenResponse(BaseModel):
    """Schema for JWT token responses."""

    access_token: str
    token_type: str = "bearer"
    user: ProfileResponse


class MessageResponse(BaseModel):
    ok: bool = True
    message: str


# ---------------------------------------------------------------------------
# Agreement
# ---------------------------------------------------------------------------


class AgreementSignRequest(BaseModel):
    """Optional client-reported IP. Not verified by the server."""

    ip: str | None = None


class AgreementStatusResponse(BaseModel):
    signed: bool
    signed_at: datetime | None = None
    ip: str | None = None


class AgreementTermsResponse(BaseModel):
    version: str
    title: str
    clauses: list[str]


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


class VerificationSource(BaseModel):
    title: str = "Source"
    uri: str


class VerificationResult(BaseModel):
    """Verdict attached to a submission by the oracle or an admin."""

    score: float = Field(ge=0, le=100)
    verdict: Verdict
    findings: str
    sources: list[VerificationSource] = []
    manual_note: str | None = None
    verified_by: str | None = None


# ---------------------------------------------------------------------------
# Drive submissions
# ---------------------------------------------------------------------------


class Coordinates(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class DriveSubmissionCreate(BaseModel):
    """Drive Report form payload. Agent identity comes from the session."""

    agent_status: AgentStatus = AgentStatus.FREELANCE
    property_name: str
    property_address: str
    state_location: str
    coordinates: Coordinates | None = None
    property_photo: str | None = None

    property_category: PropertyCategory = PropertyCategory.RESIDENTIAL
    property_type: str = ""
    no_of_units: int = 0
    occupancy_rate: int = 50
    metering_type: str = "Prepaid"

    landlord_name: str = ""
    management_type: ManagementType = ManagementType.INDIVIDUAL
    contact_phone: str = ""

    interest_level: InterestLevel = InterestLevel.HIGH
    features_interested: list[str] = []
    subscription_type: str = "Residential"
    marketing_channels: list[str] = []
    feedback: str = ""


class DriveSubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    agent_id: str
    agent_name: str
    submission_date: datetime | None = None
    status: SubmissionStatus
    agent_status: str
    property_name: str
    property_address: str
    state_location: str
    coordinates: Coordinates | None = None
    property_photo: str | None = None
    property_category: str
    property_type: str
    no_of_units: int
    occupancy_rate: int
    metering_type: str
    landlord_name: str
    management_type: str
    contact_phone: str
    interest_level: str
    features_interested: list[str] = []
    subscription_type: str
    marketing_channels: list[str] = []
    feedback: str
    estimated_commission: int
    verification: VerificationResult | None = None

    @field_validator("features_interested", "marketing_channels", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return value or []


class StatusUpdateRequest(BaseModel):
    """Admin status change, optionally carrying or requesting a verification."""

    status: SubmissionStatus
    verification: VerificationResult | None = None
    run_verification: bool = False
    manual_note: str | None = None


class VerifyRequest(BaseModel):
    manual_note: str | None = None


class LeadAnalysisResponse(BaseModel):
    submission_id: str
    analysis: str


class CommissionSummaryResponse(BaseModel):
    total_earned: int
    pending_commission: int
    total_units: int
    total_submissions: int
    submissions_by_month: list[int]


# ---------------------------------------------------------------------------
# Preferences / insights
# ---------------------------------------------------------------------------


class PreferenceValues(BaseModel):
    values: list[str]


class MarketIntelResponse(BaseModel):
    text: str
    sources: list[VerificationSource] = []
