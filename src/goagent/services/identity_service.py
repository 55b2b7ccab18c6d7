"""Identity service: credentials, JWT tokens, signup, sign-in and password reset."""

import hmac
import logging
import secrets
import time
import uuid
from collections import deque
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from goagent.app.config import get_settings
from goagent.domain.enums import UserRole
from goagent.domain.errors import AppError, ErrorKind, SyncFailure
from goagent.domain.models import Identity, PasswordResetToken, Profile
from goagent.domain.schemas import SignUpRequest
from goagent.services import email_service

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 8


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(user_id: str, role: str) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expiration_minutes)
    payload = {"sub": user_id, "role": role, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict | None:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def validate_new_password(password: str, confirm_password: str | None = None) -> None:
    """Raise a validation AppError for short or mismatched passwords."""
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise AppError.validation(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters.", field="password"
        )
    if confirm_password is not None and confirm_password != password:
        raise AppError.validation("Passwords do not match.", field="confirm_password")


def resolve_signup_role(ops_code: str | None, configured_code: str) -> UserRole:
    """ADMIN when the registrant supplied the configured ops code, else AGENT.

    This is a shared secret, not an authorization system.
    """
    if ops_code and configured_code and hmac.compare_digest(ops_code, configured_code):
        return UserRole.ADMIN
    return UserRole.AGENT


# ---------------------------------------------------------------------------
# Sign-in throttling
# ---------------------------------------------------------------------------


class SignInThrottle:
    """Counts failed sign-ins per email inside a sliding window."""

    def __init__(self, max_failures: int = 5, window_seconds: int = 300, clock=time.monotonic):
        self.max_failures = max_failures
        self.window_seconds = window_seconds
        self._clock = clock
        self._failures: dict[str, deque] = {}
        self._last_sweep = clock()

    def _sweep(self, now: float) -> None:
        """Drop every email whose newest failure has left the window, at most once per window."""
        if now - self._last_sweep < self.window_seconds:
            return
        cutoff = now - self.window_seconds
        for key in [k for k, attempts in self._failures.items() if attempts[-1] < cutoff]:
            del self._failures[key]
        self._last_sweep = now

    def _recent(self, key: str, now: float) -> int:
        """Failures for ``key`` still inside the window. Never creates an entry."""
        attempts = self._failures.get(key)
        if attempts is None:
            return 0
        cutoff = now - self.window_seconds
        while attempts and attempts[0] < cutoff:
            attempts.popleft()
        if not attempts:
            del self._failures[key]
        return len(attempts)

    def check(self, email: str) -> None:
        now = self._clock()
        self._sweep(now)
        if self._recent(email.lower(), now) >= self.max_failures:
            raise AppError(ErrorKind.RATE_LIMITED)

    def record_failure(self, email: str) -> None:
        now = self._clock()
        self._sweep(now)
        key = email.lower()
        self._recent(key, now)
        self._failures.setdefault(key, deque()).append(now)

    def reset(self, email: str) -> None:
        self._failures.pop(email.lower(), None)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_identity_by_email(db: AsyncSession, email: str) -> Identity | None:
    result = await db.execute(select(Identity).where(Identity.email == email.lower()))
    return result.scalar_one_or_none()


async def get_identity(db: AsyncSession, identity_id: str) -> Identity | None:
    result = await db.execute(select(Identity).where(Identity.id == identity_id))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Signup / sign-in
# ---------------------------------------------------------------------------


async def sign_up(db: AsyncSession, data: SignUpRequest) -> tuple[Identity, Profile]:
    """Create an identity and its profile row.

    Raises:
        AppError: AUTH_EXISTS for a taken email, VALIDATION for bad input.
        SyncFailure: the store rejected the write.
    """
    validate_new_password(data.password, data.confirm_password)
    if not data.full_name.strip():
        raise AppError.validation("Full name is required.", field="full_name")

    email = data.email.lower()
    if await get_identity_by_email(db, email):
        raise AppError(ErrorKind.AUTH_EXISTS)

    role = resolve_signup_role(data.ops_code, get_settings().admin_ops_code)
    bank_details = data.bank_details.model_dump() if data.bank_details else None
    identity = Identity(
        id=str(uuid.uuid4()),
        email=email,
        password_hash=hash_password(data.password),
        user_metadata={
            "full_name": data.full_name.strip(),
            "phone": data.phone,
            "state": data.state,
            "role": role.value,
        },
    )
    profile = Profile(
        id=identity.id,
        full_name=data.full_name.strip(),
        email=email,
        phone=data.phone,
        state=data.state,
        role=role.value,
        bank_details=bank_details,
        agreement_signed=False,
    )
    db.add(identity)
    db.add(profile)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.info("Signup raced on existing email %s: %s", email, exc)
        raise AppError(ErrorKind.AUTH_EXISTS) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Signup write failed for %s: %s", email, exc)
        raise SyncFailure() from exc

    await db.refresh(profile)
    logger.info("Registered %s as %s", email, role.value)
    return identity, profile


async def sign_in(
    db: AsyncSession,
    email: str,
    password: str,
    throttle: SignInThrottle | None = None,
) -> Identity:
    """Verify credentials.

    Raises:
        AppError: RATE_LIMITED after repeated failures, AUTH_INVALID on bad credentials.
    """
    throttle = throttle or default_throttle
    throttle.check(email)

    identity = await get_identity_by_email(db, email)
    if not identity or not verify_password(password, identity.password_hash):
        throttle.record_failure(email)
        raise AppError(ErrorKind.AUTH_INVALID)

    throttle.reset(email)
    identity.last_login_at = datetime.now(timezone.utc)
    await db.commit()
    return identity


default_throttle = SignInThrottle()


# ---------------------------------------------------------------------------
# Password management
# ---------------------------------------------------------------------------


async def request_password_reset(db: AsyncSession, email: str) -> PasswordResetToken | None:
    """Issue a reset token and email it. Unknown emails return None silently."""
    identity = await get_identity_by_email(db, email)
    if not identity:
        logger.info("Password reset requested for unknown email %s", email)
        return None

    expiry_minutes = get_settings().password_reset_expiry_minutes
    reset = PasswordResetToken(
        id=str(uuid.uuid4()),
        identity_id=identity.id,
        token=secrets.token_urlsafe(48),
        expires_at=datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(minutes=expiry_minutes),
    )
    db.add(reset)
    await db.commit()

    full_name = (identity.user_metadata or {}).get("full_name", "")
    await email_service.send_password_reset(identity.email, full_name, reset.token, expiry_minutes)
    logger.info("Created password reset token %s... for %s", reset.token[:8], identity.email)
    return reset


async def confirm_password_reset(
    db: AsyncSession,
    token: str,
    new_password: str,
    confirm_password: str | None = None,
) -> Identity:
    """Consume a reset token and set the new password."""
    validate_new_password(new_password, confirm_password)

    result = await db.execute(select(PasswordResetToken).where(PasswordResetToken.token == token))
    reset = result.scalar_one_or_none()
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    if not reset or reset.used_at is not None or reset.expires_at < now:
        raise AppError.validation("This reset link is invalid or has expired.", field="token")

    identity = await get_identity(db, reset.identity_id)
    if not identity:
        raise AppError.validation("This reset link is invalid or has expired.", field="token")

    identity.password_hash = hash_password(new_password)
    reset.used_at = now
    await db.commit()
    logger.info("Password reset completed for %s", identity.email)
    return identity


async def update_user_password(
    db: AsyncSession,
    identity: Identity,
    new_password: str,
    confirm_password: str | None = None,
) -> None:
    validate_new_password(new_password, confirm_password)
    identity.password_hash = hash_password(new_password)
    await db.commit()
