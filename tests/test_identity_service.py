"""Tests for signup, sign-in, throttling and password reset."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select

from goagent.domain.enums import UserRole
from goagent.domain.errors import AppError, ErrorKind
from goagent.domain.models import PasswordResetToken, Profile
from goagent.domain.schemas import SignUpRequest
from goagent.services import identity_service
from goagent.services.identity_service import (
    SignInThrottle,
    confirm_password_reset,
    decode_token,
    create_access_token,
    request_password_reset,
    resolve_signup_role,
    sign_in,
    sign_up,
    validate_new_password,
)


def _signup(**kwargs) -> SignUpRequest:
    data = {
        "email": "Ada@Example.com",
        "password": "fieldwork1",
        "confirm_password": "fieldwork1",
        "full_name": "Ada Okafor",
        "phone": "08030000000",
        "state": "Lagos",
    }
    data.update(kwargs)
    return SignUpRequest(**data)


# ===========================================================================
# Unit tests: no database
# ===========================================================================


class TestResolveSignupRole:
    def test_matching_code_is_admin(self):
        assert resolve_signup_role("ops-2026", "ops-2026") == UserRole.ADMIN

    @pytest.mark.parametrize("supplied", [None, "", "wrong"])
    def test_anything_else_is_agent(self, supplied):
        assert resolve_signup_role(supplied, "ops-2026") == UserRole.AGENT

    def test_unconfigured_code_never_elevates(self):
        assert resolve_signup_role("", "") == UserRole.AGENT
        assert resolve_signup_role("anything", "") == UserRole.AGENT


class TestValidateNewPassword:
    def test_too_short(self):
        with pytest.raises(AppError) as exc_info:
            validate_new_password("short")
        assert exc_info.value.field == "password"

    def test_mismatch(self):
        with pytest.raises(AppError) as exc_info:
            validate_new_password("longenough", "different1")
        assert exc_info.value.field == "confirm_password"

    def test_ok(self):
        validate_new_password("longenough", "longenough")


class TestSignInThrottle:
    def test_blocks_after_max_failures_then_window_expires(self):
        now = [1000.0]
        throttle = SignInThrottle(max_failures=3, window_seconds=60, clock=lambda: now[0])
        for _ in range(3):
            throttle.check("a@example.com")
            throttle.record_failure("A@example.com")
        with pytest.raises(AppError) as exc_info:
            throttle.check("a@example.com")
        assert exc_info.value.kind == ErrorKind.RATE_LIMITED

        now[0] += 61
        throttle.check("a@example.com")

    def test_reset_clears_failures(self):
        throttle = SignInThrottle(max_failures=1)
        throttle.record_failure("a@example.com")
        throttle.reset("a@example.com")
        throttle.check("a@example.com")

    def test_checking_alone_tracks_nothing(self):
        throttle = SignInThrottle()
        for i in range(100):
            throttle.check(f"user{i}@example.com")
        assert throttle._failures == {}

    def test_expired_failures_are_forgotten(self):
        now = [0.0]
        throttle = SignInThrottle(max_failures=5, window_seconds=60, clock=lambda: now[0])
        for i in range(1000):
            email = f"user{i}@example.com"
            throttle.check(email)
            throttle.record_failure(email)
        assert len(throttle._failures) == 1000

        now[0] += 61
        throttle.check("someone-new@example.com")
        assert throttle._failures == {}

    def test_fresh_failures_survive_sweep(self):
        now = [0.0]
        throttle = SignInThrottle(max_failures=2, window_seconds=60, clock=lambda: now[0])
        throttle.record_failure("old@example.com")
        now[0] = 50.0
        throttle.record_failure("busy@example.com")
        throttle.record_failure("busy@example.com")
        now[0] = 70.0
        with pytest.raises(AppError):
            throttle.check("busy@example.com")
        assert "old@example.com" not in throttle._failures


def test_token_round_trip():
    token = create_access_token("user-1", "AGENT")
    payload = decode_token(token)
    assert payload["sub"] == "user-1"
    assert payload["role"] == "AGENT"
    assert decode_token("garbage") is None


# ===========================================================================
# Integration: real DB session
# ===========================================================================


class TestSignUp:
    async def test_creates_identity_and_agent_profile(self, db_session):
        identity, profile = await sign_up(db_session, _signup())
        assert identity.email == "ada@example.com"
        assert identity.user_metadata["full_name"] == "Ada Okafor"
        assert profile.role == "AGENT"
        assert profile.agreement_signed is False
        assert identity.password_hash != "fieldwork1"

    async def test_duplicate_email_is_auth_exists(self, db_session):
        await sign_up(db_session, _signup())
        with pytest.raises(AppError) as exc_info:
            await sign_up(db_session, _signup(email="ADA@example.com"))
        assert exc_info.value.kind == ErrorKind.AUTH_EXISTS
        assert exc_info.value.status_code == 409

    async def test_ops_code_elevates_to_admin(self, db_session):
        with patch.object(identity_service, "get_settings") as mock_settings:
            mock_settings.return_value.admin_ops_code = "ops-2026"
            _, profile = await sign_up(db_session, _signup(ops_code="ops-2026"))
        assert profile.role == "ADMIN"

    async def test_blank_name_rejected(self, db_session):
        with pytest.raises(AppError) as exc_info:
            await sign_up(db_session, _signup(full_name="  "))
        assert exc_info.value.field == "full_name"


class TestSignIn:
    async def test_valid_credentials(self, db_session):
        await sign_up(db_session, _signup())
        identity = await sign_in(db_session, "ada@example.com", "fieldwork1", throttle=SignInThrottle())
        assert identity.last_login_at is not None

    async def test_wrong_password_then_throttled(self, db_session):
        await sign_up(db_session, _signup())
        throttle = SignInThrottle(max_failures=2)
        for _ in range(2):
            with pytest.raises(AppError) as exc_info:
                await sign_in(db_session, "ada@example.com", "wrong-pass", throttle=throttle)
            assert exc_info.value.kind == ErrorKind.AUTH_INVALID
        with pytest.raises(AppError) as exc_info:
            await sign_in(db_session, "ada@example.com", "fieldwork1", throttle=throttle)
        assert exc_info.value.kind == ErrorKind.RATE_LIMITED

    async def test_unknown_email(self, db_session):
        with pytest.raises(AppError) as exc_info:
            await sign_in(db_session, "nobody@example.com", "fieldwork1", throttle=SignInThrottle())
        assert exc_info.value.kind == ErrorKind.AUTH_INVALID


class TestPasswordReset:
    async def test_full_reset_flow(self, db_session):
        await sign_up(db_session, _signup())
        with patch(
            "goagent.services.identity_service.email_service.send_password_reset",
            new_callable=AsyncMock,
            return_value=True,
        ) as mock_send:
            reset = await request_password_reset(db_session, "ada@example.com")
        mock_send.assert_awaited_once()
        assert mock_send.await_args.args[2] == reset.token

        await confirm_password_reset(db_session, reset.token, "newpassword9", "newpassword9")
        identity = await sign_in(db_session, "ada@example.com", "newpassword9", throttle=SignInThrottle())
        assert identity.email == "ada@example.com"

        with pytest.raises(AppError) as exc_info:
            await confirm_password_reset(db_session, reset.token, "another-one1")
        assert exc_info.value.field == "token"

    async def test_unknown_email_is_silent(self, db_session):
        with patch(
            "goagent.services.identity_service.email_service.send_password_reset",
            new_callable=AsyncMock,
        ) as mock_send:
            assert await request_password_reset(db_session, "nobody@example.com") is None
        mock_send.assert_not_awaited()

    async def test_expired_token_rejected(self, db_session):
        await sign_up(db_session, _signup())
        with patch(
            "goagent.services.identity_service.email_service.send_password_reset",
            new_callable=AsyncMock,
        ):
            reset = await request_password_reset(db_session, "ada@example.com")
        reset.expires_at = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(minutes=1)
        await db_session.commit()

        with pytest.raises(AppError, match="invalid or has expired"):
            await confirm_password_reset(db_session, reset.token, "newpassword9")

    async def test_sign_up_stores_one_profile(self, db_session):
        identity, _ = await sign_up(db_session, _signup())
        result = await db_session.execute(select(Profile).where(Profile.id == identity.id))
        assert len(result.scalars().all()) == 1
        tokens = await db_session.execute(select(PasswordResetToken))
        assert tokens.scalars().all() == []
