"""Shared test infrastructure for the GoAgent test suite.

Provides:
- db_session: async SQLite in-memory session with all tables created
- make_identity: factory for Identity rows (optionally with a Profile)
- make_submission: factory for DriveSubmission rows
- app_client: factory for an HTTPX AsyncClient wired to the API routers
- auth_headers: Bearer header for a profile
- session_factory: independent sessions over a file-backed database
"""

import uuid
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Import Base first, then models to register all tables
from goagent.infra.database import Base

import goagent.domain.models  # noqa: F401

from goagent.domain.models import DriveSubmission, Identity, Profile
from goagent.services.commission import compute_commission
from goagent.services.identity_service import create_access_token


# ---------------------------------------------------------------------------
# Database session fixture
# ---------------------------------------------------------------------------

@pytest.fixture
async def db_session():
    """Async SQLite in-memory session with all tables created.

    Creates a fresh engine + tables for each test, yields a session,
    then rolls back and tears down.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


# ---------------------------------------------------------------------------
# Identity / profile factory
# ---------------------------------------------------------------------------

@pytest.fixture
def make_identity(db_session):
    """Factory that creates an Identity and, unless told not to, its Profile.

    Usage:
        identity, profile = await make_identity(role="ADMIN", signed=True)
        identity, _ = await make_identity(with_profile=False)
    """
    async def _factory(
        email: str | None = None,
        full_name: str = "Ada Okafor",
        role: str = "AGENT",
        signed: bool = False,
        with_profile: bool = True,
        password_hash: str = "not-a-real-hash",
        metadata: dict | None = None,
    ) -> tuple[Identity, Profile | None]:
        identity_id = str(uuid.uuid4())
        email = email or f"{identity_id[:8]}@example.com"
        identity = Identity(
            id=identity_id,
            email=email,
            password_hash=password_hash,
            user_metadata=metadata if metadata is not None else {
                "full_name": full_name,
                "phone": "08030000000",
                "state": "Lagos",
                "role": role,
            },
        )
        db_session.add(identity)

        profile = None
        if with_profile:
            profile = Profile(
                id=identity_id,
                full_name=full_name,
                email=email,
                phone="08030000000",
                state="Lagos",
                role=role,
                agreement_signed=signed,
                agreement_timestamp=datetime.now(timezone.utc) if signed else None,
                agreement_ip="127.0.0.1" if signed else None,
            )
            db_session.add(profile)

        await db_session.flush()
        return identity, profile

    return _factory


# ---------------------------------------------------------------------------
# Submission factory
# ---------------------------------------------------------------------------

@pytest.fixture
def make_submission(db_session):
    """Factory that creates a DriveSubmission row for an agent profile.

    Usage:
        sub = await make_submission(agent, no_of_units=40, status="APPROVED")
    """
    async def _factory(
        agent: Profile,
        property_name: str = "Palm Court Estate",
        no_of_units: int = 24,
        status: str = "PENDING",
        submission_date: datetime | None = None,
        verification: dict | None = None,
    ) -> DriveSubmission:
        sub = DriveSubmission(
            id=str(uuid.uuid4()),
            agent_id=agent.id,
            agent_name=agent.full_name,
            submission_date=submission_date or datetime.now(timezone.utc),
            status=status,
            property_name=property_name,
            property_address="12 Admiralty Way, Lekki",
            state_location="Lagos",
            property_type="Block of Flats",
            no_of_units=no_of_units,
            occupancy_rate=80,
            coordinates={"lat": 6.4474, "lng": 3.4723},
            landlord_name="Chief Bello",
            contact_phone="08031112222",
            features_interested=["Utility Billing"],
            marketing_channels=["Referral"],
            estimated_commission=compute_commission(no_of_units),
            verification=verification,
        )
        db_session.add(sub)
        await db_session.flush()
        return sub

    return _factory


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest.fixture
def app_client(db_session):
    """Factory for an HTTPX AsyncClient wired to a test FastAPI app.

    Uses a fresh FastAPI app with the API routers and error handlers but
    without the store-configuration middleware or lifespan.

    Usage:
        async with app_client({get_verification_agent: lambda: fake}) as client:
            ...
    """
    def _factory(overrides: dict | None = None) -> AsyncClient:
        from fastapi import FastAPI

        from goagent.app.errors import register_exception_handlers
        from goagent.app.routes.admin import router as admin_router
        from goagent.app.routes.agreements import router as agreements_router
        from goagent.app.routes.auth import router as auth_router
        from goagent.app.routes.insights import router as insights_router
        from goagent.app.routes.preferences import router as preferences_router
        from goagent.app.routes.profile import router as profile_router
        from goagent.app.routes.submissions import router as submissions_router
        from goagent.infra.database import get_db

        test_app = FastAPI()
        register_exception_handlers(test_app)
        for router in (
            auth_router,
            profile_router,
            agreements_router,
            submissions_router,
            admin_router,
            preferences_router,
            insights_router,
        ):
            test_app.include_router(router)

        async def _override_get_db():
            yield db_session

        test_app.dependency_overrides[get_db] = _override_get_db
        for dependency, override in (overrides or {}).items():
            test_app.dependency_overrides[dependency] = override

        return AsyncClient(
            transport=ASGITransport(app=test_app),
            base_url="http://testserver",
        )

    return _factory


@pytest.fixture
def auth_headers():
    """Bearer header for a profile."""
    def _factory(profile: Profile) -> dict:
        return {"Authorization": f"Bearer {create_access_token(profile.id, profile.role)}"}

    return _factory


# ---------------------------------------------------------------------------
# Multi-session store
# ---------------------------------------------------------------------------

@pytest.fixture
async def session_factory(tmp_path):
    """Session factory over a file-backed SQLite database.

    Unlike ``db_session``, every session from this factory has its own
    connection, so tests can interleave independent sessions the way two
    concurrent requests would.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'goagent_test.db'}",
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()
