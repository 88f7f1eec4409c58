"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ohmage.auth.jwt import JWTHandler
from ohmage.campaigns.models import (
    Campaign,
    CampaignClass,
    CampaignRole,
    PrivacyState,
    RunningState,
    UserRole,
    UserRoleCampaign,
)
from ohmage.classes.models import Class, UserClass
from ohmage.config import Settings, get_settings
from ohmage.main import app
from ohmage.shared.database import Base, get_db_session, get_session_factory
from ohmage.surveys.models import SurveyResponse
from ohmage.users.models import User

CAMPAIGN_XML = """<?xml version="1.0" encoding="UTF-8"?>
<campaign>
  <campaignUrn>urn:campaign:test</campaignUrn>
  <surveys>
    <survey>
      <id>mood</id>
      <contentList>
        <prompt><id>happiness</id><promptType>number</promptType></prompt>
        <prompt><id>energy</id><promptType>number</promptType></prompt>
        <prompt>
          <id>snacks</id>
          <promptType>multi_choice_custom</promptType>
          <properties>
            <property><key>0</key><label>apple</label></property>
            <property><key>1</key><label>chips</label></property>
          </properties>
        </prompt>
        <repeatableSet>
          <id>meals</id>
          <prompts>
            <prompt><id>meal_size</id><promptType>number</promptType></prompt>
          </prompts>
        </repeatableSet>
      </contentList>
    </survey>
  </surveys>
</campaign>
"""


class DataSeeder:
    """Writes fixture rows, each call in its own committed transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _insert(self, table: Any, **values: Any) -> int:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(insert(table).values(**values))
                return result.inserted_primary_key[0]

    async def user(
        self,
        username: str,
        *,
        admin: bool = False,
        enabled: bool = True,
        campaign_creation_privilege: bool = False,
    ) -> int:
        return await self._insert(
            User,
            username=username,
            admin=admin,
            enabled=enabled,
            campaign_creation_privilege=campaign_creation_privilege,
        )

    async def campaign(
        self,
        urn: str,
        *,
        name: str | None = None,
        description: str | None = None,
        xml: str = CAMPAIGN_XML,
        running_state: RunningState = RunningState.RUNNING,
        privacy_state: PrivacyState = PrivacyState.PRIVATE,
        authored_by: str | None = None,
        created: datetime | None = None,
    ) -> int:
        return await self._insert(
            Campaign,
            urn=urn,
            name=name or urn.rsplit(":", 1)[-1],
            description=description,
            xml=xml,
            running_state=running_state.value,
            privacy_state=privacy_state.value,
            authored_by=authored_by,
            creation_timestamp=created or datetime(2024, 1, 15, 12, 0, 0),
        )

    async def klass(self, urn: str, *, name: str | None = None) -> int:
        return await self._insert(Class, urn=urn, name=name or urn.rsplit(":", 1)[-1])

    async def member(self, user_id: int, class_id: int, class_role: str) -> int:
        return await self._insert(
            UserClass, user_id=user_id, class_id=class_id, class_role=class_role
        )

    async def link(self, campaign_id: int, class_id: int) -> int:
        return await self._insert(CampaignClass, campaign_id=campaign_id, class_id=class_id)

    async def grant(self, user_id: int, campaign_id: int, role: CampaignRole) -> int:
        async with self._session_factory() as session:
            role_id = (
                await session.execute(select(UserRole.id).where(UserRole.role == role.value))
            ).scalar_one()
        return await self._insert(
            UserRoleCampaign, user_id=user_id, campaign_id=campaign_id, user_role_id=role_id
        )

    async def response(
        self,
        user_id: int,
        campaign_id: int,
        survey_id: str = "mood",
        *,
        response: str = "[]",
    ) -> int:
        return await self._insert(
            SurveyResponse,
            user_id=user_id,
            campaign_id=campaign_id,
            survey_id=survey_id,
            response=response,
        )

    # ------------------------------------------------------------------
    # Reads used by assertions
    # ------------------------------------------------------------------

    async def roles(self, user_id: int, campaign_id: int) -> set[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserRole.role)
                .join(UserRoleCampaign, UserRoleCampaign.user_role_id == UserRole.id)
                .where(UserRoleCampaign.user_id == user_id)
                .where(UserRoleCampaign.campaign_id == campaign_id)
            )
            return set(result.scalars().all())

    async def grant_count(self, campaign_id: int) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserRoleCampaign.id).where(UserRoleCampaign.campaign_id == campaign_id)
            )
            return len(result.all())

    async def class_urns(self, campaign_id: int) -> set[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Class.urn)
                .join(CampaignClass, CampaignClass.class_id == Class.id)
                .where(CampaignClass.campaign_id == campaign_id)
            )
            return set(result.scalars().all())

    async def campaign_row(self, urn: str) -> Campaign:
        async with self._session_factory() as session:
            result = await session.execute(select(Campaign).where(Campaign.urn == urn))
            return result.scalar_one()


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        app_env="dev",
        debug=False,
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-secret-key-for-testing-only",
        jwt_access_token_expire_minutes=60,
        visualization_server_url="http://viz.test/R/visualization/",
    )


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory database shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(
            insert(UserRole),
            [{"role": role.value} for role in CampaignRole],
        )

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(session_factory: async_sessionmaker[AsyncSession]) -> DataSeeder:
    return DataSeeder(session_factory)


@pytest.fixture
def jwt_handler(test_settings: Settings) -> JWTHandler:
    """Create JWT handler with test settings."""
    return JWTHandler(settings=test_settings)


@pytest.fixture
def auth_headers(jwt_handler: JWTHandler) -> Callable[[str], dict[str, str]]:
    """Build an Authorization header for a username."""

    def _headers(username: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {jwt_handler.create_access_token(username)}"}

    return _headers


@pytest.fixture
def expired_access_token(test_settings: Settings) -> str:
    """Create expired access token."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": "alice",
        "exp": now - timedelta(hours=1),
        "iat": now - timedelta(hours=2),
        "type": "access",
    }
    return jwt.encode(
        payload,
        test_settings.jwt_secret_key,
        algorithm=test_settings.jwt_algorithm,
    )


@pytest_asyncio.fixture
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    test_settings: Settings,
) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API tests."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_settings] = lambda: test_settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
