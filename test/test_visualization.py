"""
Tests for the visualization proxy.
"""

from typing import Callable

import httpx
import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from ohmage.auth.middleware import CurrentUser
from ohmage.campaigns.models import CampaignRole
from ohmage.campaigns.repository import CampaignRepository
from ohmage.config import Settings
from ohmage.main import app
from ohmage.shared.exceptions import (
    CampaignNotFoundError,
    PermissionDeniedError,
    ValidationError,
    VisualizationError,
)
from ohmage.visualization.router import get_http_client_factory
from ohmage.visualization.service import TWO_D_DENSITY_PATH, VisualizationService

CAMPAIGN_URN = "urn:campaign:test"
PNG = b"\x89PNG\r\n\x1a\nfake-image"


class RecordingTransport(httpx.MockTransport):
    """Mock transport that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_handler)


def png_response(_: httpx.Request) -> httpx.Response:
    return httpx.Response(200, content=PNG, headers={"Content-Type": "image/png"})


def client_factory(transport: httpx.MockTransport) -> Callable[[], httpx.AsyncClient]:
    return lambda: httpx.AsyncClient(transport=transport)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport(png_response)


@pytest.fixture
def service(
    db_session: AsyncSession,
    test_settings: Settings,
    transport: RecordingTransport,
) -> VisualizationService:
    return VisualizationService(
        test_settings, CampaignRepository(db_session), client_factory(transport)
    )


class TestVisualizationService:
    """Tests for VisualizationService."""

    @pytest.mark.asyncio
    async def test_two_d_density(
        self,
        service: VisualizationService,
        transport: RecordingTransport,
        seed,
    ) -> None:
        campaign_id = await seed.campaign(CAMPAIGN_URN)
        user_id = await seed.user("alice")
        await seed.grant(user_id, campaign_id, CampaignRole.PARTICIPANT)
        user = CurrentUser(id=user_id, username="alice")

        image = await service.two_d_density(
            user, "token-123", CAMPAIGN_URN, 640, 480, "happiness", "meal_size"
        )

        assert image == PNG
        (request,) = transport.requests
        assert request.url.path == f"/R/visualization/{TWO_D_DENSITY_PATH}"
        assert dict(request.url.params) == {
            "token": "token-123",
            "campaign_urn": CAMPAIGN_URN,
            "!width": "640",
            "!height": "480",
            "prompt_id": "happiness",
            "prompt2_id": "meal_size",
        }

    @pytest.mark.asyncio
    async def test_admin_without_role(
        self,
        service: VisualizationService,
        seed,
    ) -> None:
        await seed.campaign(CAMPAIGN_URN)
        user_id = await seed.user("root", admin=True)

        image = await service.two_d_density(
            CurrentUser(id=user_id, username="root", admin=True),
            "token",
            CAMPAIGN_URN,
            100,
            100,
            "happiness",
            "energy",
        )

        assert image == PNG

    @pytest.mark.asyncio
    async def test_user_without_role(
        self,
        service: VisualizationService,
        transport: RecordingTransport,
        seed,
    ) -> None:
        await seed.campaign(CAMPAIGN_URN)
        user_id = await seed.user("alice")

        with pytest.raises(PermissionDeniedError):
            await service.two_d_density(
                CurrentUser(id=user_id, username="alice"),
                "token",
                CAMPAIGN_URN,
                100,
                100,
                "happiness",
                "energy",
            )
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_unknown_campaign(self, service: VisualizationService) -> None:
        with pytest.raises(CampaignNotFoundError):
            await service.ensure_user_can_read(
                CurrentUser(id=1, username="root", admin=True), "urn:campaign:missing"
            )

    @pytest.mark.asyncio
    async def test_unknown_prompt(
        self,
        service: VisualizationService,
        transport: RecordingTransport,
        seed,
    ) -> None:
        campaign_id = await seed.campaign(CAMPAIGN_URN)
        user_id = await seed.user("alice")
        await seed.grant(user_id, campaign_id, CampaignRole.ANALYST)

        with pytest.raises(ValidationError) as exc_info:
            await service.two_d_density(
                CurrentUser(id=user_id, username="alice"),
                "token",
                CAMPAIGN_URN,
                100,
                100,
                "happiness",
                "survey_id",
            )

        assert exc_info.value.details["prompt_id"] == "survey_id"
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_server_error(self, db_session: AsyncSession, test_settings: Settings) -> None:
        failing = RecordingTransport(lambda request: httpx.Response(500, text="R error"))
        service = VisualizationService(
            test_settings, CampaignRepository(db_session), client_factory(failing)
        )

        with pytest.raises(VisualizationError) as exc_info:
            await service.send_request(TWO_D_DENSITY_PATH, "token", CAMPAIGN_URN, 10, 10)

        assert exc_info.value.details == {"status_code": 500}

    @pytest.mark.asyncio
    async def test_server_unreachable(
        self, db_session: AsyncSession, test_settings: Settings
    ) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        service = VisualizationService(
            test_settings, CampaignRepository(db_session), client_factory(httpx.MockTransport(refuse))
        )

        with pytest.raises(VisualizationError):
            await service.send_request(TWO_D_DENSITY_PATH, "token", CAMPAIGN_URN, 10, 10)


class TestVisualizationApi:
    """Tests for GET /app/viz/2d_density/read."""

    @pytest.fixture(autouse=True)
    def override_http_client(self, transport: RecordingTransport):
        app.dependency_overrides[get_http_client_factory] = lambda: client_factory(transport)
        yield
        app.dependency_overrides.pop(get_http_client_factory, None)

    @pytest.mark.asyncio
    async def test_returns_png(
        self,
        async_client: AsyncClient,
        transport: RecordingTransport,
        seed,
        auth_headers: Callable[[str], dict[str, str]],
    ) -> None:
        campaign_id = await seed.campaign(CAMPAIGN_URN)
        user_id = await seed.user("alice")
        await seed.grant(user_id, campaign_id, CampaignRole.SUPERVISOR)
        headers = auth_headers("alice")

        response = await async_client.get(
            "/app/viz/2d_density/read",
            params={
                "campaign_urn": CAMPAIGN_URN,
                "width": 320,
                "height": 240,
                "prompt_id": "happiness",
                "prompt2_id": "energy",
            },
            headers=headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"] == "image/png"
        assert response.content == PNG
        forwarded_token = headers["Authorization"].removeprefix("Bearer ")
        assert transport.requests[0].url.params["token"] == forwarded_token

    @pytest.mark.asyncio
    async def test_server_failure_is_bad_gateway(
        self,
        async_client: AsyncClient,
        seed,
        auth_headers: Callable[[str], dict[str, str]],
    ) -> None:
        failing = RecordingTransport(lambda request: httpx.Response(503))
        app.dependency_overrides[get_http_client_factory] = lambda: client_factory(failing)
        campaign_id = await seed.campaign(CAMPAIGN_URN)
        user_id = await seed.user("alice")
        await seed.grant(user_id, campaign_id, CampaignRole.SUPERVISOR)

        response = await async_client.get(
            "/app/viz/2d_density/read",
            params={
                "campaign_urn": CAMPAIGN_URN,
                "width": 320,
                "height": 240,
                "prompt_id": "happiness",
                "prompt2_id": "energy",
            },
            headers=auth_headers("alice"),
        )

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json()["detail"]["code"] == "VISUALIZATION_ERROR"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params",
        [
            {"campaign_urn": "bad urn", "width": 10, "height": 10, "prompt_id": "a", "prompt2_id": "b"},
            {"campaign_urn": CAMPAIGN_URN, "width": 0, "height": 10, "prompt_id": "a", "prompt2_id": "b"},
            {"campaign_urn": CAMPAIGN_URN, "width": 10, "height": 10, "prompt_id": "a"},
        ],
    )
    async def test_invalid_parameters(
        self,
        async_client: AsyncClient,
        seed,
        auth_headers: Callable[[str], dict[str, str]],
        params: dict,
    ) -> None:
        await seed.user("alice")

        response = await async_client.get(
            "/app/viz/2d_density/read", params=params, headers=auth_headers("alice")
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
