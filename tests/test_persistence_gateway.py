"""Contract tests for the persistence gateways (local database and remote table API)."""

import json
from datetime import datetime, timezone

import httpx
import pytest
from sqlalchemy import select

from interaction_capture.config import Settings
from interaction_capture.database import AsyncSessionLocal
from interaction_capture.exceptions import ConfigurationError, TransportError
from interaction_capture.models.interaction import Interaction
from interaction_capture.services.persistence_gateway import (
    DatabaseGateway,
    PersistenceGateway,
    RestTableGateway,
    build_gateway,
)
from interaction_capture.services.record_validator import InteractionRecord

NOW = datetime(2024, 3, 2, 10, 15, tzinfo=timezone.utc)


def _record(**overrides) -> InteractionRecord:
    values = dict(
        staff_name="Carson",
        channel="WhatsApp",
        category="Consoles",
        wanted_item="PS5 slim",
        purchased=False,
        out_of_stock=True,
        timestamp=NOW,
    )
    values.update(overrides)
    return InteractionRecord(**values)


def _rest_gateway(handler) -> RestTableGateway:
    return RestTableGateway(
        "https://store.example.com/",
        "service-key",
        transport=httpx.MockTransport(handler),
    )


class TestGatewayInterface:
    def test_cannot_instantiate_base_gateway(self):
        with pytest.raises(TypeError):
            PersistenceGateway()

    async def test_check_connection_raises_by_default(self):
        class MinimalGateway(PersistenceGateway):
            name = "minimal"

            async def submit(self, record):
                return None

        with pytest.raises(NotImplementedError) as exc_info:
            await MinimalGateway().check_connection()
        assert "does not implement check_connection" in str(exc_info.value)


class TestRestTableGateway:
    async def test_posts_row_with_credentials(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            row = dict(seen["body"][0], id=7)
            return httpx.Response(201, json=[row])

        result = await _rest_gateway(handler).submit(_record())

        assert result.success
        assert result.stored_record["id"] == 7
        assert seen["url"] == "https://store.example.com/rest/v1/interactions"
        assert seen["headers"]["apikey"] == "service-key"
        assert seen["headers"]["authorization"] == "Bearer service-key"
        assert seen["headers"]["prefer"] == "return=representation"
        assert seen["body"] == [
            {
                "timestamp": NOW.isoformat(),
                "staff_name": "Carson",
                "channel": "WhatsApp",
                "category": "Consoles",
                "wanted_item": "PS5 slim",
                "purchased": False,
                "out_of_stock": True,
            }
        ]

    async def test_empty_response_is_rejected(self):
        result = await _rest_gateway(lambda request: httpx.Response(201, json=[])).submit(_record())
        assert not result.success
        assert result.reason == "Failed to save interaction - no data returned"

    async def test_client_error_carries_field_details(self):
        def handler(request):
            return httpx.Response(
                400,
                json={"code": "23514", "message": "check violation", "details": {"branch": "not allowed"}},
            )

        result = await _rest_gateway(handler).submit(_record())

        assert not result.success
        assert result.reason == "Database error: check violation"
        assert result.details == {"branch": "not allowed"}

    async def test_client_error_without_details(self):
        def handler(request):
            return httpx.Response(409, json={"message": "duplicate key", "details": "Key (id)=(1) exists"})

        result = await _rest_gateway(handler).submit(_record())

        assert not result.success
        assert result.details is None

    async def test_server_error_is_transport_error(self):
        with pytest.raises(TransportError) as exc_info:
            await _rest_gateway(lambda request: httpx.Response(503, text="down")).submit(_record())
        assert exc_info.value.retryable

    async def test_network_failure_is_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError):
            await _rest_gateway(handler).submit(_record())

    async def test_timeout_is_transport_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportError) as exc_info:
            await _rest_gateway(handler).submit(_record())
        assert "did not respond in time" in exc_info.value.message

    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_refused_credentials_are_configuration_error(self, status_code):
        with pytest.raises(ConfigurationError):
            await _rest_gateway(lambda request: httpx.Response(status_code, json={})).submit(_record())

    def test_missing_credentials(self):
        with pytest.raises(ConfigurationError):
            RestTableGateway("https://store.example.com", "")


class TestBuildGateway:
    def test_database_backend(self):
        gateway = build_gateway(Settings(GATEWAY_BACKEND="database"), session_factory=AsyncSessionLocal)
        assert isinstance(gateway, DatabaseGateway)

    def test_rest_backend(self):
        settings = Settings(
            GATEWAY_BACKEND="rest",
            GATEWAY_URL="https://store.example.com",
            GATEWAY_API_KEY="service-key",
            SUBMIT_TIMEOUT_SECONDS=3.0,
        )
        gateway = build_gateway(settings)
        assert isinstance(gateway, RestTableGateway)
        assert gateway.timeout == 3.0

    @pytest.mark.parametrize(
        "url, key",
        [
            (None, None),
            ("https://placeholder.supabase.co", "real-key"),
            ("https://store.example.com", "placeholder-key"),
        ],
    )
    def test_rest_backend_with_placeholders_is_not_configured(self, url, key):
        settings = Settings(GATEWAY_BACKEND="rest", GATEWAY_URL=url, GATEWAY_API_KEY=key)
        assert not settings.gateway_configured
        with pytest.raises(ConfigurationError):
            build_gateway(settings)

    def test_unknown_backend(self):
        settings = Settings(GATEWAY_BACKEND="spreadsheet")
        assert not settings.gateway_configured
        with pytest.raises(ConfigurationError):
            build_gateway(settings)


@pytest.mark.usefixtures("reset_db")
class TestDatabaseGateway:
    async def test_stores_record(self):
        gateway = DatabaseGateway(AsyncSessionLocal)

        result = await gateway.submit(_record())

        assert result.success
        assert result.stored_record["id"] is not None
        assert result.stored_record["branch"] is None
        async with AsyncSessionLocal() as db:
            stored = (await db.execute(select(Interaction))).scalar_one()
        assert stored.wanted_item == "PS5 slim"
        assert stored.out_of_stock is True

    async def test_check_connection(self):
        assert await DatabaseGateway(AsyncSessionLocal).check_connection()
