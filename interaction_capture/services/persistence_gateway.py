"""Persistence gateways - where accepted interaction records are stored.

The form engine only ever calls ``submit(record)``. Two implementations:

- ``DatabaseGateway``: inserts into the local ``interactions`` table through
  async SQLAlchemy.
- ``RestTableGateway``: posts the row to a hosted PostgREST-style table API
  (``/rest/v1/<table>``) over HTTPS with httpx.

Outcome contract:
- accepted or rejected by the store -> ``SubmitResult``;
- unreachable, failing or slow store -> ``TransportError``;
- missing or refused credentials -> ``ConfigurationError``.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import httpx
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from interaction_capture.config import Settings
from interaction_capture.exceptions import ConfigurationError, TransportError
from interaction_capture.models.interaction import Interaction
from interaction_capture.services.record_validator import InteractionRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmitResult:
    """Outcome of a submission the store actually answered."""

    success: bool
    stored_record: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None
    details: Optional[Dict[str, str]] = None

    @classmethod
    def accepted(cls, stored_record: Dict[str, Any]) -> "SubmitResult":
        return cls(success=True, stored_record=stored_record)

    @classmethod
    def rejected(cls, reason: str, details: Optional[Dict[str, str]] = None) -> "SubmitResult":
        return cls(success=False, reason=reason, details=details or None)


class PersistenceGateway(ABC):
    """Abstract store for accepted interaction records.

    Attributes:
        name: Backend identifier ("database", "rest")
    """

    name: str

    @abstractmethod
    async def submit(self, record: InteractionRecord) -> SubmitResult:
        """Store one validated record.

        Returns:
            SubmitResult with the stored row on success, or the store's reason
            (and field details when it sent any) on rejection.

        Raises:
            TransportError: store unreachable, failing or too slow
            ConfigurationError: credentials missing or refused
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} does not implement submit"
        )

    async def check_connection(self) -> bool:
        """Cheap reachability probe used by health checks."""
        raise NotImplementedError(
            f"{self.__class__.__name__} does not implement check_connection"
        )


def serialize_interaction(interaction: Interaction) -> Dict[str, Any]:
    """Stored row as returned to API callers (snake_case, ISO timestamps)."""

    def _iso(value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

    return {
        "id": interaction.id,
        "timestamp": _iso(interaction.timestamp),
        "staff_name": interaction.staff_name,
        "channel": interaction.channel,
        "other_channel": interaction.other_channel,
        "branch": interaction.branch,
        "category": interaction.category,
        "other_category": interaction.other_category,
        "wanted_item": interaction.wanted_item,
        "purchased": interaction.purchased,
        "out_of_stock": interaction.out_of_stock,
        "created_at": _iso(interaction.created_at),
    }


class DatabaseGateway(PersistenceGateway):
    """Stores records in the local database."""

    name = "database"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def submit(self, record: InteractionRecord) -> SubmitResult:
        try:
            async with self._session_factory() as db:
                interaction = Interaction(**record.to_row())
                db.add(interaction)
                await db.commit()
                await db.refresh(interaction)
                logger.info(
                    "Interaction saved: id=%s staff=%s channel=%s category=%s",
                    interaction.id,
                    interaction.staff_name,
                    interaction.channel,
                    interaction.category,
                )
                return SubmitResult.accepted(serialize_interaction(interaction))
        except IntegrityError as exc:
            logger.warning("Interaction rejected by database constraints: %s", exc.orig)
            return SubmitResult.rejected(f"Database error: {exc.orig}")
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Database unavailable while saving interaction: %s", exc)
            raise TransportError(cause=exc) from exc

    async def check_connection(self) -> bool:
        from sqlalchemy import text

        try:
            async with self._session_factory() as db:
                await db.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("Database health check failed: %s", exc)
            return False


class RestTableGateway(PersistenceGateway):
    """
    Stores records in a hosted table exposed through a PostgREST-style API.

    Insert: ``POST {base_url}/rest/v1/{table}`` with ``Prefer: return=representation``
    so the stored row comes back in the response body.
    """

    name = "rest"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        table: str = "interactions",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not base_url or not api_key:
            raise ConfigurationError("Remote store URL and API key are required")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key.strip()
        self.table = table
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    @staticmethod
    def _row_payload(record: InteractionRecord) -> Dict[str, Any]:
        row = record.to_row()
        row["timestamp"] = record.timestamp.isoformat()
        return row

    @staticmethod
    def _error_body(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except (json.JSONDecodeError, ValueError):
            return {"message": response.text[:500]}
        return body if isinstance(body, dict) else {"message": str(body)[:500]}

    async def submit(self, record: InteractionRecord) -> SubmitResult:
        endpoint = f"/rest/v1/{self.table}"
        try:
            async with self._client() as client:
                response = await client.post(
                    endpoint,
                    headers=self._headers(),
                    json=[self._row_payload(record)],
                )
        except httpx.TimeoutException as exc:
            logger.warning("Remote store timeout on %s", endpoint)
            raise TransportError("The data store did not respond in time. Please try again.", cause=exc) from exc
        except httpx.HTTPError as exc:
            logger.error("Remote store request failed %s: %s", endpoint, exc)
            raise TransportError(cause=exc) from exc

        if response.status_code in (401, 403):
            logger.error("Remote store refused credentials (%s) on %s", response.status_code, endpoint)
            raise ConfigurationError("The data store rejected the configured credentials")

        if response.status_code >= 500:
            logger.error(
                "Remote store error %s %s: %s",
                response.status_code,
                endpoint,
                response.text[:500],
            )
            raise TransportError()

        if response.status_code >= 400:
            body = self._error_body(response)
            details = body.get("details")
            logger.warning(
                "Remote store rejected interaction %s: code=%s message=%s hint=%s",
                response.status_code,
                body.get("code"),
                body.get("message"),
                body.get("hint"),
            )
            return SubmitResult.rejected(
                f"Database error: {body.get('message') or response.reason_phrase}",
                details=details if isinstance(details, dict) else None,
            )

        try:
            rows = response.json()
        except (json.JSONDecodeError, ValueError):
            rows = None
        if isinstance(rows, dict):
            rows = [rows]
        if not rows:
            logger.error("Remote store returned no data for insert on %s", endpoint)
            return SubmitResult.rejected("Failed to save interaction - no data returned")

        logger.info("Interaction saved to remote store: id=%s", rows[0].get("id"))
        return SubmitResult.accepted(rows[0])

    async def check_connection(self) -> bool:
        try:
            async with self._client() as client:
                response = await client.get(
                    f"/rest/v1/{self.table}",
                    headers=self._headers(),
                    params={"select": "id", "limit": 1},
                )
            return response.status_code < 400
        except httpx.HTTPError as exc:
            logger.warning("Remote store health check failed: %s", exc)
            return False


def build_gateway(
    settings: Settings,
    *,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> PersistenceGateway:
    """Create the gateway selected by ``GATEWAY_BACKEND``.

    Raises:
        ConfigurationError: unknown backend or missing remote credentials
    """
    backend = (settings.GATEWAY_BACKEND or "").strip().lower()
    if backend == "database":
        if session_factory is None:
            from interaction_capture.database import AsyncSessionLocal

            session_factory = AsyncSessionLocal
        return DatabaseGateway(session_factory)

    if backend == "rest":
        if not settings.gateway_configured:
            raise ConfigurationError(
                "Remote store not configured. Set GATEWAY_URL and GATEWAY_API_KEY."
            )
        return RestTableGateway(
            settings.GATEWAY_URL,
            settings.GATEWAY_API_KEY,
            table=settings.GATEWAY_TABLE,
            timeout=settings.SUBMIT_TIMEOUT_SECONDS,
        )

    raise ConfigurationError(f"Unknown GATEWAY_BACKEND: {settings.GATEWAY_BACKEND!r}")
