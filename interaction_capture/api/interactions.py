"""Interactions API endpoints.

Public:
- POST /interactions          submit one answer set
- POST /interactions/resolve  visible/required fields for a partial answer set

Admin:
- GET /interactions           filtered, paginated list
- GET /interactions/export    same filters, CSV download
"""

import logging
from datetime import date
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from interaction_capture.config import Settings, get_settings
from interaction_capture.database import get_db
from interaction_capture.exceptions import (
    ConfigurationError,
    InteractionCaptureError,
    ValidationError,
)
from interaction_capture.middleware.auth import get_current_admin
from interaction_capture.models.admin_user import AdminUser
from interaction_capture.schemas.interaction import (
    InteractionListResponse,
    InteractionResponse,
    ResolveResponse,
    SubmitErrorResponse,
    SubmitSuccessResponse,
)
from interaction_capture.services import form_rules
from interaction_capture.services.form_engine import FormEngine
from interaction_capture.services.interaction_export import export_filename, interactions_to_csv
from interaction_capture.services.interaction_query import (
    InteractionFilters,
    all_interactions,
    list_interactions as query_interactions,
)
from interaction_capture.services.option_cache import OptionCache, get_option_cache
from interaction_capture.services.persistence_gateway import PersistenceGateway, build_gateway

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/interactions", tags=["interactions"])

PurchasedFilter = Literal["true", "false", "null"]


def get_persistence_gateway(settings: Settings = Depends(get_settings)) -> PersistenceGateway:
    """Gateway selected by settings; raises ConfigurationError when incomplete."""
    return build_gateway(settings)


def submission_error_response(exc: InteractionCaptureError) -> JSONResponse:
    """JSON error body for a failed submission, shared with the app-level handler."""
    if isinstance(exc, ValidationError):
        body = SubmitErrorResponse(error=exc.message, details=exc.field_errors)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())

    if isinstance(exc, ConfigurationError):
        logger.error("Submission unavailable, configuration error: %s", exc.message)
        body = SubmitErrorResponse(
            error="Submissions are currently unavailable. Please contact an administrator.",
        )
    else:
        body = SubmitErrorResponse(error=exc.message, retryable=exc.retryable)
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body.model_dump())


@router.post(
    "",
    response_model=SubmitSuccessResponse,
    responses={400: {"model": SubmitErrorResponse}, 503: {"model": SubmitErrorResponse}},
)
async def submit_interaction(
    payload: Dict[str, Any] = Body(..., description="Answer set in the form's camelCase shape"),
    gateway: PersistenceGateway = Depends(get_persistence_gateway),
    option_cache: OptionCache = Depends(get_option_cache),
    settings: Settings = Depends(get_settings),
):
    """
    Submit one customer interaction.

    The server stamps the timestamp; any client-supplied timestamp is ignored.
    """
    cached = await option_cache.get()
    engine = FormEngine(
        gateway,
        options=cached.options,
        submit_timeout=settings.SUBMIT_TIMEOUT_SECONDS,
    )
    engine.load(payload)

    try:
        result = await engine.submit()
    except InteractionCaptureError as exc:
        return submission_error_response(exc)

    if not result.success:
        body = SubmitErrorResponse(error=result.reason or "Failed to save interaction", details=result.details)
        code = status.HTTP_400_BAD_REQUEST if result.details else status.HTTP_502_BAD_GATEWAY
        return JSONResponse(status_code=code, content=body.model_dump())

    return SubmitSuccessResponse(data=result.stored_record or {})


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_fields(
    payload: Dict[str, Any] = Body(..., description="Partial answer set"),
):
    """Visible/required fields for a partial answer set, with hidden answers pruned."""
    answers = form_rules.prune_answers(payload)
    requirements = form_rules.resolve_fields(answers)
    return ResolveResponse(**requirements.as_dict(), answers=answers)


def interaction_filters(
    start_date: Optional[date] = Query(None, description="From this day (inclusive)"),
    end_date: Optional[date] = Query(None, description="Up to the end of this day"),
    staff_name: Optional[str] = Query(None),
    channel: Optional[str] = Query(None),
    branch: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    purchased: Optional[PurchasedFilter] = Query(None, description="true, false or null (not recorded)"),
) -> InteractionFilters:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be after end_date",
        )
    return InteractionFilters(
        start_date=start_date,
        end_date=end_date,
        staff_name=staff_name,
        channel=channel,
        branch=branch,
        category=category,
        purchased=purchased,
    )


def require_local_store(settings: Settings = Depends(get_settings)) -> None:
    if settings.GATEWAY_BACKEND.strip().lower() != "database":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Interactions are stored remotely; browse them in the remote store",
        )


@router.get("", response_model=InteractionListResponse, dependencies=[Depends(require_local_store)])
async def list_interactions(
    filters: InteractionFilters = Depends(interaction_filters),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Filtered interactions, newest first."""
    items, total = await query_interactions(db, filters, page=page, page_size=page_size)
    return InteractionListResponse(
        interactions=[InteractionResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/export", dependencies=[Depends(require_local_store)])
async def export_interactions(
    filters: InteractionFilters = Depends(interaction_filters),
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """All filtered interactions as CSV."""
    items = await all_interactions(db, filters)
    filename = export_filename()
    logger.info("Admin %s exported %s interactions", admin.email, len(items))
    return Response(
        content=interactions_to_csv(items),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
