"""Form option endpoints.

Public:
- GET /form-options                   the four dropdowns, via the option cache

Admin (per kind: staff, channel, category, branch):
- GET    /form-options/{kind}
- POST   /form-options/{kind}
- PATCH  /form-options/{kind}/{option_id}
- DELETE /form-options/{kind}/{option_id}
- POST   /form-options/{kind}/{option_id}/move

Every admin mutation invalidates the option cache.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from interaction_capture.config import Settings, get_settings
from interaction_capture.database import get_db
from interaction_capture.middleware.auth import get_current_admin
from interaction_capture.models.admin_user import AdminUser
from interaction_capture.models.form_option import FormOption
from interaction_capture.schemas.form_option import (
    FormOptionCreateRequest,
    FormOptionMoveRequest,
    FormOptionMoveResponse,
    FormOptionResponse,
    FormOptionUpdateRequest,
    OptionKind,
    PublicFormOptionsResponse,
)
from interaction_capture.services import form_options as options_service
from interaction_capture.services.option_cache import OptionCache, get_option_cache

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/form-options", tags=["form-options"])


@router.get("", response_model=PublicFormOptionsResponse)
async def get_form_options(
    option_cache: OptionCache = Depends(get_option_cache),
    settings: Settings = Depends(get_settings),
):
    """Active options for the interaction form. Never empty: falls back to defaults."""
    cached = await option_cache.get()
    submissions_enabled = settings.gateway_configured
    if not submissions_enabled:
        logger.error(
            "Data store not configured (GATEWAY_BACKEND=%s); submissions disabled",
            settings.GATEWAY_BACKEND,
        )
    return PublicFormOptionsResponse.from_sets(
        cached.options.as_dict(),
        source=cached.source,
        submissions_enabled=submissions_enabled,
    )


async def _get_option_or_404(db: AsyncSession, kind: str, option_id: int) -> FormOption:
    option = await options_service.get_option(db, kind, option_id)
    if not option:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Option not found")
    return option


@router.get("/{kind}", response_model=list[FormOptionResponse])
async def list_form_options(
    kind: OptionKind,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """All options of one kind, active and inactive, in display order."""
    options = await options_service.list_options(db, kind)
    return [FormOptionResponse.model_validate(option) for option in options]


@router.post("/{kind}", response_model=FormOptionResponse, status_code=status.HTTP_201_CREATED)
async def add_form_option(
    kind: OptionKind,
    payload: FormOptionCreateRequest,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    option_cache: OptionCache = Depends(get_option_cache),
):
    if await options_service.find_option_by_name(db, kind, payload.name):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"'{payload.name}' already exists",
        )
    try:
        option = await options_service.add_option(db, kind, payload.name)
    except IntegrityError:
        # Lost a race with a concurrent add of the same name.
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"'{payload.name}' already exists",
        )
    option_cache.invalidate()
    return FormOptionResponse.model_validate(option)


@router.patch("/{kind}/{option_id}", response_model=FormOptionResponse)
async def update_form_option(
    kind: OptionKind,
    option_id: int,
    payload: FormOptionUpdateRequest,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    option_cache: OptionCache = Depends(get_option_cache),
):
    option = await _get_option_or_404(db, kind, option_id)
    if payload.name is not None and payload.name != option.name:
        if await options_service.find_option_by_name(db, kind, payload.name):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"'{payload.name}' already exists",
            )
    try:
        option = await options_service.update_option(db, option, name=payload.name, active=payload.active)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"'{payload.name}' already exists",
        )
    option_cache.invalidate()
    return FormOptionResponse.model_validate(option)


@router.delete("/{kind}/{option_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_form_option(
    kind: OptionKind,
    option_id: int,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    option_cache: OptionCache = Depends(get_option_cache),
):
    option = await _get_option_or_404(db, kind, option_id)
    await options_service.delete_option(db, option)
    option_cache.invalidate()


@router.post("/{kind}/{option_id}/move", response_model=FormOptionMoveResponse)
async def move_form_option(
    kind: OptionKind,
    option_id: int,
    payload: FormOptionMoveRequest,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    option_cache: OptionCache = Depends(get_option_cache),
):
    """Swap with the neighbour above or below. No-op at either end."""
    option = await _get_option_or_404(db, kind, option_id)
    moved = await options_service.move_option(db, option, payload.direction)
    if moved:
        option_cache.invalidate()
    options = await options_service.list_options(db, kind)
    return FormOptionMoveResponse(
        moved=moved,
        options=[FormOptionResponse.model_validate(item) for item in options],
    )
