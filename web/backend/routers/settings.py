#!/usr/bin/env python3
"""
Settings endpoints - admin control of thresholds, quotas and the allowlist.
"""

import logging

from fastapi import APIRouter, Depends

from core.app_context import AppContext
from ..dependencies import get_app_context
from ..services.settings_service import SettingsService
from ..models.requests import SettingUpdate, AllowlistRequest
from ..models.responses import SettingItem, SettingsResponse, AllowlistResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["settings"])


def get_settings_service(ctx: AppContext = Depends(get_app_context)) -> SettingsService:
    return SettingsService(ctx.settings)


@router.get("", response_model=SettingsResponse)
def list_settings(service: SettingsService = Depends(get_settings_service)):
    """List every known setting with its current value."""
    return SettingsResponse(
        success=True,
        settings=[SettingItem(**item) for item in service.list_settings()]
    )


@router.put("/{key}", response_model=SettingItem)
def update_setting(
    key: str,
    update: SettingUpdate,
    service: SettingsService = Depends(get_settings_service)
):
    """
    Update one setting. Takes effect on the next read; no restart needed.
    """
    value = service.update_setting(key, update.value, update.description)
    logger.info(f"Setting {key} updated to {value!r}")
    return SettingItem(key=key, value=value, description=update.description)


@router.post("/allowlist/grant", response_model=AllowlistResponse)
def grant_allowlist(
    body: AllowlistRequest,
    service: SettingsService = Depends(get_settings_service)
):
    return AllowlistResponse(success=True, allowlist=service.provider.grant_allowlist(body.identifier))


@router.post("/allowlist/revoke", response_model=AllowlistResponse)
def revoke_allowlist(
    body: AllowlistRequest,
    service: SettingsService = Depends(get_settings_service)
):
    return AllowlistResponse(success=True, allowlist=service.provider.revoke_allowlist(body.identifier))
