"""Public site settings, manifest and access gate routes."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, status

from storefront.config import settings
from storefront.models.settings import (
    AdminGateRequest,
    GateResponse,
    PublicSiteSettings,
    StorefrontGateRequest,
)
from storefront.services.icons.manifest import build_manifest
from storefront.services.security.passwords import verify_password
from storefront.services.storage.settings_store import SettingsStoreDependency

logger = logging.getLogger(__name__)

router = APIRouter(tags=["site"])


@router.get(
    "/settings",
    response_model=PublicSiteSettings,
    summary="Public appearance, Open Graph and PWA settings",
)
async def read_settings(store: SettingsStoreDependency) -> PublicSiteSettings:
    record = await store.load()
    return record.public_view()


@router.get("/manifest.webmanifest", summary="Web app manifest")
async def read_manifest(store: SettingsStoreDependency) -> dict[str, Any]:
    return build_manifest(await store.load())


@router.post(
    "/gate/storefront",
    response_model=GateResponse,
    summary="Pass the age and password gate",
)
async def enter_storefront(
    payload: StorefrontGateRequest,
    store: SettingsStoreDependency,
) -> GateResponse:
    if not payload.age_confirmed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Please confirm that you are {settings.MINIMUM_AGE} years or older.",
        )

    record = await store.load()
    if not await asyncio.to_thread(
        verify_password, payload.password, record.storefront_password_hash
    ):
        logger.info("Storefront gate denied")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please enter the correct password to access the site.",
        )

    return GateResponse(welcome_instructions=record.welcome_instructions)


@router.post(
    "/gate/admin",
    response_model=GateResponse,
    summary="Check the admin password",
)
async def enter_admin(
    payload: AdminGateRequest,
    store: SettingsStoreDependency,
) -> GateResponse:
    record = await store.load()
    if not await asyncio.to_thread(
        verify_password, payload.password, record.admin_password_hash
    ):
        logger.info("Admin gate denied")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin password",
        )
    return GateResponse()
