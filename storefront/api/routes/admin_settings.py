"""Admin routes for site appearance, Open Graph, PWA fields and passwords."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile, status

from storefront.api.dependencies import StorageDependency, require_admin
from storefront.models.settings import (
    AssetKind,
    PasswordUpdate,
    PublicSiteSettings,
    SiteSettingsUpdate,
)
from storefront.services.catalog.media import upload_site_asset
from storefront.services.storage.settings_store import SettingsStoreDependency

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/settings",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=PublicSiteSettings, summary="Read site settings")
async def read_settings(store: SettingsStoreDependency) -> PublicSiteSettings:
    return (await store.load()).public_view()


@router.patch("", response_model=PublicSiteSettings, summary="Update site settings")
async def update_settings(
    payload: SiteSettingsUpdate,
    store: SettingsStoreDependency,
) -> PublicSiteSettings:
    return (await store.update(payload)).public_view()


@router.put(
    "/passwords",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Replace the storefront and/or admin password",
)
async def update_passwords(payload: PasswordUpdate, store: SettingsStoreDependency) -> None:
    await store.set_passwords(payload)


@router.post(
    "/assets/{kind}",
    response_model=PublicSiteSettings,
    summary="Upload the logo, favicon, Open Graph image or a PWA screenshot",
)
async def upload_asset(
    kind: AssetKind,
    file: Annotated[UploadFile, File(...)],
    store: SettingsStoreDependency,
    storage: StorageDependency,
) -> PublicSiteSettings:
    try:
        data = await file.read()
    finally:
        await file.close()

    record = await upload_site_asset(
        storage,
        store,
        kind,
        filename=file.filename,
        data=data,
        content_type=file.content_type,
    )
    return record.public_view()
