"""Shared FastAPI dependencies for the admin surface."""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from storefront.models.settings import SiteSettings
from storefront.services.clients.object_storage import ObjectStorage, ObjectStorageDependency
from storefront.services.security.passwords import verify_password
from storefront.services.storage.settings_store import SettingsStoreDependency

logger = logging.getLogger(__name__)


async def require_admin(
    store: SettingsStoreDependency,
    x_admin_password: Annotated[str | None, Header()] = None,
) -> SiteSettings:
    """Reject the request unless ``X-Admin-Password`` matches the stored hash."""

    record = await store.load()
    if not await asyncio.to_thread(
        verify_password, x_admin_password, record.admin_password_hash
    ):
        logger.warning("Rejected admin request with invalid password")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin password",
        )
    return record


def require_storage(storage: ObjectStorageDependency) -> ObjectStorage:
    if storage is None:
        logger.warning("Upload requested but object storage is not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Object storage is not configured in this environment",
        )
    return storage


AdminDependency = Annotated[SiteSettings, Depends(require_admin)]
StorageDependency = Annotated[ObjectStorage, Depends(require_storage)]
