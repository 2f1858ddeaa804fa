"""Redis-backed singleton site settings record."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from storefront.config import settings
from storefront.models.icons import IconArtifact
from storefront.models.settings import (
    PasswordUpdate,
    PWAIcon,
    SiteSettings,
    SiteSettingsUpdate,
    utcnow,
)
from storefront.services.security.passwords import hash_password
from storefront.services.storage.redis_client import get_redis_client, key

logger = logging.getLogger(__name__)

# fields that always carry a value in the stored record
_REQUIRED_PWA_FIELDS = ("pwa_display", "pwa_orientation", "pwa_start_url", "pwa_scope")


def merge_icons(
    current: Iterable[PWAIcon], artifacts: Iterable[IconArtifact]
) -> list[PWAIcon]:
    """Fold uploaded artifacts into the manifest icon list.

    One entry per size and purpose: the PNG URL goes to ``src`` and the
    WebP URL to ``webp``. Entries without a new artifact are kept.
    """
    icons: dict[tuple[str, str], PWAIcon] = {
        (icon.sizes, icon.purpose): icon.model_copy() for icon in current
    }
    for artifact in artifacts:
        if not artifact.url:
            continue
        sizes = f"{artifact.size}x{artifact.size}"
        entry = icons.setdefault(
            (sizes, artifact.purpose), PWAIcon(sizes=sizes, purpose=artifact.purpose)
        )
        if artifact.format == "png":
            entry.src = artifact.url
            entry.type = artifact.content_type
        else:
            entry.webp = artifact.url

    def _order(item: PWAIcon) -> tuple[int, int]:
        width = item.sizes.split("x", 1)[0]
        return (int(width) if width.isdigit() else 0, item.purpose == "maskable")

    return sorted(icons.values(), key=_order)


class SettingsStore:
    """Loads and saves the single settings document."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client
        self._key = key("site_settings")

    async def load(self) -> SiteSettings:
        """Return the settings record, creating the default one if missing."""

        raw = await self._client.get(self._key)
        if raw:
            return SiteSettings.model_validate_json(raw)

        record = SiteSettings(updated_at=utcnow())
        if settings.STOREFRONT_PASSWORD:
            record.storefront_password_hash = await asyncio.to_thread(
                hash_password, settings.STOREFRONT_PASSWORD
            )
        if settings.ADMIN_PASSWORD:
            record.admin_password_hash = await asyncio.to_thread(
                hash_password, settings.ADMIN_PASSWORD
            )

        created = await self._client.set(self._key, record.model_dump_json(), nx=True)
        if not created:
            # another request initialized it first
            return SiteSettings.model_validate_json(await self._client.get(self._key))
        logger.info("Initialized default site settings")
        return record

    async def update(self, changes: SiteSettingsUpdate) -> SiteSettings:
        current = await self.load()
        updates = changes.model_dump(exclude_unset=True)
        for required in _REQUIRED_PWA_FIELDS:
            if updates.get(required, "") is None:
                updates.pop(required)
        merged = {**current.model_dump(), **updates, "updated_at": utcnow()}
        record = SiteSettings.model_validate(merged)
        await self._save(record)
        logger.info("Updated site settings", extra={"fields": sorted(updates)})
        return record

    async def set_passwords(self, passwords: PasswordUpdate) -> SiteSettings:
        record = await self.load()
        if passwords.storefront_password:
            record.storefront_password_hash = await asyncio.to_thread(
                hash_password, passwords.storefront_password
            )
        if passwords.admin_password:
            record.admin_password_hash = await asyncio.to_thread(
                hash_password, passwords.admin_password
            )
        record.updated_at = utcnow()
        await self._save(record)
        logger.info("Updated gate passwords")
        return record

    async def register_icons(self, artifacts: Iterable[IconArtifact]) -> SiteSettings:
        record = await self.load()
        record.pwa_icons = merge_icons(record.pwa_icons, artifacts)
        record.updated_at = utcnow()
        await self._save(record)
        logger.info("Registered PWA icons", extra={"icon_entries": len(record.pwa_icons)})
        return record

    async def _save(self, record: SiteSettings) -> None:
        await self._client.set(self._key, record.model_dump_json())


def get_settings_store(
    client: Annotated[redis.Redis, Depends(get_redis_client)],
) -> SettingsStore:
    """FastAPI dependency factory."""

    return SettingsStore(client)


SettingsStoreDependency = Annotated[SettingsStore, Depends(get_settings_store)]
