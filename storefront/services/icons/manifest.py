"""Web app manifest rendering and publication."""

from __future__ import annotations

import json
import logging
from typing import Any

from storefront.config import settings
from storefront.models.settings import SiteSettings
from storefront.services.clients.object_storage import ObjectStorage

logger = logging.getLogger(__name__)

MANIFEST_PATH = "manifest.json"
DEFAULT_APP_NAME = "Storefront"


def _manifest_icons(record: SiteSettings) -> list[dict[str, str]]:
    icons: list[dict[str, str]] = []
    for icon in record.pwa_icons:
        if icon.src:
            icons.append(
                {"src": icon.src, "sizes": icon.sizes, "type": icon.type, "purpose": icon.purpose}
            )
        if icon.webp:
            icons.append(
                {"src": icon.webp, "sizes": icon.sizes, "type": "image/webp", "purpose": icon.purpose}
            )
    return icons


def _screenshots(record: SiteSettings) -> list[dict[str, str]]:
    screenshots = []
    if record.pwa_desktop_screenshot:
        screenshots.append({"src": record.pwa_desktop_screenshot, "form_factor": "wide"})
    if record.pwa_mobile_screenshot:
        screenshots.append({"src": record.pwa_mobile_screenshot, "form_factor": "narrow"})
    return screenshots


def build_manifest(record: SiteSettings) -> dict[str, Any]:
    """Render the manifest described by the settings record."""

    name = record.pwa_name or record.og_title or DEFAULT_APP_NAME
    manifest: dict[str, Any] = {
        "name": name,
        "short_name": record.pwa_short_name or name,
        "description": record.pwa_description or record.og_description or "",
        "start_url": record.pwa_start_url,
        "scope": record.pwa_scope,
        "display": record.pwa_display,
        "orientation": record.pwa_orientation,
        "icons": _manifest_icons(record),
    }
    if record.pwa_theme_color:
        manifest["theme_color"] = record.pwa_theme_color
    if record.pwa_background_color:
        manifest["background_color"] = record.pwa_background_color

    screenshots = _screenshots(record)
    if screenshots:
        manifest["screenshots"] = screenshots
    return manifest


async def publish_manifest(
    storage: ObjectStorage, record: SiteSettings
) -> tuple[str, dict[str, Any]]:
    """Upload ``manifest.json`` to the static bucket, overwriting the previous one."""

    manifest = build_manifest(record)
    url = await storage.upload(
        settings.STATIC_BUCKET,
        MANIFEST_PATH,
        json.dumps(manifest, indent=2).encode("utf-8"),
        content_type="application/json",
        upsert=True,
    )
    logger.info("Manifest published", extra={"url": url, "icons": len(manifest["icons"])})
    return url, manifest
