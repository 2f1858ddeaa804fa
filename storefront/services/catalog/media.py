"""Product and site media uploads to object storage."""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import PurePosixPath
from typing import Literal

from storefront.config import settings
from storefront.errors import ValidationFailure
from storefront.models.product import Product, ProductUpdate
from storefront.models.settings import AssetKind, SiteSettings, SiteSettingsUpdate
from storefront.services.clients.object_storage import ObjectStorage
from storefront.services.icons.imaging import convert_to_webp
from storefront.services.storage.product_store import ProductStore
from storefront.services.storage.settings_store import SettingsStore

logger = logging.getLogger(__name__)

MediaKind = Literal["image", "video"]

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

_ASSET_FIELDS: dict[str, str] = {
    "logo": "logo_url",
    "favicon": "favicon_url",
    "og_image": "og_image",
    "desktop_screenshot": "pwa_desktop_screenshot",
    "mobile_screenshot": "pwa_mobile_screenshot",
}


def safe_filename(filename: str | None, default: str = "upload") -> str:
    """Keep the base name of ``filename`` with only ASCII-safe characters."""

    base = PurePosixPath((filename or "").replace("\\", "/")).name
    cleaned = _UNSAFE_CHARS.sub("-", base.encode("ascii", "ignore").decode()).strip("-.")
    return cleaned or default


def _expect_content_type(kind: str, content_type: str | None) -> None:
    if content_type and not content_type.startswith(f"{kind}/"):
        raise ValidationFailure(f"Expected a {kind} file, got {content_type}")


async def upload_product_media(
    storage: ObjectStorage,
    products: ProductStore,
    product_id: str,
    kind: MediaKind,
    *,
    filename: str | None,
    data: bytes,
    content_type: str | None,
) -> Product:
    """Store an image (plus a WebP rendition) or a video for a product."""

    await products.get_product(product_id)
    if not data:
        raise ValidationFailure("Uploaded file is empty")
    _expect_content_type(kind, content_type)

    name = safe_filename(filename, default=kind)
    folder = f"products/{product_id}"
    bucket = settings.MEDIA_BUCKET

    if kind == "video":
        url = await storage.upload(
            bucket, f"{folder}/{name}", data, content_type=content_type or "video/mp4"
        )
        changes = ProductUpdate(video_url=url, primary_media_type="video")
    else:
        webp_payload = await asyncio.to_thread(
            convert_to_webp, data, quality=settings.WEBP_QUALITY
        )
        image_url = await storage.upload(
            bucket, f"{folder}/{name}", data, content_type=content_type or "image/png"
        )
        webp_url = await storage.upload(
            bucket,
            f"{folder}/{PurePosixPath(name).stem}.webp",
            webp_payload,
            content_type="image/webp",
        )
        changes = ProductUpdate(image_url=image_url, webp_url=webp_url)

    logger.info("Uploaded %s for product %s", kind, product_id)
    return await products.update_product(product_id, changes)


async def remove_product_media(
    storage: ObjectStorage,
    products: ProductStore,
    product_id: str,
    kind: MediaKind,
) -> Product:
    """Delete the stored media of one kind and clear its references.

    The other kind becomes primary. URLs that were not issued by
    ``storage`` are only cleared.
    """
    product = await products.get_product(product_id)
    if kind == "video":
        urls = [product.video_url]
        changes = ProductUpdate(video_url=None, primary_media_type="image")
    else:
        urls = [product.image_url, product.webp_url]
        primary = "video" if product.video_url else "image"
        changes = ProductUpdate(image_url=None, webp_url=None, primary_media_type=primary)

    bucket = settings.MEDIA_BUCKET
    for url in urls:
        path = storage.object_path(bucket, url)
        if path is not None:
            await storage.remove(bucket, path)
            logger.info("Removed %s object %s for product %s", kind, path, product_id)

    return await products.update_product(product_id, changes)


async def upload_site_asset(
    storage: ObjectStorage,
    settings_store: SettingsStore,
    kind: AssetKind,
    *,
    filename: str | None,
    data: bytes,
    content_type: str | None,
) -> SiteSettings:
    """Store a logo, favicon, Open Graph image or PWA screenshot.

    The matching settings field is pointed at the uploaded URL.
    """

    if not data:
        raise ValidationFailure("Uploaded file is empty")
    _expect_content_type("image", content_type)

    path = f"sitesettings/{kind}-{safe_filename(filename, default=kind)}"
    url = await storage.upload(
        settings.MEDIA_BUCKET, path, data, content_type=content_type or "image/png"
    )
    return await settings_store.update(SiteSettingsUpdate(**{_ASSET_FIELDS[kind]: url}))
