"""Site settings, PWA manifest and access gate schemas."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from storefront.config import BCRYPT_MAX_PASSWORD_BYTES

DisplayMode = Literal["fullscreen", "standalone", "minimal-ui", "browser"]
Orientation = Literal[
    "any",
    "natural",
    "landscape",
    "portrait",
    "portrait-primary",
    "portrait-secondary",
    "landscape-primary",
    "landscape-secondary",
]
AssetKind = Literal[
    "logo", "favicon", "og_image", "desktop_screenshot", "mobile_screenshot"
]


class PWAIcon(BaseModel):
    """Icon entry as stored in the settings record and listed in the manifest."""

    src: str | None = None
    webp: str | None = None
    sizes: str
    type: str = "image/png"
    purpose: Literal["any", "maskable"] = "any"


class AppearanceFields(BaseModel):
    logo_url: str | None = None
    favicon_url: str | None = None
    primary_color: str | None = None
    secondary_color: str | None = None
    header_color: str | None = None
    header_opacity: float | None = Field(None, ge=0, le=1)
    site_color: str | None = None
    site_opacity: float | None = Field(None, ge=0, le=1)
    font_family: str | None = None


class OpenGraphFields(BaseModel):
    og_title: str | None = None
    og_description: str | None = None
    og_image: str | None = None
    og_url: str | None = None


class PWAFields(BaseModel):
    pwa_name: str | None = None
    pwa_short_name: str | None = None
    pwa_description: str | None = None
    pwa_display: DisplayMode = "standalone"
    pwa_orientation: Orientation = "portrait"
    pwa_theme_color: str | None = None
    pwa_background_color: str | None = None
    pwa_start_url: str = "/"
    pwa_scope: str = "/"
    pwa_desktop_screenshot: str | None = None
    pwa_mobile_screenshot: str | None = None


class PublicSiteSettings(AppearanceFields, OpenGraphFields, PWAFields):
    """Settings exposed without authentication."""

    pwa_icons: list[PWAIcon] = Field(default_factory=list)
    welcome_instructions: str | None = None
    updated_at: datetime | None = None


class SiteSettings(PublicSiteSettings):
    """The singleton settings record, including gate password hashes."""

    storefront_password_hash: str | None = Field(None, repr=False)
    admin_password_hash: str | None = Field(None, repr=False)

    def public_view(self) -> PublicSiteSettings:
        return PublicSiteSettings(
            **self.model_dump(exclude={"storefront_password_hash", "admin_password_hash"})
        )


class SiteSettingsUpdate(BaseModel):
    """Partial update of the appearance, Open Graph, PWA and welcome fields."""

    logo_url: str | None = None
    favicon_url: str | None = None
    primary_color: str | None = None
    secondary_color: str | None = None
    header_color: str | None = None
    header_opacity: float | None = Field(None, ge=0, le=1)
    site_color: str | None = None
    site_opacity: float | None = Field(None, ge=0, le=1)
    font_family: str | None = None
    og_title: str | None = None
    og_description: str | None = None
    og_image: str | None = None
    og_url: str | None = None
    pwa_name: str | None = None
    pwa_short_name: str | None = None
    pwa_description: str | None = None
    pwa_display: DisplayMode | None = None
    pwa_orientation: Orientation | None = None
    pwa_theme_color: str | None = None
    pwa_background_color: str | None = None
    pwa_start_url: str | None = None
    pwa_scope: str | None = None
    pwa_desktop_screenshot: str | None = None
    pwa_mobile_screenshot: str | None = None
    welcome_instructions: str | None = None


class PasswordUpdate(BaseModel):
    """New gate passwords; omitted entries keep their current value."""

    storefront_password: str | None = Field(None, min_length=1)
    admin_password: str | None = Field(None, min_length=1)

    @field_validator("storefront_password", "admin_password")
    @classmethod
    def _fits_bcrypt(cls, value: str | None) -> str | None:
        if value is not None and len(value.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(
                f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes"
            )
        return value


class StorefrontGateRequest(BaseModel):
    password: str
    age_confirmed: bool = False


class AdminGateRequest(BaseModel):
    password: str


class GateResponse(BaseModel):
    granted: bool = True
    welcome_instructions: str | None = None


class ManifestPublishResponse(BaseModel):
    url: str
    manifest: dict


def utcnow() -> datetime:
    return datetime.now(UTC)
