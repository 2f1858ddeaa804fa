"""Product and category domain models and API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from storefront.models.settings import utcnow

MediaType = Literal["image", "video"]


class ProductFields(BaseModel):
    """Editable product attributes shared by the write and read shapes."""

    description: str | None = None
    strain: str | None = None
    potency: str | None = Field(
        None,
        description="Free-form potency label such as '23%'",
    )
    categories: list[str] = Field(default_factory=list)
    stock: int | None = Field(None, ge=0)
    regular_price: float | None = Field(None, ge=0)
    shipping_price: float | None = Field(None, ge=0)
    image_url: str | None = None
    webp_url: str | None = None
    video_url: str | None = None
    primary_media_type: MediaType = "image"


class ProductCreate(ProductFields):
    """Payload accepted when an admin creates a product."""

    name: str = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Product name is required")
        return stripped


class ProductUpdate(BaseModel):
    """Partial update; only fields explicitly sent are applied."""

    name: str | None = Field(None, min_length=1)
    description: str | None = None
    strain: str | None = None
    potency: str | None = None
    categories: list[str] | None = None
    stock: int | None = Field(None, ge=0)
    regular_price: float | None = Field(None, ge=0)
    shipping_price: float | None = Field(None, ge=0)
    image_url: str | None = None
    webp_url: str | None = None
    video_url: str | None = None
    primary_media_type: MediaType | None = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        if not stripped:
            raise ValueError("Product name is required")
        return stripped


class Product(ProductCreate):
    """Stored representation of a catalog product."""

    id: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ProductCard(BaseModel):
    """Display-ready product returned by the storefront endpoints."""

    id: str
    name: str
    description: str = ""
    strain: str | None = None
    potency: str | None = None
    categories: list[str] = Field(default_factory=list)
    stock: int | None = None
    regular_price: float | None = Field(
        None,
        description="Omitted when the stored price is absent or not positive",
    )
    shipping_price: float | None = None
    image_url: str
    webp_url: str | None = None
    video_url: str | None = None
    primary_media_type: MediaType = "image"
    has_placeholder: bool = False


class CategoryCreate(BaseModel):
    """Payload accepted when creating or renaming a category."""

    name: str = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Category name is required")
        return stripped


class Category(CategoryCreate):
    """Stored representation of a category."""

    id: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ImportSummary(BaseModel):
    """Result of a CSV product import."""

    imported: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)
    product_ids: list[str] = Field(default_factory=list)
