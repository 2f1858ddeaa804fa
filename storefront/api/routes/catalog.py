"""Public storefront catalog routes."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Query

from storefront.config import settings
from storefront.models.catalog import ALL_CATEGORIES, SortKey, ViewFilterState
from storefront.models.product import Category, ProductCard
from storefront.services.catalog.view_engine import (
    collect_category_labels,
    derive_view,
    present_product,
)
from storefront.services.storage.category_store import CategoryStoreDependency
from storefront.services.storage.product_store import ProductStoreDependency

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog"])


@router.get(
    "/products",
    response_model=list[ProductCard],
    summary="List products matching the storefront filters",
)
async def list_products(
    products: ProductStoreDependency,
    search: Annotated[str, Query(description="Substring matched against product names")] = "",
    category: Annotated[str, Query(description="'all' or a category label")] = ALL_CATEGORIES,
    sort: Annotated[SortKey | None, Query(description="Sort key")] = None,
) -> list[ProductCard]:
    view_filter = ViewFilterState(search=search, category=category, sort=sort)
    visible = derive_view(await products.list_products(), view_filter)
    logger.debug(
        "Catalog view derived",
        extra={"filter": view_filter.model_dump(), "visible": len(visible)},
    )
    return [present_product(product, settings.PLACEHOLDER_IMAGE_URL) for product in visible]


@router.get(
    "/products/categories",
    response_model=list[str],
    summary="Category labels used by at least one product",
)
async def list_product_labels(products: ProductStoreDependency) -> list[str]:
    return collect_category_labels(await products.list_products())


@router.get(
    "/products/{product_id}",
    response_model=ProductCard,
    summary="Fetch a single product for its detail page",
)
async def get_product(product_id: str, products: ProductStoreDependency) -> ProductCard:
    product = await products.get_product(product_id)
    return present_product(product, settings.PLACEHOLDER_IMAGE_URL)


@router.get(
    "/categories",
    response_model=list[Category],
    summary="List categories ordered by name",
)
async def list_categories(categories: CategoryStoreDependency) -> list[Category]:
    return await categories.list_categories()
