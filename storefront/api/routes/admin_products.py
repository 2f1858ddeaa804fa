"""Admin routes for managing catalog products."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from storefront.api.dependencies import StorageDependency, require_admin
from storefront.models.product import ImportSummary, Product, ProductCreate, ProductUpdate
from storefront.services.catalog.csv_io import (
    export_products_csv,
    parse_products_csv,
    template_csv,
)
from storefront.services.catalog.media import (
    MediaKind,
    remove_product_media,
    upload_product_media,
)
from storefront.services.storage.product_store import ProductStoreDependency

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/products",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)

UploadDependency = Annotated[UploadFile, File(...)]


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("", response_model=list[Product], summary="List all products")
async def list_products(products: ProductStoreDependency) -> list[Product]:
    return await products.list_products()


@router.post(
    "",
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
)
async def create_product(payload: ProductCreate, products: ProductStoreDependency) -> Product:
    return await products.create_product(payload)


@router.get("/export", summary="Download every product as CSV")
async def export_products(products: ProductStoreDependency) -> Response:
    return _csv_response(export_products_csv(await products.list_products()), "products.csv")


@router.get("/template", summary="Download an empty import template")
async def download_template() -> Response:
    return _csv_response(template_csv(), "products_template.csv")


@router.post(
    "/import",
    response_model=ImportSummary,
    status_code=status.HTTP_201_CREATED,
    summary="Create products from an uploaded CSV file",
)
async def import_products(file: UploadDependency, products: ProductStoreDependency) -> ImportSummary:
    try:
        content = await file.read()
    finally:
        await file.close()

    payloads, skipped = parse_products_csv(content)
    created = await products.bulk_create(payloads)
    logger.info(
        "Imported products from CSV",
        extra={"file": file.filename, "imported": len(created), "skipped": skipped},
    )
    return ImportSummary(
        imported=len(created),
        skipped=skipped,
        product_ids=[product.id for product in created],
    )


@router.get("/{product_id}", response_model=Product, summary="Fetch a product")
async def get_product(product_id: str, products: ProductStoreDependency) -> Product:
    return await products.get_product(product_id)


@router.patch("/{product_id}", response_model=Product, summary="Update product fields")
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    products: ProductStoreDependency,
) -> Product:
    return await products.update_product(product_id, payload)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a product",
)
async def delete_product(product_id: str, products: ProductStoreDependency) -> Response:
    await products.delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{product_id}/media/{kind}",
    response_model=Product,
    summary="Upload the product image or video",
)
async def upload_media(
    product_id: str,
    kind: MediaKind,
    file: UploadDependency,
    products: ProductStoreDependency,
    storage: StorageDependency,
) -> Product:
    try:
        data = await file.read()
    finally:
        await file.close()

    return await upload_product_media(
        storage,
        products,
        product_id,
        kind,
        filename=file.filename,
        data=data,
        content_type=file.content_type,
    )


@router.delete(
    "/{product_id}/media/{kind}",
    response_model=Product,
    summary="Remove the product image or video",
)
async def delete_media(
    product_id: str,
    kind: MediaKind,
    products: ProductStoreDependency,
    storage: StorageDependency,
) -> Product:
    return await remove_product_media(storage, products, product_id, kind)
