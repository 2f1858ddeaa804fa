"""Admin routes for managing product categories."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from storefront.api.dependencies import require_admin
from storefront.models.product import Category, CategoryCreate
from storefront.services.storage.category_store import CategoryStoreDependency

router = APIRouter(
    prefix="/admin/categories",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=list[Category], summary="List categories ordered by name")
async def list_categories(categories: CategoryStoreDependency) -> list[Category]:
    return await categories.list_categories()


@router.post(
    "",
    response_model=Category,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
)
async def create_category(
    payload: CategoryCreate,
    categories: CategoryStoreDependency,
) -> Category:
    return await categories.create_category(payload)


@router.patch(
    "/{category_id}",
    response_model=Category,
    summary="Rename a category and the products using it",
)
async def rename_category(
    category_id: str,
    payload: CategoryCreate,
    categories: CategoryStoreDependency,
) -> Category:
    return await categories.rename_category(category_id, payload)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a category and remove it from products",
)
async def delete_category(category_id: str, categories: CategoryStoreDependency) -> Response:
    await categories.delete_category(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
