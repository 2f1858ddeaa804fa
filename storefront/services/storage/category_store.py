"""Redis-backed category records with unique names."""

from __future__ import annotations

import logging
import uuid
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from storefront.errors import DuplicateCategoryError, NotFoundError
from storefront.models.product import Category, CategoryCreate
from storefront.models.settings import utcnow
from storefront.services.storage.product_store import ProductStore
from storefront.services.storage.redis_client import get_redis_client, key

logger = logging.getLogger(__name__)


class CategoryStore:
    """Categories keyed by id, with a case-insensitive name index."""

    def __init__(self, client: redis.Redis, products: ProductStore) -> None:
        self._client = client
        self._products = products
        self._ids_key = key("categories")
        self._names_key = key("categories", "names")

    @staticmethod
    def _category_key(category_id: str) -> str:
        return key("category", category_id)

    @staticmethod
    def _name_slot(name: str) -> str:
        return name.strip().casefold()

    async def list_categories(self) -> list[Category]:
        """All categories ordered by name."""

        ids = await self._client.smembers(self._ids_key)
        if not ids:
            return []
        raw_documents = await self._client.mget([self._category_key(i) for i in ids])
        categories = [Category.model_validate_json(raw) for raw in raw_documents if raw]
        return sorted(categories, key=lambda c: (c.name.casefold(), c.name))

    async def get_category(self, category_id: str) -> Category:
        raw = await self._client.get(self._category_key(category_id))
        if not raw:
            raise NotFoundError("Category", category_id)
        return Category.model_validate_json(raw)

    async def create_category(self, payload: CategoryCreate) -> Category:
        now = utcnow()
        category = Category(
            id=uuid.uuid4().hex, name=payload.name, created_at=now, updated_at=now
        )
        claimed = await self._client.hsetnx(
            self._names_key, self._name_slot(category.name), category.id
        )
        if not claimed:
            raise DuplicateCategoryError(category.name)

        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.set(self._category_key(category.id), category.model_dump_json())
                pipe.sadd(self._ids_key, category.id)
                await pipe.execute()
        except Exception:
            await self._client.hdel(self._names_key, self._name_slot(category.name))
            raise

        logger.info("Created category %s (%s)", category.name, category.id)
        return category

    async def rename_category(self, category_id: str, payload: CategoryCreate) -> Category:
        """Rename a category and rewrite the label on the products using it."""

        current = await self.get_category(category_id)
        old_slot = self._name_slot(current.name)
        new_slot = self._name_slot(payload.name)

        if new_slot != old_slot:
            claimed = await self._client.hsetnx(self._names_key, new_slot, category_id)
            if not claimed:
                raise DuplicateCategoryError(payload.name)

        renamed = current.model_copy(update={"name": payload.name, "updated_at": utcnow()})
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.set(self._category_key(category_id), renamed.model_dump_json())
                if new_slot != old_slot:
                    pipe.hdel(self._names_key, old_slot)
                await pipe.execute()
        except Exception:
            if new_slot != old_slot:
                await self._client.hdel(self._names_key, new_slot)
            raise

        changed = 0
        if current.name != renamed.name:
            changed = await self._products.replace_category_label(current.name, renamed.name)
        logger.info(
            "Renamed category %s from %s to %s",
            category_id,
            current.name,
            renamed.name,
            extra={"products_updated": changed},
        )
        return renamed

    async def delete_category(self, category_id: str) -> None:
        """Remove the label from every product, then delete the category."""

        current = await self.get_category(category_id)
        changed = await self._products.remove_category_label(current.name)

        async with self._client.pipeline(transaction=True) as pipe:
            pipe.delete(self._category_key(category_id))
            pipe.srem(self._ids_key, category_id)
            pipe.hdel(self._names_key, self._name_slot(current.name))
            await pipe.execute()

        logger.info(
            "Deleted category %s (%s)",
            current.name,
            category_id,
            extra={"products_updated": changed},
        )


def get_category_store(
    client: Annotated[redis.Redis, Depends(get_redis_client)],
) -> CategoryStore:
    """FastAPI dependency factory."""

    return CategoryStore(client, ProductStore(client))


CategoryStoreDependency = Annotated[CategoryStore, Depends(get_category_store)]
