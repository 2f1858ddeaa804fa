"""Redis-backed product records."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from storefront.errors import NotFoundError
from storefront.models.product import Product, ProductCreate, ProductUpdate
from storefront.models.settings import utcnow
from storefront.services.storage.redis_client import get_redis_client, key

logger = logging.getLogger(__name__)


def normalize_categories(labels: Iterable[str] | None) -> list[str]:
    """Strip labels, drop blanks and keep the first spelling of duplicates."""

    result: list[str] = []
    seen: set[str] = set()
    for label in labels or []:
        if not isinstance(label, str):
            continue
        cleaned = label.strip()
        folded = cleaned.casefold()
        if not cleaned or folded in seen:
            continue
        seen.add(folded)
        result.append(cleaned)
    return result


class ProductStore:
    """Products stored as JSON documents, listed in creation order."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client
        self._index_key = key("products")
        self._sequence_key = key("products", "seq")

    @staticmethod
    def _product_key(product_id: str) -> str:
        return key("product", product_id)

    async def list_products(self) -> list[Product]:
        ids = await self._client.zrange(self._index_key, 0, -1)
        if not ids:
            return []
        raw_documents = await self._client.mget([self._product_key(i) for i in ids])
        return [Product.model_validate_json(raw) for raw in raw_documents if raw]

    async def get_product(self, product_id: str) -> Product:
        raw = await self._client.get(self._product_key(product_id))
        if not raw:
            raise NotFoundError("Product", product_id)
        return Product.model_validate_json(raw)

    async def create_product(self, payload: ProductCreate) -> Product:
        created = await self.bulk_create([payload])
        return created[0]

    async def bulk_create(self, payloads: Sequence[ProductCreate]) -> list[Product]:
        """Insert several products, keeping their relative order."""

        products: list[Product] = []
        for payload in payloads:
            data = payload.model_dump()
            data["categories"] = normalize_categories(data.get("categories"))
            now = utcnow()
            products.append(
                Product(id=uuid.uuid4().hex, created_at=now, updated_at=now, **data)
            )

        for product in products:
            sequence = await self._client.incr(self._sequence_key)
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.set(self._product_key(product.id), product.model_dump_json())
                pipe.zadd(self._index_key, {product.id: sequence})
                await pipe.execute()

        logger.info("Created %d products", len(products))
        return products

    async def update_product(self, product_id: str, changes: ProductUpdate) -> Product:
        """Apply the fields explicitly set in ``changes`` as one document write."""

        current = await self.get_product(product_id)
        updates = changes.model_dump(exclude_unset=True)
        if updates.get("name") is None:
            updates.pop("name", None)
        if "categories" in updates:
            updates["categories"] = normalize_categories(updates["categories"])
        if updates.get("primary_media_type") is None:
            updates.pop("primary_media_type", None)

        merged = {**current.model_dump(), **updates, "updated_at": utcnow()}
        product = Product.model_validate(merged)
        await self._save(product)

        logger.info(
            "Updated product %s", product_id, extra={"fields": sorted(updates)}
        )
        return product

    async def delete_product(self, product_id: str) -> None:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.delete(self._product_key(product_id))
            pipe.zrem(self._index_key, product_id)
            deleted, _ = await pipe.execute()
        if not deleted:
            raise NotFoundError("Product", product_id)
        logger.info("Deleted product %s", product_id)

    async def replace_category_label(self, old: str, new: str) -> int:
        """Rename ``old`` to ``new`` on every product carrying it, ignoring case."""

        folded = old.casefold()
        changed = 0
        for product in await self.list_products():
            if not any(label.casefold() == folded for label in product.categories):
                continue
            labels = [
                new if label.casefold() == folded else label
                for label in product.categories
            ]
            await self._save(
                product.model_copy(
                    update={
                        "categories": normalize_categories(labels),
                        "updated_at": utcnow(),
                    }
                )
            )
            changed += 1
        return changed

    async def remove_category_label(self, label: str) -> int:
        """Drop ``label`` from every product carrying it, ignoring case."""

        folded = label.casefold()
        changed = 0
        for product in await self.list_products():
            remaining = [item for item in product.categories if item.casefold() != folded]
            if len(remaining) == len(product.categories):
                continue
            await self._save(
                product.model_copy(
                    update={"categories": remaining, "updated_at": utcnow()}
                )
            )
            changed += 1
        return changed

    async def _save(self, product: Product) -> None:
        await self._client.set(self._product_key(product.id), product.model_dump_json())


def get_product_store(
    client: Annotated[redis.Redis, Depends(get_redis_client)],
) -> ProductStore:
    """FastAPI dependency factory."""

    return ProductStore(client)


ProductStoreDependency = Annotated[ProductStore, Depends(get_product_store)]
