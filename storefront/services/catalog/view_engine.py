"""Filtering, sorting and presentation of the storefront product list."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime
from typing import Any

from storefront.models.catalog import ALL_CATEGORIES, ViewFilterState
from storefront.models.product import Product, ProductCard

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_EPOCH = datetime.min.replace(tzinfo=UTC)


def _collation_key(value: Any) -> str:
    """Locale-aware ordering key: accents stripped, case folded."""

    if not isinstance(value, str):
        value = "" if value is None else str(value)
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def _as_number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _potency_value(value: Any) -> int:
    """Leading integer of labels such as '23%' or '18.5 %'; 0 otherwise."""

    if value is None:
        return 0
    match = _LEADING_INT.match(str(value).replace("%", ""))
    return int(match.group(1)) if match else 0


def _created_at(product: Product) -> datetime:
    created = getattr(product, "created_at", None)
    if not isinstance(created, datetime):
        return _EPOCH
    if created.tzinfo is None:
        return created.replace(tzinfo=UTC)
    return created


# sort key -> (key function, descending)
_SORTERS: dict[str, tuple[Callable[[Product], Any], bool]] = {
    "name-asc": (lambda p: _collation_key(p.name), False),
    "name-desc": (lambda p: _collation_key(p.name), True),
    "strain-asc": (lambda p: _collation_key(p.strain), False),
    "strain-desc": (lambda p: _collation_key(p.strain), True),
    "price-asc": (lambda p: _as_number(p.regular_price), False),
    "price-desc": (lambda p: _as_number(p.regular_price), True),
    "potency-asc": (lambda p: _potency_value(p.potency), False),
    "potency-desc": (lambda p: _potency_value(p.potency), True),
    "date-asc": (_created_at, False),
    "date-desc": (_created_at, True),
}


def _matches_search(product: Product, needle: str) -> bool:
    if not needle:
        return True
    return needle in (product.name or "").lower()


def _matches_category(product: Product, selector: str) -> bool:
    if not selector or selector.lower() == ALL_CATEGORIES:
        return True
    needle = selector.lower()
    return any(needle in (label or "").lower() for label in product.categories or [])


def derive_view(
    products: Sequence[Product],
    view_filter: ViewFilterState | None = None,
) -> list[Product]:
    """Return the products visible for ``view_filter`` in display order.

    Filtering keeps a product when its name contains the search text and,
    unless the category selector is ``"all"``, one of its category labels
    contains the selector. Both comparisons are case-insensitive substring
    matches. The search text is trimmed first.

    Sorting is stable: ties keep their input order, including for the
    descending keys. An unset sort key keeps the input order.
    """
    if not products:
        return []

    view_filter = view_filter or ViewFilterState()
    needle = (view_filter.search or "").strip().lower()
    selector = view_filter.category or ALL_CATEGORIES

    visible = [
        product
        for product in products
        if _matches_search(product, needle) and _matches_category(product, selector)
    ]

    sorter = _SORTERS.get(view_filter.sort or "")
    if sorter is None:
        return visible

    key, descending = sorter
    # sorted() keeps equal elements in input order even with reverse=True
    return sorted(visible, key=key, reverse=descending)


def collect_category_labels(products: Iterable[Product]) -> list[str]:
    """Distinct category labels across ``products``, for the filter dropdown."""

    seen: dict[str, str] = {}
    for product in products:
        for label in product.categories or []:
            seen.setdefault(label.casefold(), label)
    return sorted(seen.values(), key=_collation_key)


def _displayable_price(value: float | None) -> float | None:
    if value is None or value <= 0:
        return None
    return value


def present_product(product: Product, placeholder_url: str) -> ProductCard:
    """Resolve media and prices of ``product`` for display."""

    image_url = product.image_url or product.webp_url
    has_placeholder = not image_url
    primary = product.primary_media_type
    if primary == "video" and not product.video_url:
        primary = "image"

    return ProductCard(
        id=product.id,
        name=product.name,
        description=product.description or "",
        strain=product.strain,
        potency=product.potency,
        categories=list(product.categories or []),
        stock=product.stock,
        regular_price=_displayable_price(product.regular_price),
        shipping_price=_displayable_price(product.shipping_price),
        image_url=image_url or placeholder_url,
        webp_url=product.webp_url,
        video_url=product.video_url,
        primary_media_type=primary,
        has_placeholder=has_placeholder,
    )
