"""Schemas describing a storefront catalog query."""

from __future__ import annotations

from typing import Literal, get_args

from pydantic import BaseModel, Field

SortKey = Literal[
    "name-asc",
    "name-desc",
    "strain-asc",
    "strain-desc",
    "price-asc",
    "price-desc",
    "date-desc",
    "date-asc",
    "potency-asc",
    "potency-desc",
]

SORT_KEYS: tuple[str, ...] = get_args(SortKey)

ALL_CATEGORIES = "all"


class ViewFilterState(BaseModel):
    """Filters selected in the storefront UI, rebuilt on every request."""

    search: str = Field("", description="Case-insensitive substring matched against names")
    category: str = Field(
        ALL_CATEGORIES,
        description="'all' or a label matched as a substring of product categories",
    )
    sort: SortKey | None = Field(None, description="Sort key; input order when unset")
