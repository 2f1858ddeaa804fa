"""Tests for the storefront catalog view derivation."""

from datetime import UTC, datetime, timedelta

import pytest

from storefront.models.catalog import SORT_KEYS, ViewFilterState
from storefront.models.product import Product
from storefront.services.catalog.view_engine import (
    collect_category_labels,
    derive_view,
    present_product,
)

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def _product(pid, name, *, days=0, **fields):
    return Product(id=pid, name=name, created_at=BASE_TIME + timedelta(days=days), **fields)


@pytest.fixture()
def catalog():
    return [
        _product("1", "Blue Dream", days=2, strain="Hybrid", regular_price=30.0,
                 potency="18%", categories=["Flower", "Sativa Dominant"]),
        _product("2", "amber kush", days=0, strain="Indica", regular_price=45.0,
                 potency="24%", categories=["Flower"]),
        _product("3", "Cookies Vape", days=1, strain=None, regular_price=None,
                 potency=None, categories=["Vapes"]),
        _product("4", "Émerald Gummies", days=3, strain="hybrid", regular_price=30.0,
                 potency="10 %", categories=["Edibles"]),
    ]


def _ids(products):
    return [product.id for product in products]


def test_empty_input_returns_empty_list():
    assert derive_view([], ViewFilterState(search="x", sort="name-asc")) == []


def test_default_filter_keeps_input_order(catalog):
    assert _ids(derive_view(catalog)) == ["1", "2", "3", "4"]


def test_output_is_subset_matching_both_predicates(catalog):
    view = derive_view(catalog, ViewFilterState(search="EA", category="flower"))

    assert _ids(view) == ["1"]
    for product in view:
        assert "ea" in product.name.lower()
        assert any("flower" in label.lower() for label in product.categories)


def test_search_is_trimmed_and_case_insensitive(catalog):
    view = derive_view(catalog, ViewFilterState(search="  KUSH "))
    assert _ids(view) == ["2"]


def test_whitespace_search_matches_everything(catalog):
    assert len(derive_view(catalog, ViewFilterState(search="   "))) == 4


def test_category_selector_is_substring_match(catalog):
    view = derive_view(catalog, ViewFilterState(category="sativa"))
    assert _ids(view) == ["1"]


def test_category_all_disables_filter(catalog):
    assert len(derive_view(catalog, ViewFilterState(category="ALL"))) == 4


def test_filter_without_matches_is_empty(catalog):
    assert derive_view(catalog, ViewFilterState(search="zzz")) == []


def test_name_sort_ignores_case_and_accents(catalog):
    view = derive_view(catalog, ViewFilterState(sort="name-asc"))
    assert _ids(view) == ["2", "1", "3", "4"]


def test_price_sort_treats_missing_as_zero(catalog):
    view = derive_view(catalog, ViewFilterState(sort="price-asc"))
    assert _ids(view) == ["3", "1", "4", "2"]


def test_descending_sort_keeps_ties_in_input_order(catalog):
    view = derive_view(catalog, ViewFilterState(sort="price-desc"))
    # products 1 and 4 share a price and keep their relative order
    assert _ids(view) == ["2", "1", "4", "3"]


def test_strain_sort_places_missing_first(catalog):
    view = derive_view(catalog, ViewFilterState(sort="strain-asc"))
    assert _ids(view) == ["3", "1", "4", "2"]


def test_date_sorts(catalog):
    assert _ids(derive_view(catalog, ViewFilterState(sort="date-desc"))) == ["4", "1", "3", "2"]
    assert _ids(derive_view(catalog, ViewFilterState(sort="date-asc"))) == ["2", "3", "1", "4"]


def test_potency_sort_uses_leading_integer(catalog):
    view = derive_view(catalog, ViewFilterState(sort="potency-desc"))
    assert _ids(view) == ["2", "1", "4", "3"]


@pytest.mark.parametrize("sort_key", SORT_KEYS)
def test_every_sort_is_a_permutation_of_the_filtered_set(catalog, sort_key):
    view_filter = ViewFilterState(category="flower", sort=sort_key)
    unsorted = derive_view(catalog, ViewFilterState(category="flower"))
    assert sorted(_ids(derive_view(catalog, view_filter))) == sorted(_ids(unsorted))


def test_derive_view_does_not_mutate_input(catalog):
    before = _ids(catalog)
    derive_view(catalog, ViewFilterState(sort="name-desc"))
    assert _ids(catalog) == before


def test_collect_category_labels_is_distinct_and_sorted(catalog):
    assert collect_category_labels(catalog) == ["Edibles", "Flower", "Sativa Dominant", "Vapes"]


def test_present_product_uses_placeholder_and_hides_zero_price():
    product = _product("9", "Plain", regular_price=0.0, shipping_price=5.0)

    card = present_product(product, "/placeholder.svg")

    assert card.image_url == "/placeholder.svg"
    assert card.has_placeholder is True
    assert card.regular_price is None
    assert card.shipping_price == 5.0
    assert card.description == ""


def test_present_product_falls_back_to_image_without_video():
    product = _product("9", "Clip", image_url="https://cdn.test/a.png", primary_media_type="video")

    card = present_product(product, "/placeholder.svg")

    assert card.primary_media_type == "image"
    assert card.image_url == "https://cdn.test/a.png"
    assert card.has_placeholder is False
