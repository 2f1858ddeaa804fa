"""CSV import and export of catalog products."""

from __future__ import annotations

import csv
import io
import logging
import re
from collections.abc import Iterable

from pydantic import ValidationError

from storefront.errors import ValidationFailure
from storefront.models.product import Product, ProductCreate

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = (
    "id",
    "name",
    "description",
    "strain",
    "potency",
    "categories",
    "stock",
    "regular_price",
    "shipping_price",
    "image_url",
    "webp_url",
    "video_url",
    "primary_media_type",
    "created_at",
    "updated_at",
)
TEMPLATE_ROW = {
    "name": "Product Name",
    "description": "Product Description",
    "strain": "Strain Name",
    "potency": "",
    "categories": "",
    "stock": "0",
    "regular_price": "0.00",
    "shipping_price": "0.00",
}
CATEGORY_SEPARATOR = ";"
MEDIA_TYPES = ("image", "video")

_LEADING_NUMBER = re.compile(r"^\s*([+-]?\d+(?:\.\d+)?)")


def _parse_number(value: str | None) -> float:
    """Lenient numeric parse: leading digits are kept, anything else is 0."""

    if not value:
        return 0.0
    match = _LEADING_NUMBER.match(value.replace(",", "."))
    return float(match.group(1)) if match else 0.0


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _media_type(value: str | None) -> str:
    value = (value or "").strip().lower()
    return value if value in MEDIA_TYPES else "image"


def parse_products_csv(content: bytes | str) -> tuple[list[ProductCreate], int]:
    """Parse an uploaded CSV into product payloads.

    Rows without a name are skipped. Columns written by
    :func:`export_products_csv` are read back, except ``id`` and the
    timestamps, which are assigned on insert. Category labels are split on
    ``;``, so a label containing ``;`` comes back as two labels.
    Returns the payloads and the number of skipped rows.
    """
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ValidationFailure("CSV file must be UTF-8 encoded") from exc
    else:
        text = content

    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames or "name" not in reader.fieldnames:
        raise ValidationFailure("CSV file must contain a 'name' column")

    products: list[ProductCreate] = []
    skipped = 0
    for line_number, raw in enumerate(reader, start=2):
        name = (raw.get("name") or "").strip()
        if not name:
            logger.warning("Skipping CSV row %d without name", line_number)
            skipped += 1
            continue

        categories = [
            label.strip()
            for label in (raw.get("categories") or "").split(CATEGORY_SEPARATOR)
            if label.strip()
        ]
        try:
            products.append(
                ProductCreate(
                    name=name,
                    description=_optional_text(raw.get("description")),
                    strain=_optional_text(raw.get("strain")),
                    potency=_optional_text(raw.get("potency")),
                    categories=categories,
                    stock=max(0, int(_parse_number(raw.get("stock")))),
                    regular_price=max(0.0, _parse_number(raw.get("regular_price"))),
                    shipping_price=max(0.0, _parse_number(raw.get("shipping_price"))),
                    image_url=_optional_text(raw.get("image_url")),
                    webp_url=_optional_text(raw.get("webp_url")),
                    video_url=_optional_text(raw.get("video_url")),
                    primary_media_type=_media_type(raw.get("primary_media_type")),
                )
            )
        except ValidationError as exc:
            logger.warning("Skipping invalid CSV row %d: %s", line_number, exc)
            skipped += 1

    return products, skipped


def _export_value(product: Product, column: str) -> str:
    value = getattr(product, column)
    if value is None:
        return ""
    if column == "categories":
        return CATEGORY_SEPARATOR.join(value)
    if column in ("created_at", "updated_at"):
        return value.isoformat()
    return str(value)


def export_products_csv(products: Iterable[Product]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    for product in products:
        writer.writerow({column: _export_value(product, column) for column in EXPORT_COLUMNS})
    return buffer.getvalue()


def template_csv() -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(TEMPLATE_ROW))
    writer.writeheader()
    writer.writerow(TEMPLATE_ROW)
    return buffer.getvalue()
