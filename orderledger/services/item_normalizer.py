"""
Turns raw line-item input into priced, validated line items.

Catalog references are trusted only when they belong to the calling tenant;
anything else is dropped silently and the item is kept with the information
it still has.
"""
from typing import Any, Dict, List, Mapping, Optional, Set
from sqlalchemy.orm import Session
import math
import uuid

from ..config.logging import get_logger
from ..core.exceptions import ManualPriceRequiredError
from ..models.catalog import Product
from ..repositories.catalog_repo import CatalogRepository
from .price_resolver import resolve_product_price
from .totals import LineItem, finite

logger = get_logger(__name__)


def format_variant_label(product_name: str, label: Optional[str]) -> Optional[str]:
    """Prefix the label with the product name unless it already starts with it."""
    trimmed = (label or "").strip()
    if not trimmed:
        return None
    name = (product_name or "").strip()
    if not name or trimmed.lower().startswith(name.lower()):
        return trimmed
    return f"{name} - {trimmed}"


def normalize_quantity(value: Any) -> int:
    number = finite(value, default=math.nan)
    if math.isnan(number) or number < 1:
        return 1
    return int(number)


def sanitize_price(value: Any) -> float:
    return max(finite(value), 0.0)


def _manual_price(value: Any, title: Optional[str]) -> float:
    number = finite(value, default=math.nan)
    if math.isnan(number) or number < 0:
        raise ManualPriceRequiredError(title or None)
    return number


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class ItemNormalizer:
    """Normalizes the items of one order write for one tenant."""

    def __init__(self, db: Session, user_id: str, catalog: Optional[CatalogRepository] = None):
        self.db = db
        self.user_id = user_id
        self.catalog = catalog or CatalogRepository()
        self._products: Dict[int, Optional[Product]] = {}
        self._suppliers: Dict[int, bool] = {}

    def owned_product(self, product_id: Optional[int]) -> Optional[Product]:
        if product_id is None:
            return None
        if product_id not in self._products:
            product = self.catalog.get_product(self.db, product_id)
            if product is not None and product.user_id != self.user_id:
                logger.debug(f"Dropping cross-tenant product reference {product_id}")
                product = None
            elif product is None:
                logger.debug(f"Dropping missing product reference {product_id}")
            self._products[product_id] = product
        return self._products[product_id]

    def owned_supplier_id(self, supplier_id: Optional[int]) -> Optional[int]:
        if supplier_id is None:
            return None
        if supplier_id not in self._suppliers:
            supplier = self.catalog.get_supplier(self.db, supplier_id)
            self._suppliers[supplier_id] = supplier is not None and supplier.user_id == self.user_id
            if not self._suppliers[supplier_id]:
                logger.debug(f"Dropping supplier reference {supplier_id}")
        return supplier_id if self._suppliers[supplier_id] else None

    def normalize_item(self, raw: Mapping[str, Any], fallback_title: str) -> LineItem:
        quantity = normalize_quantity(raw.get("quantity"))
        title = _text(raw.get("title"))
        manual = bool(raw.get("manual_prodajna"))
        supplier_id = self.owned_supplier_id(raw.get("supplier_id"))
        product = self.owned_product(raw.get("product_id"))

        prodajna = _manual_price(raw.get("prodajna_cena"), title) if manual else None

        if product is None:
            if raw.get("product_id") is not None:
                supplier_id = None
            # Free item: prices come from the input
            return LineItem(
                id="",
                title=title or fallback_title,
                quantity=quantity,
                nabavna_cena=sanitize_price(raw.get("nabavna_cena")),
                prodajna_cena=prodajna if manual else sanitize_price(raw.get("prodajna_cena")),
                variant_label=_text(raw.get("variant_label")) or None,
                supplier_id=supplier_id,
                manual_prodajna=manual,
            )

        variant = None
        if product.variants:
            requested = raw.get("variant_id")
            variant = product.find_variant(requested) or product.default_variant()
            if requested and variant is not None and variant.id != requested:
                logger.debug(f"Variant {requested} not found on product {product.id}, using {variant.id}")

        source = variant if variant is not None else product
        variant_label = format_variant_label(product.display_name, raw.get("variant_label"))
        if variant_label is None and variant is not None:
            variant_label = format_variant_label(product.display_name, variant.label)

        resolution = resolve_product_price(product, variant.id if variant else None, supplier_id)
        if resolution.resolved:
            nabavna = sanitize_price(resolution.price)
            supplier_id = resolution.supplier_id
        else:
            nabavna = sanitize_price(source.nabavna_cena)

        if not manual:
            prodajna = sanitize_price(source.prodajna_cena)

        return LineItem(
            id="",
            title=title or variant_label or product.display_name or fallback_title,
            quantity=quantity,
            nabavna_cena=nabavna,
            prodajna_cena=prodajna,
            product_id=product.id,
            variant_id=variant.id if variant else None,
            variant_label=variant_label,
            supplier_id=supplier_id,
            manual_prodajna=manual,
        )

    def normalize(self, raw_items: List[Mapping[str, Any]], fallback_title: str = "") -> List[LineItem]:
        fallback_title = _text(fallback_title)
        seen_ids: Set[str] = set()
        items: List[LineItem] = []

        for raw in raw_items or []:
            item = self.normalize_item(raw, fallback_title)
            if not item.title or item.quantity < 1:
                continue

            item_id = _text(raw.get("id"))
            if not item_id or item_id in seen_ids:
                item_id = uuid.uuid4().hex
            seen_ids.add(item_id)
            item.id = item_id
            items.append(item)

        return items


def normalize_items(
    db: Session,
    user_id: str,
    raw_items: List[Mapping[str, Any]],
    fallback_title: str = ""
) -> List[LineItem]:
    """Normalize raw items for ``user_id``; items without title or quantity are dropped."""
    return ItemNormalizer(db, user_id).normalize(raw_items, fallback_title)
