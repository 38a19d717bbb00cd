"""
Supplier offer selection for a product/variant pair.

The price is always picked when offers exist; the supplier identity is only
committed when the operator chose it or when a single offer makes it obvious.
"""
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional


@dataclass(frozen=True)
class PriceResolution:
    supplier_id: Optional[int] = None
    price: Optional[float] = None

    @property
    def resolved(self) -> bool:
        return self.price is not None


UNRESOLVED = PriceResolution()


def _candidate_offers(offers: Iterable[Any], variant_id: Optional[str]) -> List[Any]:
    if variant_id:
        return [offer for offer in offers if offer.variant_id == variant_id]
    return [offer for offer in offers if not offer.variant_id]


def resolve_price(
    offers: Optional[Iterable[Any]],
    variant_id: Optional[str] = None,
    supplier_id: Optional[int] = None
) -> PriceResolution:
    """
    Pick a supplier offer.

    Offers are anything with ``supplier_id``, ``price`` and ``variant_id``
    attributes (SupplierOffer rows in practice). Among several offers without
    an explicit choice the cheapest price wins; equal prices fall back to the
    lowest supplier id so the result does not depend on row order.
    """
    offers = list(offers or [])
    if not offers:
        return UNRESOLVED

    candidates = _candidate_offers(offers, variant_id)
    if not candidates:
        return UNRESOLVED

    if supplier_id is not None:
        for offer in candidates:
            if offer.supplier_id == supplier_id:
                return PriceResolution(supplier_id=offer.supplier_id, price=offer.price)

    if len(candidates) == 1:
        offer = candidates[0]
        return PriceResolution(supplier_id=offer.supplier_id, price=offer.price)

    cheapest = min(candidates, key=lambda offer: (offer.price, offer.supplier_id))
    return PriceResolution(supplier_id=None, price=cheapest.price)


def resolve_product_price(product, variant_id: Optional[str] = None, supplier_id: Optional[int] = None) -> PriceResolution:
    """Resolve against a catalog product's supplier offers."""
    return resolve_price(getattr(product, "supplier_offers", None), variant_id, supplier_id)
