from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date

from ..models.order import OrderStage, TransportMode, ShippingMode
from .catalog import ProductOut


# Write payloads

class OrderItemInput(BaseModel):
    id: Optional[str] = Field(None, max_length=64)
    product_id: Optional[int] = None
    variant_id: Optional[str] = Field(None, max_length=64)
    variant_label: Optional[str] = Field(None, max_length=255)
    supplier_id: Optional[int] = None
    title: Optional[str] = Field(None, max_length=255)
    # Clamped to a whole number >= 1 during normalization
    quantity: Optional[float] = None
    nabavna_cena: Optional[float] = None
    prodajna_cena: Optional[float] = None
    manual_prodajna: bool = False


class OrderWrite(BaseModel):
    """Full order payload; `update` rewrites every field."""
    scope: Optional[str] = None
    stage: Optional[OrderStage] = None
    title: Optional[str] = Field(None, max_length=255)
    items: List[OrderItemInput] = []

    # Single-item payloads without `items`
    product_id: Optional[int] = None
    variant_id: Optional[str] = Field(None, max_length=64)
    supplier_id: Optional[int] = None
    quantity: Optional[float] = None
    nabavna_cena: Optional[float] = None
    prodajna_cena: Optional[float] = None
    manual_prodajna: bool = False

    transport_cost: Optional[float] = None
    transport_mode: Optional[TransportMode] = None
    slanje_mode: Optional[ShippingMode] = None
    slanje_owner: Optional[str] = Field(None, max_length=255)
    broj_posiljke: Optional[str] = Field(None, max_length=100)
    povrat_vracen: bool = False
    pickup: bool = False
    my_profit_percent: Optional[float] = None

    customer_name: str = Field("", max_length=255)
    address: str = ""
    phone: str = Field("", max_length=64)
    napomena: Optional[str] = None

    def raw_items(self) -> List[dict]:
        """Item payloads, falling back to the top-level single-item fields."""
        if self.items:
            return [item.model_dump() for item in self.items]
        return [{
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "supplier_id": self.supplier_id,
            "title": self.title,
            "quantity": self.quantity,
            "nabavna_cena": self.nabavna_cena,
            "prodajna_cena": self.prodajna_cena,
            "manual_prodajna": self.manual_prodajna,
        }]


class ReorderRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1)
    base: Optional[int] = None
    scope: Optional[str] = None


class OrderListFilters(BaseModel):
    scope: Optional[str] = None
    search: Optional[str] = None
    stages: List[OrderStage] = []
    returned_only: bool = False
    unreturned_only: bool = False
    pickup_only: bool = False
    date_from: Optional[date] = None
    date_to: Optional[date] = None


# Responses

class OrderItemOut(BaseModel):
    id: str
    product_id: Optional[int] = None
    variant_id: Optional[str] = None
    variant_label: Optional[str] = None
    supplier_id: Optional[int] = None
    title: str
    quantity: int
    nabavna_cena: float
    prodajna_cena: float
    manual_prodajna: bool = False
    product: Optional[ProductOut] = None


class OrderOut(BaseModel):
    id: int
    scope: str
    stage: str
    title: str
    product_id: Optional[int] = None
    variant_id: Optional[str] = None
    variant_label: Optional[str] = None
    supplier_id: Optional[int] = None
    quantity: int
    nabavna_cena: float
    prodajna_cena: float
    items: List[OrderItemOut] = []

    transport_cost: Optional[float] = None
    transport_mode: Optional[str] = None
    slanje_mode: Optional[str] = None
    slanje_owner: Optional[str] = None
    broj_posiljke: Optional[str] = None
    povrat_vracen: bool = False
    pickup: bool = False
    my_profit_percent: Optional[float] = None

    customer_name: str = ""
    address: str = ""
    phone: str = ""
    napomena: Optional[str] = None

    ordered_at: int
    sort_index: Optional[int] = None

    # Recomputed on every read
    total_qty: int = 0
    total_prodajno: float = 0.0
    total_nabavno: float = 0.0
    transport: float = 0.0
    profit: float = 0.0
    my_share: float = 0.0


class Pagination(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int


class ListTotals(BaseModel):
    nabavno: float = 0.0
    transport: float = 0.0
    prodajno: float = 0.0
    profit: float = 0.0
    povrat: float = 0.0


class OrderListResponse(BaseModel):
    items: List[OrderOut]
    pagination: Pagination
    totals: ListTotals


class OrdersSummary(BaseModel):
    broj_narudzbina: int = 0
    ukupno_prodajno: float = 0.0
    ukupno_nabavno: float = 0.0
    transport: float = 0.0
    carrier_fees: float = 0.0
    profit: float = 0.0
    moj_profit: float = 0.0
