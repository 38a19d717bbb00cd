from .catalog import Product, ProductVariant, Supplier, SupplierOffer
from .customer import Customer
from .order import Order, OrderItem, OrderScope, OrderStage, ShippingMode, TransportMode
from .shipping import ShippingAccount

__all__ = [
    "Customer",
    "Order",
    "OrderItem",
    "OrderScope",
    "OrderStage",
    "Product",
    "ProductVariant",
    "ShippingAccount",
    "ShippingMode",
    "Supplier",
    "SupplierOffer",
    "TransportMode",
]
