"""Cart package: models, storage, pricing and manager facade."""
from .identity import derive_item_id
from .models import (
    AppliedDiscount,
    CartItem,
    DiscountRule,
    DiscountType,
    OperationResult,
    OrderSummary,
    Product,
    SavedItem,
)
from .discounts import DISCOUNT_CODES, DiscountCatalog
from .pricing import calculate_order_summary
from .storage import FileGateway, MemoryGateway, PersistenceGateway, RedisGateway, StorageKeys, create_gateway
from .store import CartStore
from .service import CartManager, get_cart_manager

__all__ = [
    "derive_item_id",
    "AppliedDiscount",
    "CartItem",
    "DiscountRule",
    "DiscountType",
    "OperationResult",
    "OrderSummary",
    "Product",
    "SavedItem",
    "DISCOUNT_CODES",
    "DiscountCatalog",
    "calculate_order_summary",
    "FileGateway",
    "MemoryGateway",
    "PersistenceGateway",
    "RedisGateway",
    "StorageKeys",
    "create_gateway",
    "CartStore",
    "CartManager",
    "get_cart_manager",
]
