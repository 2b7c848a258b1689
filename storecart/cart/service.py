"""Cart manager: the operation set consumed by the UI."""
from decimal import Decimal
from typing import Callable, Optional

from storecart.config import load_settings
from storecart.errors import (
    ERROR_ADD_FAILED,
    ERROR_APPLY_DISCOUNT_FAILED,
    ERROR_CLEAR_CART_FAILED,
    ERROR_CLEAR_SAVED_FAILED,
    ERROR_MOVE_FAILED,
    ERROR_REMOVE_DISCOUNT_FAILED,
    ERROR_REMOVE_FAILED,
    ERROR_REMOVE_SAVED_FAILED,
    ERROR_SAVE_FAILED,
    ERROR_UPDATE_FAILED,
    CartError,
)
from storecart.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging
from storecart.services.money import round_money
from . import pricing
from .discounts import DiscountCatalog
from .models import AppliedDiscount, CartItem, OperationResult, OrderSummary, SavedItem
from .storage import PersistenceGateway, create_gateway
from .store import CartStore, ProductLike

logger = get_logger(__name__)


class CartManager:
    """
    Cart, saved items and discount code for one shopper.

    Features:
    - merge-on-add per (product, size) line, quantities capped at 99
    - save-for-later list, exclusive with the cart
    - single active discount code
    - order summary (subtotal, shipping, tax, discount, total)

    Every mutation returns an OperationResult; nothing raises across this
    boundary. Call ``await start()`` once to load persisted state.
    """

    def __init__(
        self,
        gateway: Optional[PersistenceGateway] = None,
        catalog: Optional[DiscountCatalog] = None,
    ):
        self.store = CartStore(gateway if gateway is not None else create_gateway(load_settings()))
        self.catalog = catalog or DiscountCatalog()

    async def start(self) -> None:
        await self.store.load()

    async def flush(self) -> None:
        await self.store.flush()

    def _run(self, action: Callable[[], str], failure_message: str, operation: str) -> OperationResult:
        try:
            return OperationResult.ok(action())
        except CartError as e:
            logger.info(f"{operation} rejected: {e.kind.value}")
            return OperationResult.fail(e.message, e.kind)
        except Exception as e:
            logger.error(f"{operation} failed: {e}", exc_info=True)
            return OperationResult.fail(failure_message)

    # ==================== State ====================

    @property
    def loading(self) -> bool:
        return self.store.loading

    @property
    def cart_items(self) -> list[CartItem]:
        return self.store.cart_items

    @property
    def saved_items(self) -> list[SavedItem]:
        return self.store.saved_items

    @property
    def discount_code(self) -> str:
        return self.store.discount_code

    @property
    def applied_discount(self) -> Optional[AppliedDiscount]:
        return self.store.applied_discount

    # ==================== Cart operations ====================

    def add_item(self, product: ProductLike, size: Optional[str] = None, quantity: int = 1) -> OperationResult:
        def action():
            self.store.add_item(product, size, quantity)
            return "Added to cart successfully"
        return self._run(action, ERROR_ADD_FAILED, "add_item")

    def remove_item(self, item_id: str) -> OperationResult:
        def action():
            if not self.store.remove_item(item_id):
                logger.debug(f"remove_item: {sanitize_id_for_logging(item_id)} not in cart")
            return "Item removed from cart"
        return self._run(action, ERROR_REMOVE_FAILED, "remove_item")

    def set_quantity(self, item_id: str, quantity: int) -> OperationResult:
        def action():
            if self.store.set_quantity(item_id, quantity) is None and quantity <= 0:
                return "Item removed from cart"
            return "Quantity updated"
        return self._run(action, ERROR_UPDATE_FAILED, "set_quantity")

    def clear_cart(self) -> OperationResult:
        def action():
            self.store.clear_cart()
            return "Cart cleared"
        return self._run(action, ERROR_CLEAR_CART_FAILED, "clear_cart")

    # ==================== Saved items operations ====================

    def move_to_saved(self, item_id: str) -> OperationResult:
        def action():
            self.store.move_to_saved(item_id)
            return "Item moved to saved items"
        return self._run(action, ERROR_SAVE_FAILED, "move_to_saved")

    def move_to_cart(self, item_id: str) -> OperationResult:
        def action():
            self.store.move_to_cart(item_id)
            return "Item moved to cart"
        return self._run(action, ERROR_MOVE_FAILED, "move_to_cart")

    def remove_saved_item(self, item_id: str) -> OperationResult:
        def action():
            self.store.remove_saved_item(item_id)
            return "Item removed from saved items"
        return self._run(action, ERROR_REMOVE_SAVED_FAILED, "remove_saved_item")

    def clear_saved_items(self) -> OperationResult:
        def action():
            self.store.clear_saved_items()
            return "Saved items cleared"
        return self._run(action, ERROR_CLEAR_SAVED_FAILED, "clear_saved_items")

    # ==================== Discount operations ====================

    def apply_discount_code(self, code: str) -> OperationResult:
        """Apply a code against the current subtotal; replaces any active code."""
        def action():
            applied = self.catalog.apply_code(code, self.get_cart_total())
            self.store.set_discount(applied)
            logger.info(f"Applied discount {sanitize_string_for_logging(applied.code)}")
            return f"Discount applied: {applied.description}"
        return self._run(action, ERROR_APPLY_DISCOUNT_FAILED, "apply_discount_code")

    def remove_discount_code(self) -> OperationResult:
        def action():
            self.store.clear_discount()
            return "Discount code removed"
        return self._run(action, ERROR_REMOVE_DISCOUNT_FAILED, "remove_discount_code")

    # ==================== Calculations ====================

    def get_cart_total(self) -> Decimal:
        """Subtotal before shipping, tax and discount."""
        return round_money(pricing.cart_subtotal(self.store.cart_items))

    def get_cart_item_count(self) -> int:
        return pricing.item_count(self.store.cart_items)

    def get_shipping_cost(self) -> Decimal:
        return self.get_order_summary().shipping

    def get_tax_amount(self) -> Decimal:
        return self.get_order_summary().tax

    def get_discount_amount(self) -> Decimal:
        return self.get_order_summary().discount

    def get_final_total(self) -> Decimal:
        return self.get_order_summary().total

    def get_order_summary(self) -> OrderSummary:
        return pricing.calculate_order_summary(self.store.cart_items, self.store.applied_discount)

    # ==================== Queries ====================

    def is_in_cart(self, product_id: str, size: Optional[str] = None) -> bool:
        return self.store.is_in_cart(product_id, size)

    def quantity_in_cart(self, product_id: str, size: Optional[str] = None) -> int:
        return self.store.quantity_in_cart(product_id, size)

    def is_saved(self, product_id: str, size: Optional[str] = None) -> bool:
        return self.store.is_saved(product_id, size)


# Singleton instance
_cart_manager: Optional[CartManager] = None


def get_cart_manager() -> CartManager:
    """Get CartManager singleton, created on first use from environment settings."""
    global _cart_manager
    if _cart_manager is None:
        _cart_manager = CartManager()
    return _cart_manager
