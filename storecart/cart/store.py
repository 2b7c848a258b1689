"""
Cart store: canonical in-memory cart and saved-items lists.

Mutations apply synchronously and then schedule a save of the full
snapshot of the changed list. Saves are fire-and-forget; each carries a
monotonic revision, and writes per key are serialized so that an older
snapshot never lands after a newer one.
"""
import asyncio
from collections.abc import Mapping
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from storecart.constants import MAX_QUANTITY
from storecart.errors import (
    ERROR_MAX_QUANTITY,
    ERROR_MIN_QUANTITY,
    ERROR_WHOLE_QUANTITY,
    InvalidProductError,
    ItemNotFoundError,
    OutOfStockError,
    QuantityOutOfRangeError,
)
from storecart.logging import get_logger, sanitize_id_for_logging
from .identity import derive_item_id
from .models import AppliedDiscount, CartItem, Product, SavedItem
from .storage import PersistenceGateway, StorageKeys

logger = get_logger(__name__)

ProductLike = Union[Product, Mapping[str, Any]]
ChangeObserver = Callable[[str], None]


def _coerce_product(product: Optional[ProductLike]) -> Product:
    if isinstance(product, Product):
        return product
    if not isinstance(product, Mapping):
        raise InvalidProductError()
    try:
        return Product.model_validate(dict(product))
    except ValidationError as e:
        logger.warning(f"Rejected product descriptor: {e.error_count()} validation error(s)")
        raise InvalidProductError()


def _check_quantity(quantity: Any) -> None:
    # bool is an int subclass but never a quantity
    if not isinstance(quantity, int) or isinstance(quantity, bool):
        raise QuantityOutOfRangeError(ERROR_WHOLE_QUANTITY)


class CartStore:
    """
    Owns cart state.

    Lifecycle:
    - created in the ``loading`` state; mutations are kept in memory only
    - ``await load()`` reads both lists from the gateway and turns ready;
      a list with nothing stored keeps what was added while loading
    - from then on every mutation schedules a save of the changed list
    """

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway
        self.loading = True
        self.applied_discount: Optional[AppliedDiscount] = None
        self.discount_code = ""

        self._cart_items: list[CartItem] = []
        self._saved_items: list[SavedItem] = []
        self._observers: list[ChangeObserver] = []

        self._revisions: dict[str, int] = {key: 0 for key in StorageKeys.ALL}
        self._written: dict[str, int] = {key: 0 for key in StorageKeys.ALL}
        self._locks: dict[str, asyncio.Lock] = {}
        self._pending: set[asyncio.Task] = set()
        self._load_task: Optional[asyncio.Future] = None

    # ==================== State ====================

    @property
    def cart_items(self) -> list[CartItem]:
        return list(self._cart_items)

    @property
    def saved_items(self) -> list[SavedItem]:
        return list(self._saved_items)

    # ==================== Lifecycle ====================

    async def load(self) -> None:
        """Load persisted lists. Safe to call more than once, concurrently too."""
        if not self.loading:
            return
        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self._load())
        await self._load_task

    async def _load(self) -> None:
        cart_data, saved_data = await asyncio.gather(
            self.gateway.load(StorageKeys.CART),
            self.gateway.load(StorageKeys.SAVED_ITEMS),
        )

        # A stored list replaces anything mutated while loading; an empty
        # key keeps the in-memory list, which is then persisted
        unsaved = []
        cart = self._parse(cart_data, CartItem, StorageKeys.CART)
        if cart:
            self._cart_items = cart
        elif self._cart_items:
            unsaved.append(StorageKeys.CART)

        saved = self._parse(saved_data, SavedItem, StorageKeys.SAVED_ITEMS)
        if saved:
            self._saved_items = saved
        elif self._saved_items:
            unsaved.append(StorageKeys.SAVED_ITEMS)
        in_cart = {item.id for item in self._cart_items}
        self._saved_items = [item for item in self._saved_items if item.id not in in_cart]

        self.loading = False
        logger.info(
            f"Cart loaded: {len(self._cart_items)} cart item(s), {len(self._saved_items)} saved item(s)"
        )

        for key in unsaved:
            self._changed(key)

    @staticmethod
    def _parse(entries: list[dict], item_cls, key: str) -> list:
        items = []
        seen = set()
        for entry in entries:
            try:
                item = item_cls.from_dict(entry)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable {key!r} entry: {e}")
                continue
            if item.id in seen:
                continue
            if not 1 <= item.quantity <= MAX_QUANTITY:
                item.quantity = max(1, min(item.quantity, MAX_QUANTITY))
            seen.add(item.id)
            items.append(item)
        return items

    async def flush(self) -> None:
        """Wait for every scheduled save to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def subscribe(self, observer: ChangeObserver) -> None:
        """Register a callback invoked with the storage key after each change."""
        self._observers.append(observer)

    # ==================== Persistence ====================

    def _snapshot(self, key: str) -> list[dict]:
        items = self._cart_items if key == StorageKeys.CART else self._saved_items
        return [item.to_dict() for item in items]

    def _changed(self, key: str) -> None:
        """Post-mutation hook: notify observers and schedule a save."""
        self._revisions[key] += 1

        for observer in list(self._observers):
            try:
                observer(key)
            except Exception:
                logger.exception(f"Cart observer failed for {key!r}")

        if self.loading:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop, {key!r} not persisted")
            return

        task = loop.create_task(self._persist(key, self._revisions[key], self._snapshot(key)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist(self, key: str, revision: int, snapshot: list[dict]) -> None:
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            if revision <= self._written[key]:
                logger.debug(f"Skipping stale {key!r} snapshot r{revision} (written r{self._written[key]})")
                return
            if await self.gateway.save(key, snapshot):
                self._written[key] = revision

    # ==================== Lookup ====================

    def _find_in_cart(self, item_id: str) -> Optional[CartItem]:
        return next((item for item in self._cart_items if item.id == item_id), None)

    def _find_saved(self, item_id: str) -> Optional[SavedItem]:
        return next((item for item in self._saved_items if item.id == item_id), None)

    # ==================== Cart ====================

    def add_item(self, product: ProductLike, size: Optional[str] = None, quantity: int = 1) -> CartItem:
        """
        Add a product to the cart or merge into the existing line.

        Merged quantities are clamped to MAX_QUANTITY. If the same line is
        currently saved for later, it leaves the saved list.

        Raises:
            InvalidProductError: missing id or malformed descriptor
            OutOfStockError: product is not in stock
            QuantityOutOfRangeError: quantity below 1
        """
        product = _coerce_product(product)
        if not product.id:
            raise InvalidProductError()
        if not product.inStock:
            raise OutOfStockError()
        _check_quantity(quantity)
        if quantity < 1:
            raise QuantityOutOfRangeError(ERROR_MIN_QUANTITY)

        item_id = derive_item_id(product.id, size)
        existing = self._find_in_cart(item_id)

        if existing:
            merged = existing.quantity + quantity
            if merged > MAX_QUANTITY:
                logger.info(
                    f"Clamped {sanitize_id_for_logging(item_id)} from {merged} to {MAX_QUANTITY}"
                )
            existing.quantity = min(merged, MAX_QUANTITY)
            item = existing
        else:
            item = CartItem(
                id=item_id,
                product_id=product.id,
                name=product.name,
                unit_price=product.price,
                quantity=min(quantity, MAX_QUANTITY),
                original_price=product.originalPrice,
                image=product.images[0] if product.images else None,
                size=size,
                sponsor=product.sponsor,
                category=product.category,
                in_stock=product.inStock,
                is_app_exclusive=product.isAppExclusive,
            )
            self._cart_items.append(item)

        self._changed(StorageKeys.CART)

        if self._find_saved(item_id):
            self._saved_items = [saved for saved in self._saved_items if saved.id != item_id]
            self._changed(StorageKeys.SAVED_ITEMS)

        return item

    def remove_item(self, item_id: str) -> bool:
        """Remove a cart line. Returns False if it was not there."""
        before = len(self._cart_items)
        self._cart_items = [item for item in self._cart_items if item.id != item_id]
        if len(self._cart_items) == before:
            return False
        self._changed(StorageKeys.CART)
        return True

    def set_quantity(self, item_id: str, quantity: int) -> Optional[CartItem]:
        """
        Set a line's quantity; zero or less removes it.

        Raises:
            QuantityOutOfRangeError: quantity above MAX_QUANTITY (state unchanged)
        """
        _check_quantity(quantity)
        if quantity <= 0:
            self.remove_item(item_id)
            return None
        if quantity > MAX_QUANTITY:
            raise QuantityOutOfRangeError(ERROR_MAX_QUANTITY.format(max_quantity=MAX_QUANTITY))

        item = self._find_in_cart(item_id)
        if item is None:
            return None
        item.quantity = quantity
        self._changed(StorageKeys.CART)
        return item

    def clear_cart(self) -> None:
        """Empty the cart and drop the applied discount."""
        self._cart_items = []
        self.clear_discount()
        self._changed(StorageKeys.CART)

    # ==================== Saved items ====================

    def move_to_saved(self, item_id: str) -> SavedItem:
        """Raises ItemNotFoundError if the line is not in the cart."""
        item = self._find_in_cart(item_id)
        if item is None:
            raise ItemNotFoundError()

        saved = self._find_saved(item_id)
        if saved is None:
            saved = SavedItem.from_cart_item(item)
            self._saved_items.append(saved)
            self._changed(StorageKeys.SAVED_ITEMS)

        self.remove_item(item_id)
        return saved

    def move_to_cart(self, item_id: str) -> CartItem:
        """
        Restore a saved item with its size and quantity.

        The saved entry is only dropped once add_item succeeds.

        Raises:
            ItemNotFoundError: the item is not saved
            OutOfStockError, InvalidProductError: from add_item
        """
        saved = self._find_saved(item_id)
        if saved is None:
            raise ItemNotFoundError()

        item = self.add_item(saved.to_product(), saved.size, saved.quantity)

        # add_item already drops a saved line with the same id
        if self._find_saved(item_id):
            self.remove_saved_item(item_id)
        return item

    def remove_saved_item(self, item_id: str) -> bool:
        before = len(self._saved_items)
        self._saved_items = [item for item in self._saved_items if item.id != item_id]
        if len(self._saved_items) == before:
            return False
        self._changed(StorageKeys.SAVED_ITEMS)
        return True

    def clear_saved_items(self) -> None:
        self._saved_items = []
        self._changed(StorageKeys.SAVED_ITEMS)

    # ==================== Discount ====================

    def set_discount(self, discount: AppliedDiscount) -> None:
        self.applied_discount = discount
        self.discount_code = discount.code

    def clear_discount(self) -> None:
        self.applied_discount = None
        self.discount_code = ""

    # ==================== Queries ====================

    def is_in_cart(self, product_id: str, size: Optional[str] = None) -> bool:
        return self._find_in_cart(derive_item_id(product_id, size)) is not None

    def quantity_in_cart(self, product_id: str, size: Optional[str] = None) -> int:
        item = self._find_in_cart(derive_item_id(product_id, size))
        return item.quantity if item else 0

    def is_saved(self, product_id: str, size: Optional[str] = None) -> bool:
        return self._find_saved(derive_item_id(product_id, size)) is not None
