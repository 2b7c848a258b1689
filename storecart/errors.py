"""
Cart Errors

Error kinds, user-facing messages and the internal exception hierarchy.
Exceptions never cross the CartManager boundary: they are converted to
OperationResult failures there.
"""
from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories reported in OperationResult.error."""
    INVALID_PRODUCT = "invalid_product"
    OUT_OF_STOCK = "out_of_stock"
    QUANTITY_OUT_OF_RANGE = "quantity_out_of_range"
    ITEM_NOT_FOUND = "item_not_found"
    INVALID_DISCOUNT_CODE = "invalid_discount_code"
    DISCOUNT_MINIMUM_NOT_MET = "discount_minimum_not_met"
    PERSISTENCE_READ_FAILURE = "persistence_read_failure"
    PERSISTENCE_WRITE_FAILURE = "persistence_write_failure"
    INTERNAL = "internal"


# Product errors
ERROR_INVALID_PRODUCT = "Invalid product"
ERROR_OUT_OF_STOCK = "Product is out of stock"

# Quantity errors
ERROR_MAX_QUANTITY = "Maximum quantity is {max_quantity}"
ERROR_MIN_QUANTITY = "Quantity must be at least 1"
ERROR_WHOLE_QUANTITY = "Quantity must be a whole number"

# Item errors
ERROR_ITEM_NOT_FOUND = "Item not found"

# Discount errors
ERROR_INVALID_DISCOUNT_CODE = "Invalid discount code"
ERROR_DISCOUNT_MINIMUM = "Minimum order of ${min_order} required"

# Generic failures, one per operation
ERROR_ADD_FAILED = "Failed to add item to cart"
ERROR_REMOVE_FAILED = "Failed to remove item"
ERROR_UPDATE_FAILED = "Failed to update quantity"
ERROR_SAVE_FAILED = "Failed to save item"
ERROR_MOVE_FAILED = "Failed to move item to cart"
ERROR_REMOVE_SAVED_FAILED = "Failed to remove saved item"
ERROR_CLEAR_CART_FAILED = "Failed to clear cart"
ERROR_CLEAR_SAVED_FAILED = "Failed to clear saved items"
ERROR_APPLY_DISCOUNT_FAILED = "Failed to apply discount code"
ERROR_REMOVE_DISCOUNT_FAILED = "Failed to remove discount code"


class CartError(Exception):
    """Base class for cart rule violations."""
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidProductError(CartError):
    kind = ErrorKind.INVALID_PRODUCT

    def __init__(self, message: str = ERROR_INVALID_PRODUCT):
        super().__init__(message)


class OutOfStockError(CartError):
    kind = ErrorKind.OUT_OF_STOCK

    def __init__(self, message: str = ERROR_OUT_OF_STOCK):
        super().__init__(message)


class QuantityOutOfRangeError(CartError):
    kind = ErrorKind.QUANTITY_OUT_OF_RANGE


class ItemNotFoundError(CartError):
    kind = ErrorKind.ITEM_NOT_FOUND

    def __init__(self, message: str = ERROR_ITEM_NOT_FOUND):
        super().__init__(message)


class InvalidDiscountCodeError(CartError):
    kind = ErrorKind.INVALID_DISCOUNT_CODE

    def __init__(self, message: str = ERROR_INVALID_DISCOUNT_CODE):
        super().__init__(message)


class DiscountMinimumNotMetError(CartError):
    kind = ErrorKind.DISCOUNT_MINIMUM_NOT_MET
