"""Cart models with Decimal-based pricing."""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from storecart.errors import ErrorKind
from storecart.services.money import to_decimal, multiply, to_float


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Product(BaseModel):
    """Catalog product descriptor consumed by add_item.

    Keys follow the catalog's camelCase shape (``originalPrice``,
    ``inStock``); unknown keys such as ``description`` or ``sizes`` are
    ignored.
    """
    id: Optional[str] = None
    name: str = ""
    price: Decimal = Decimal("0")
    originalPrice: Optional[Decimal] = None
    images: list[Any] = []
    sponsor: Optional[str] = None
    category: Optional[str] = None
    inStock: bool = False
    isAppExclusive: bool = False

    class Config:
        extra = "ignore"

    @field_validator("price", mode="before")
    @classmethod
    def convert_price_to_decimal(cls, v):
        return to_decimal(v)

    @field_validator("originalPrice", mode="before")
    @classmethod
    def convert_original_price(cls, v):
        return to_decimal(v) if v is not None else None

    @field_validator("name", mode="before")
    @classmethod
    def default_name(cls, v):
        return "" if v is None else v

    @field_validator("images", mode="before")
    @classmethod
    def default_images(cls, v):
        return [] if v is None else v

    @field_validator("inStock", "isAppExclusive", mode="before")
    @classmethod
    def default_flags(cls, v):
        return False if v is None else v

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v):
        # Catalog ids may be numeric
        if v is None or v == "":
            return None
        return str(v)


@dataclass
class CartItem:
    """Single line in the cart."""
    id: str
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int = 1
    original_price: Optional[Decimal] = None
    image: Optional[Any] = None
    size: Optional[str] = None
    sponsor: Optional[str] = None
    category: Optional[str] = None
    in_stock: bool = True
    is_app_exclusive: bool = False
    added_at: str = ""

    def __post_init__(self):
        if not self.added_at:
            self.added_at = _now_iso()
        self.unit_price = to_decimal(self.unit_price)
        if self.original_price is not None:
            self.original_price = to_decimal(self.original_price)

    @property
    def total_price(self) -> Decimal:
        """Line total (unit price x quantity), unrounded."""
        return multiply(self.unit_price, self.quantity)

    def to_product(self) -> Product:
        """Rebuild the catalog descriptor this line was created from."""
        return Product(
            id=self.product_id,
            name=self.name,
            price=self.unit_price,
            originalPrice=self.original_price,
            images=[self.image] if self.image else [],
            sponsor=self.sponsor,
            category=self.category,
            inStock=self.in_stock,
            isAppExclusive=self.is_app_exclusive,
        )

    def to_dict(self) -> dict:
        """Convert to the persisted camelCase shape."""
        return {
            "id": self.id,
            "productId": self.product_id,
            "name": self.name,
            "price": str(self.unit_price),
            "originalPrice": str(self.original_price) if self.original_price is not None else None,
            "image": self.image,
            "size": self.size,
            "quantity": self.quantity,
            "sponsor": self.sponsor,
            "category": self.category,
            "inStock": self.in_stock,
            "isAppExclusive": self.is_app_exclusive,
            "addedAt": self.added_at,
        }

    @classmethod
    def _fields_from_dict(cls, data: dict) -> dict[str, Any]:
        original = data.get("originalPrice")
        return {
            "id": data["id"],
            "product_id": data["productId"],
            "name": data.get("name", ""),
            "unit_price": to_decimal(data.get("price", data.get("unitPrice"))),
            "quantity": int(data.get("quantity", 1)),
            "original_price": to_decimal(original) if original is not None else None,
            "image": data.get("image", data.get("imageRef")),
            "size": data.get("size"),
            "sponsor": data.get("sponsor"),
            "category": data.get("category"),
            "in_stock": bool(data.get("inStock", True)),
            "is_app_exclusive": bool(data.get("isAppExclusive", False)),
            "added_at": data.get("addedAt", ""),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        """Create from a persisted dictionary."""
        return cls(**cls._fields_from_dict(data))


@dataclass
class SavedItem(CartItem):
    """Item set aside for later; never priced."""
    saved_at: str = ""

    def __post_init__(self):
        super().__post_init__()
        if not self.saved_at:
            self.saved_at = _now_iso()

    @classmethod
    def from_cart_item(cls, item: CartItem) -> "SavedItem":
        return cls(
            id=item.id,
            product_id=item.product_id,
            name=item.name,
            unit_price=item.unit_price,
            quantity=item.quantity,
            original_price=item.original_price,
            image=item.image,
            size=item.size,
            sponsor=item.sponsor,
            category=item.category,
            in_stock=item.in_stock,
            is_app_exclusive=item.is_app_exclusive,
            added_at=item.added_at,
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["savedAt"] = self.saved_at
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SavedItem":
        return cls(**cls._fields_from_dict(data), saved_at=data.get("savedAt", ""))


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    SHIPPING = "shipping"


class DiscountRule(BaseModel):
    """Catalog entry for a discount code."""
    code: str
    type: DiscountType
    value: Decimal
    min_order: Decimal = Decimal("0")
    description: str


class AppliedDiscount(DiscountRule):
    """Snapshot of the rule that was valid when the code was applied."""
    applied_at: str = ""


class OrderSummary(BaseModel):
    """Derived pricing for the current cart. Never persisted."""
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    item_count: int
    applied_discount: Optional[AppliedDiscount] = None

    def to_dict(self) -> dict:
        """Float amounts for JSON responses."""
        return {
            "subtotal": to_float(self.subtotal),
            "shipping": to_float(self.shipping),
            "tax": to_float(self.tax),
            "discount": to_float(self.discount),
            "total": to_float(self.total),
            "itemCount": self.item_count,
            "appliedDiscount": (
                {
                    "code": self.applied_discount.code,
                    "type": self.applied_discount.type.value,
                    "value": to_float(self.applied_discount.value),
                    "minOrder": to_float(self.applied_discount.min_order),
                    "description": self.applied_discount.description,
                }
                if self.applied_discount
                else None
            ),
        }


class OperationResult(BaseModel):
    """Outcome of a cart mutation as seen by the UI."""
    success: bool
    message: str
    error: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, message: str) -> "OperationResult":
        return cls(success=True, message=message)

    @classmethod
    def fail(cls, message: str, error: ErrorKind = ErrorKind.INTERNAL) -> "OperationResult":
        return cls(success=False, message=message, error=error)


__all__ = [
    "Product",
    "CartItem",
    "SavedItem",
    "DiscountType",
    "DiscountRule",
    "AppliedDiscount",
    "OrderSummary",
    "OperationResult",
]
