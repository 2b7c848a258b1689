"""Discount code catalog.

Codes are static and matched case-insensitively. Validation only checks
the minimum order at application time.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from storecart.errors import (
    ERROR_DISCOUNT_MINIMUM,
    DiscountMinimumNotMetError,
    InvalidDiscountCodeError,
)
from storecart.services.money import to_decimal
from .models import AppliedDiscount, DiscountRule, DiscountType


DISCOUNT_CODES: dict[str, DiscountRule] = {
    rule.code: rule
    for rule in (
        DiscountRule(
            code="WELCOME10",
            type=DiscountType.PERCENTAGE,
            value=Decimal("10"),
            min_order=Decimal("0"),
            description="10% off your order",
        ),
        DiscountRule(
            code="SAVE20",
            type=DiscountType.PERCENTAGE,
            value=Decimal("20"),
            min_order=Decimal("100"),
            description="20% off orders over $100",
        ),
        DiscountRule(
            code="FREESHIP",
            type=DiscountType.SHIPPING,
            value=Decimal("0"),
            min_order=Decimal("0"),
            description="Free shipping",
        ),
        DiscountRule(
            code="NEWUSER",
            type=DiscountType.FIXED,
            value=Decimal("15"),
            min_order=Decimal("50"),
            description="$15 off orders over $50",
        ),
    )
}


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


class DiscountCatalog:
    """Lookup and validation of discount codes."""

    def __init__(self, rules: Optional[dict[str, DiscountRule]] = None):
        source = DISCOUNT_CODES if rules is None else rules
        self._rules = {normalize_code(code): rule for code, rule in source.items()}

    def apply_code(self, code: Optional[str], subtotal) -> AppliedDiscount:
        """
        Validate a code against the current subtotal.

        Raises:
            InvalidDiscountCodeError: unknown code
            DiscountMinimumNotMetError: subtotal below the rule's minimum

        Returns:
            Snapshot of the rule bound to the uppercased code
        """
        upper_code = normalize_code(code)
        rule = self._rules.get(upper_code)
        if rule is None:
            raise InvalidDiscountCodeError()

        if to_decimal(subtotal) < rule.min_order:
            raise DiscountMinimumNotMetError(
                ERROR_DISCOUNT_MINIMUM.format(min_order=f"{rule.min_order:.2f}")
            )

        return AppliedDiscount(
            **rule.model_dump(exclude={"code"}),
            code=upper_code,
            applied_at=datetime.now(timezone.utc).isoformat(),
        )

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and normalize_code(code) in self._rules

    def __len__(self) -> int:
        return len(self._rules)
