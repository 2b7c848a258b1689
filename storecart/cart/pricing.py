"""
Order pricing.

Pure functions from (cart items, applied discount) to an OrderSummary.

Calculation order:
1. subtotal = sum(unit_price * quantity)
2. shipping = 0 above the free-shipping threshold or with a shipping code
3. discount = percentage of subtotal | fixed amount capped at subtotal |
   waived shipping fee
4. tax on (subtotal - merchandise discount)
5. total = subtotal + shipping + tax - merchandise discount, floored at 0

A shipping code is reported as a discount equal to the fee it waived, but
that amount is not subtracted again: step 2 already removed it.
"""
from decimal import Decimal
from typing import Iterable, Optional

from storecart.constants import FLAT_SHIPPING_FEE, FREE_SHIPPING_THRESHOLD, TAX_RATE
from storecart.services.money import multiply, percent, round_money
from .models import AppliedDiscount, CartItem, DiscountType, OrderSummary

ZERO = Decimal("0")


def cart_subtotal(items: Iterable[CartItem]) -> Decimal:
    return sum((item.total_price for item in items), ZERO)


def item_count(items: Iterable[CartItem]) -> int:
    return sum(item.quantity for item in items)


def base_shipping(subtotal: Decimal) -> Decimal:
    """Shipping fee before any discount code."""
    return ZERO if subtotal > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE


def shipping_cost(subtotal: Decimal, discount: Optional[AppliedDiscount] = None) -> Decimal:
    if discount is not None and discount.type == DiscountType.SHIPPING:
        return ZERO
    return base_shipping(subtotal)


def merchandise_discount(subtotal: Decimal, discount: Optional[AppliedDiscount] = None) -> Decimal:
    """Amount taken off the goods themselves (excludes waived shipping)."""
    if discount is None:
        return ZERO
    if discount.type == DiscountType.PERCENTAGE:
        return percent(subtotal, discount.value)
    if discount.type == DiscountType.FIXED:
        return max(ZERO, min(discount.value, subtotal))
    return ZERO


def discount_amount(subtotal: Decimal, discount: Optional[AppliedDiscount] = None) -> Decimal:
    """Savings reported to the customer."""
    if discount is not None and discount.type == DiscountType.SHIPPING:
        return base_shipping(subtotal)
    return merchandise_discount(subtotal, discount)


def tax_amount(subtotal: Decimal, discount: Optional[AppliedDiscount] = None) -> Decimal:
    taxable = max(ZERO, subtotal - merchandise_discount(subtotal, discount))
    return multiply(taxable, TAX_RATE)


def calculate_order_summary(
    items: Iterable[CartItem],
    discount: Optional[AppliedDiscount] = None,
) -> OrderSummary:
    """Build the order summary; amounts are rounded to cents."""
    items = list(items)
    subtotal = round_money(cart_subtotal(items))
    shipping = round_money(shipping_cost(subtotal, discount))
    reduction = round_money(merchandise_discount(subtotal, discount))
    tax = round_money(tax_amount(subtotal, discount))
    total = max(ZERO, subtotal + shipping + tax - reduction)

    return OrderSummary(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        discount=round_money(discount_amount(subtotal, discount)),
        total=round_money(total),
        item_count=item_count(items),
        applied_discount=discount,
    )


def final_total(items: Iterable[CartItem], discount: Optional[AppliedDiscount] = None) -> Decimal:
    return calculate_order_summary(items, discount).total
