"""
Tests for discount codes
"""

import pytest
from decimal import Decimal

from storecart.cart import DISCOUNT_CODES, DiscountCatalog, DiscountType
from storecart.errors import DiscountMinimumNotMetError, ErrorKind, InvalidDiscountCodeError


class TestDiscountCatalog:
    """Tests for DiscountCatalog.apply_code."""

    def test_known_codes(self):
        assert set(DISCOUNT_CODES) == {"WELCOME10", "SAVE20", "FREESHIP", "NEWUSER"}
        assert DISCOUNT_CODES["SAVE20"].min_order == Decimal("100")
        assert DISCOUNT_CODES["FREESHIP"].type == DiscountType.SHIPPING

    def test_code_is_case_insensitive(self):
        applied = DiscountCatalog().apply_code("  welcome10 ", Decimal("0"))

        assert applied.code == "WELCOME10"
        assert applied.type == DiscountType.PERCENTAGE
        assert applied.value == Decimal("10")
        assert applied.applied_at != ""

    def test_unknown_code(self):
        with pytest.raises(InvalidDiscountCodeError):
            DiscountCatalog().apply_code("BOGUS", Decimal("500"))

    def test_minimum_not_met(self):
        with pytest.raises(DiscountMinimumNotMetError) as exc_info:
            DiscountCatalog().apply_code("SAVE20", Decimal("50"))

        assert exc_info.value.message == "Minimum order of $100.00 required"

    def test_minimum_is_inclusive(self):
        applied = DiscountCatalog().apply_code("NEWUSER", Decimal("50"))
        assert applied.value == Decimal("15")

    def test_custom_rules(self):
        rules = {"vip": DISCOUNT_CODES["WELCOME10"].model_copy(update={"code": "VIP"})}
        catalog = DiscountCatalog(rules)

        assert "vip" in catalog
        assert len(catalog) == 1
        assert catalog.apply_code("VIP", 0).code == "VIP"


class TestManagerDiscounts:
    """Tests for discount operations on the manager."""

    @pytest.mark.asyncio
    async def test_save20_below_minimum(self, manager, tee_product):
        manager.add_item(tee_product, quantity=2)  # $50

        result = manager.apply_discount_code("SAVE20")

        assert result.success is False
        assert result.error == ErrorKind.DISCOUNT_MINIMUM_NOT_MET
        assert manager.applied_discount is None
        assert manager.discount_code == ""

    @pytest.mark.asyncio
    async def test_welcome10_at_100(self, manager, tee_product):
        manager.add_item(tee_product, quantity=4)  # $100

        result = manager.apply_discount_code("WELCOME10")
        summary = manager.get_order_summary()

        assert result.success is True
        assert result.message == "Discount applied: 10% off your order"
        assert manager.discount_code == "WELCOME10"
        assert summary.discount == Decimal("10.00")
        assert summary.total == Decimal("100") + summary.shipping + summary.tax - Decimal("10")

    @pytest.mark.asyncio
    async def test_invalid_code(self, manager):
        result = manager.apply_discount_code("NOPE")

        assert result.success is False
        assert result.error == ErrorKind.INVALID_DISCOUNT_CODE
        assert result.message == "Invalid discount code"

    @pytest.mark.asyncio
    async def test_new_code_replaces_active_one(self, manager, tee_product):
        manager.add_item(tee_product, quantity=4)
        manager.apply_discount_code("WELCOME10")
        manager.apply_discount_code("FREESHIP")

        assert manager.applied_discount.code == "FREESHIP"

    @pytest.mark.asyncio
    async def test_discount_survives_cart_shrinking(self, manager, tee_product):
        manager.add_item(tee_product, quantity=4)
        manager.apply_discount_code("NEWUSER")

        manager.set_quantity("gr-tee-no-size", 1)

        assert manager.discount_code == "NEWUSER"
        assert manager.get_discount_amount() == Decimal("15.00")

    @pytest.mark.asyncio
    async def test_remove_discount_code(self, manager, tee_product):
        manager.add_item(tee_product)
        manager.apply_discount_code("FREESHIP")

        result = manager.remove_discount_code()

        assert result.success is True
        assert manager.applied_discount is None
        assert manager.get_shipping_cost() == Decimal("9.99")

    @pytest.mark.asyncio
    async def test_remove_without_active_code(self, manager):
        assert manager.remove_discount_code().success is True
