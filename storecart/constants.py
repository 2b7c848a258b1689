"""Pricing and cart limits."""
from decimal import Decimal

MAX_QUANTITY = 99

FREE_SHIPPING_THRESHOLD = Decimal("75")  # strictly greater than
FLAT_SHIPPING_FEE = Decimal("9.99")
TAX_RATE = Decimal("0.085")

NO_SIZE = "no-size"
