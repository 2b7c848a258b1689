"""
storecart - cart and order-pricing engine.

Subpackages and modules:
- cart: cart/saved-items store, discount codes, pricing, persistence
- services.money: Decimal helpers for monetary values
- config: environment-driven settings
- logging: centralized logger configuration
"""

__version__ = "1.0.0"
