"""Item identity: one cart line per (product, size) pair."""
from typing import Optional

from storecart.constants import NO_SIZE


def derive_item_id(product_id: str, size: Optional[str] = None) -> str:
    """Build the cart line id, e.g. ``rad-1-10`` or ``gowod-2-no-size``."""
    return f"{product_id}-{size or NO_SIZE}"
