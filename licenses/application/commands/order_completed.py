"""
OrderCompletedCommand.

Raised by the storefront once an order is paid; every purchased unit
becomes one license.
"""

import uuid
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class OrderItem:
    """One order line."""

    product_id: uuid.UUID
    quantity: int = 1


@dataclass
class OrderCompletedCommand:
    """Command to issue the licenses of a completed order."""

    order_ref: str
    customer_email: str
    customer_name: str = ""
    user_ref: Optional[str] = None
    items: List[OrderItem] = field(default_factory=list)
