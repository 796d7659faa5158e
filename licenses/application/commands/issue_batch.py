"""
IssueBatchCommand.

Command to issue several licenses at once outside of an order.
"""

import uuid
from dataclasses import dataclass


@dataclass
class IssueBatchCommand:
    """Command to issue `count` licenses of one product to one customer."""

    product_id: uuid.UUID
    count: int
    customer_email: str
    customer_name: str = ""
