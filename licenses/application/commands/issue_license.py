"""
IssueLicenseCommand.

Command to issue a single license for a product.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.domain.value_objects import KeyFormat


@dataclass
class IssueLicenseCommand:
    """Command to issue one license for one purchased unit."""

    product_id: uuid.UUID
    order_ref: str
    customer_email: str
    customer_name: str = ""
    user_ref: Optional[str] = None
    custom_max_activations: Optional[int] = None
    custom_expires_at: Optional[datetime] = None
    key_format: Optional[KeyFormat] = None
