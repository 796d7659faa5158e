"""
ActivateLicenseCommand.

Command to bind a machine to a license.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ActivateLicenseCommand:
    """Command to activate a license on one machine."""

    license_key: str
    machine_fingerprint: str
    machine_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: str = ""
    system_info: Dict[str, Any] = field(default_factory=dict)
