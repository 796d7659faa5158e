"""
DeactivateLicenseCommand.

Command to release a machine's activation.
"""

from dataclasses import dataclass


@dataclass
class DeactivateLicenseCommand:
    """Command to deactivate a license on one machine."""

    license_key: str
    machine_fingerprint: str
