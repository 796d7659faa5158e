"""
License key generation, format validation and signatures.

Keys are opaque customer-facing identifiers. Generation is pure and
uses the CSPRNG in `secrets`; uniqueness against stored keys is the
issuing handler's concern.
"""

import hashlib
import hmac
import re
import secrets
import string
import uuid
from typing import Optional

from core.domain.value_objects import KeyFormat

# 0/O and 1/I are excluded so keys survive being read aloud or retyped.
KEY_ALPHABET = "".join(
    char for char in string.ascii_uppercase + string.digits if char not in "0O1I"
)

_KEY_PATTERNS = {
    KeyFormat.STANDARD: re.compile(r"\A[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}\Z"),
    KeyFormat.LONG: re.compile(r"\A[A-Z0-9]{8}-[A-Z0-9]{8}-[A-Z0-9]{8}\Z"),
    KeyFormat.UUID: re.compile(
        r"\A[A-F0-9]{8}-[A-F0-9]{4}-[A-F0-9]{4}-[A-F0-9]{4}-[A-F0-9]{12}\Z"
    ),
}


def _grouped(groups: int, group_length: int) -> str:
    parts = [
        "".join(secrets.choice(KEY_ALPHABET) for _ in range(group_length))
        for _ in range(groups)
    ]
    return "-".join(parts)


def generate_license_key(key_format: KeyFormat = KeyFormat.STANDARD) -> str:
    """
    Generate a license key.

    Args:
        key_format: standard (XXXX-XXXX-XXXX-XXXX), long
            (XXXXXXXX-XXXXXXXX-XXXXXXXX) or uuid

    Returns:
        Generated license key string

    Raises:
        ValueError: If key_format is not a KeyFormat
    """
    if key_format == KeyFormat.STANDARD:
        return _grouped(4, 4)
    if key_format == KeyFormat.LONG:
        return _grouped(3, 8)
    if key_format == KeyFormat.UUID:
        return str(uuid.uuid4()).upper()
    raise ValueError(f"Unsupported license key format: {key_format!r}")


def normalize_license_key(raw_key: Optional[str]) -> str:
    """Strip surrounding whitespace and upper-case a user-supplied key."""
    return (raw_key or "").strip().upper()


def detect_key_format(key: str) -> Optional[KeyFormat]:
    """Return the format a key matches structurally, or None."""
    for key_format, pattern in _KEY_PATTERNS.items():
        if pattern.match(key):
            return key_format
    return None


def is_valid_key_format(key: str) -> bool:
    """
    Check a key's structure against every supported format.

    This does not check that the key exists.
    """
    return detect_key_format(key) is not None


def mask_license_key(key: str) -> str:
    """Partial key safe for logs and audit records."""
    if not key:
        return ""
    return f"{key[:8]}..."


class LicenseKeyGenerator:
    """Domain service for license key generation."""

    def __init__(self, default_format: KeyFormat = KeyFormat.STANDARD):
        self.default_format = default_format

    def generate(self, key_format: Optional[KeyFormat] = None) -> str:
        """
        Generate a license key.

        Args:
            key_format: Format override; the configured default otherwise

        Returns:
            Generated license key string
        """
        return generate_license_key(key_format or self.default_format)

    @staticmethod
    def valid_format(key: str) -> bool:
        return is_valid_key_format(key)


class LicenseSigner:
    """
    HMAC signatures binding a key to its product, customer and issue time.

    The secret is supplied at construction; nothing is read from the
    environment at call time.
    """

    SIGNATURE_LENGTH = 32

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("Signing secret is required")
        self._secret = secret.encode()

    def _payload(self, license) -> bytes:
        issued = int(license.created_at.timestamp())
        return "|".join(
            [
                license.license_key,
                str(license.product_id),
                str(license.customer_email),
                str(issued),
            ]
        ).encode()

    def sign(self, license) -> str:
        """
        Compute the signature of a license.

        Args:
            license: License entity

        Returns:
            Hex signature string
        """
        digest = hmac.new(self._secret, self._payload(license), hashlib.sha256).hexdigest()
        return digest[: self.SIGNATURE_LENGTH]

    def verify(self, license, signature: str) -> bool:
        """Check a signature in constant time."""
        if not signature:
            return False
        return hmac.compare_digest(self.sign(license), signature.strip().lower())
