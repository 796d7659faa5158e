"""
Engine configuration.

Configuration is resolved once and passed into handlers and the
signature component at construction time.
"""
from dataclasses import dataclass
from typing import Any, Dict

from core.domain.value_objects import KeyFormat


@dataclass(frozen=True)
class EngineConfig:
    """Tunables for the entitlement engine."""

    signing_secret: str
    default_key_format: KeyFormat = KeyFormat.STANDARD
    key_generation_attempts: int = 5
    activation_retry_attempts: int = 3
    activation_retry_backoff_seconds: float = 0.05
    default_grace_period_days: int = 7
    strict_invariants: bool = False
    support_email: str = "support@example.com"
    public_base_url: str = "http://localhost:8000"
    expiring_notice_days: int = 7

    def __post_init__(self):
        """Validate configuration."""
        if not self.signing_secret:
            raise ValueError("Signing secret is required")
        if self.key_generation_attempts < 1:
            raise ValueError("Key generation attempts must be at least 1")
        if self.activation_retry_attempts < 1:
            raise ValueError("Activation retry attempts must be at least 1")
        if self.activation_retry_backoff_seconds < 0:
            raise ValueError("Retry backoff cannot be negative")
        if self.default_grace_period_days < 0:
            raise ValueError("Grace period cannot be negative")

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "EngineConfig":
        """
        Build configuration from a settings dictionary.

        Args:
            values: Mapping using upper-case setting names

        Returns:
            EngineConfig instance
        """
        defaults = cls.__dataclass_fields__
        return cls(
            signing_secret=values.get("SIGNING_SECRET", ""),
            default_key_format=KeyFormat(
                values.get("DEFAULT_KEY_FORMAT", KeyFormat.STANDARD.value)
            ),
            key_generation_attempts=int(
                values.get("KEY_GENERATION_ATTEMPTS", defaults["key_generation_attempts"].default)
            ),
            activation_retry_attempts=int(
                values.get(
                    "ACTIVATION_RETRY_ATTEMPTS", defaults["activation_retry_attempts"].default
                )
            ),
            activation_retry_backoff_seconds=float(
                values.get(
                    "ACTIVATION_RETRY_BACKOFF_SECONDS",
                    defaults["activation_retry_backoff_seconds"].default,
                )
            ),
            default_grace_period_days=int(
                values.get(
                    "DEFAULT_GRACE_PERIOD_DAYS", defaults["default_grace_period_days"].default
                )
            ),
            strict_invariants=bool(values.get("STRICT_INVARIANTS", False)),
            support_email=values.get("SUPPORT_EMAIL", defaults["support_email"].default),
            public_base_url=values.get("PUBLIC_BASE_URL", defaults["public_base_url"].default),
            expiring_notice_days=int(
                values.get("EXPIRING_NOTICE_DAYS", defaults["expiring_notice_days"].default)
            ),
        )
