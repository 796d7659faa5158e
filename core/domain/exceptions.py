"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions. Every exception carries a
machine-readable code that the application layer copies into its
typed results.
"""


class ErrorCode:
    """Machine-readable error codes shared by results and API responses."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_LICENSE = "INVALID_LICENSE"
    ALREADY_ACTIVATED = "ALREADY_ACTIVATED"
    CAP_EXCEEDED = "CAP_EXCEEDED"
    NOT_ACTIVATED = "NOT_ACTIVATED"
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
    TRANSIENT_ERROR = "TRANSIENT_ERROR"
    INVALID_LICENSE_STATUS = "INVALID_LICENSE_STATUS"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    SUBSCRIPTION_NOT_FOUND = "SUBSCRIPTION_NOT_FOUND"
    INVALID_SUBSCRIPTION_STATE = "INVALID_SUBSCRIPTION_STATE"


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message, safe to show to clients
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class LicenseException(DomainException):
    """Base exception for license-related errors."""

    pass


class LicenseNotFoundError(LicenseException):
    """Raised when no license exists for a key."""

    def __init__(self, message: str = "License not found"):
        super().__init__(message, code=ErrorCode.NOT_FOUND)


class InvalidLicenseError(LicenseException):
    """
    Raised when a license fails the validity check.

    Suspended, revoked and expired licenses are reported uniformly;
    the offending status is kept on the exception for logging only.
    """

    def __init__(self, message: str = "License is not valid", status: str = None):
        super().__init__(message, code=ErrorCode.INVALID_LICENSE)
        self.status = status


class InvalidLicenseStatusError(LicenseException):
    """Raised when a license operation is invalid for the current status."""

    def __init__(self, message: str = "Invalid license status"):
        super().__init__(message, code=ErrorCode.INVALID_LICENSE_STATUS)


class InvalidArgumentError(DomainException):
    """Raised when an operation receives an argument outside its domain."""

    def __init__(self, message: str = "Invalid argument"):
        super().__init__(message, code=ErrorCode.INVALID_ARGUMENT)


class ActivationException(DomainException):
    """Base exception for activation-related errors."""

    pass


class AlreadyActivatedError(ActivationException):
    """Raised when a machine already holds an active activation."""

    def __init__(self, message: str = "License is already activated on this machine"):
        super().__init__(message, code=ErrorCode.ALREADY_ACTIVATED)


class ActivationCapExceededError(ActivationException):
    """Raised when the entitlement cap has been reached."""

    def __init__(self, message: str = "Activation limit reached"):
        super().__init__(message, code=ErrorCode.CAP_EXCEEDED)


class NotActivatedError(ActivationException):
    """Raised when no active activation exists for a machine."""

    def __init__(self, message: str = "License is not activated on this machine"):
        super().__init__(message, code=ErrorCode.NOT_ACTIVATED)


class InvariantViolationError(DomainException):
    """Raised when stored bookkeeping contradicts an invariant."""

    def __init__(self, message: str = "Activation bookkeeping is inconsistent"):
        super().__init__(message, code=ErrorCode.INVARIANT_VIOLATION)


class TransientStoreError(DomainException):
    """Raised when the store aborts a transaction that may succeed on retry."""

    def __init__(self, message: str = "Temporary failure, please retry"):
        super().__init__(message, code=ErrorCode.TRANSIENT_ERROR)


class ProductNotFoundError(DomainException):
    """Raised when a product is not found."""

    def __init__(self, message: str = "Product not found"):
        super().__init__(message, code=ErrorCode.PRODUCT_NOT_FOUND)


class SubscriptionException(DomainException):
    """Base exception for subscription-related errors."""

    pass


class SubscriptionNotFoundError(SubscriptionException):
    """Raised when a subscription is not found."""

    def __init__(self, message: str = "Subscription not found"):
        super().__init__(message, code=ErrorCode.SUBSCRIPTION_NOT_FOUND)


class InvalidSubscriptionStateError(SubscriptionException):
    """Raised when a subscription operation is invalid for the current state."""

    def __init__(self, message: str = "Invalid subscription state"):
        super().__init__(message, code=ErrorCode.INVALID_SUBSCRIPTION_STATE)
