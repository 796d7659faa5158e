from licenses.infrastructure.models import IssuedOrder, License, LicenseAuditLog  # noqa: F401
