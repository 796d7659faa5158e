from activations.infrastructure.models import LicenseActivation  # noqa: F401
