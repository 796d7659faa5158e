from core.infrastructure.models import ApiKey  # noqa: F401
