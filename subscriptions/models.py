from subscriptions.infrastructure.models import Subscription  # noqa: F401
