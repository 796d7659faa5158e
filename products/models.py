from products.infrastructure.models import Product  # noqa: F401
