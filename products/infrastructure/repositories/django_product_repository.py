"""
Django implementation of ProductRepository port.

This adapter converts between domain entities and Django ORM models.
"""

import uuid
from typing import Optional

from asgiref.sync import sync_to_async

from core.domain.value_objects import BillingCycle, ProductLicenseType
from products.domain.product import Product
from products.infrastructure.models import Product as ProductModel
from products.ports.product_repository import ProductRepository


class DjangoProductRepository(ProductRepository):
    """Django ORM implementation of ProductRepository."""

    def _to_domain(self, model: ProductModel) -> Product:
        """
        Convert Django model to domain entity.

        Args:
            model: Django Product model

        Returns:
            Product domain entity
        """
        return Product(
            id=model.id,
            name=model.name,
            version=model.version,
            max_activations=model.max_activations,
            license_type=ProductLicenseType(model.license_type),
            license_duration_days=model.license_duration_days,
            billing_cycle=BillingCycle(model.billing_cycle) if model.billing_cycle else None,
            billing_interval=model.billing_interval,
            trial_period_days=model.trial_period_days,
            grace_period_days=model.grace_period_days,
            is_active=model.is_active,
            created_at=model.created_at,
            updated_at=model.updated_at,
            requires_machine_id=model.requires_machine_id,
        )

    def _to_model(self, product: Product) -> ProductModel:
        """
        Convert domain entity to a saved Django model.

        Args:
            product: Product domain entity

        Returns:
            Django Product model
        """
        # pylint: disable=no-member
        model, _ = ProductModel.objects.update_or_create(
            id=product.id,
            defaults={
                "name": product.name,
                "version": product.version,
                "max_activations": product.max_activations,
                "license_type": product.license_type.value,
                "license_duration_days": product.license_duration_days,
                "billing_cycle": product.billing_cycle.value if product.billing_cycle else None,
                "billing_interval": product.billing_interval,
                "trial_period_days": product.trial_period_days,
                "grace_period_days": product.grace_period_days,
                "requires_machine_id": product.requires_machine_id,
                "is_active": product.is_active,
                "created_at": product.created_at,
                "updated_at": product.updated_at,
            },
        )
        return model

    @sync_to_async
    def save(self, product: Product) -> Product:
        """
        Save a product entity.

        Args:
            product: Product entity to save

        Returns:
            Saved product entity
        """
        model = self._to_model(product)
        return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, product_id: uuid.UUID) -> Optional[Product]:
        """
        Find a product by ID.

        Args:
            product_id: Product UUID

        Returns:
            Product entity or None if not found
        """
        try:
            # pylint: disable=no-member
            model = ProductModel.objects.get(id=product_id)
        except ProductModel.DoesNotExist:  # pylint: disable=no-member
            return None
        return self._to_domain(model)
