"""
Integration tests for Product API endpoints.
"""

import pytest
from asgiref.sync import async_to_sync

from activations.infrastructure.models import LicenseActivation
from api.v1 import dependencies
from licenses.domain.license_key import LicenseSigner
from licenses.infrastructure.models import License
from products.domain.product import Product

VALIDATE_URL = "/api/v1/product/validate"
ACTIVATE_URL = "/api/v1/product/activate"
DEACTIVATE_URL = "/api/v1/product/deactivate"


@pytest.fixture
def issued_license(db_product):
    """Fixture for a license issued through the production wiring."""
    return async_to_sync(dependencies.license_issuer().issue)(
        db_product, "order-1", "customer@example.com"
    )


def activate(client, license_key, fingerprint):
    payload = {"license_key": license_key, "machine_fingerprint": fingerprint}
    return client.post(ACTIVATE_URL, payload, format="json")


@pytest.mark.django_db
@pytest.mark.integration
class TestValidateAPI:
    """Integration tests for the validate endpoint."""

    def test_validate_valid_license(self, api_client, issued_license, db_product):
        """Test validating a fresh license."""
        response = api_client.post(
            VALIDATE_URL, {"license_key": issued_license.license_key}, format="json"
        )

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["status"] == "active"
        assert data["product_id"] == str(db_product.id)
        assert data["max_activations"] == 2
        assert data["activated_on_machine"] is None

    def test_validate_unknown_key(self, api_client, db):
        """Test an unknown key is a normal 200 result."""
        response = api_client.post(
            VALIDATE_URL, {"license_key": "ZZZZ-ZZZZ-ZZZZ-ZZZZ"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["valid"] is False
        assert response.json()["status"] == "not_found"

    def test_validate_with_signature(self, api_client, issued_license):
        """Test the signature from the license file verifies."""
        signature = LicenseSigner("test-signing-secret").sign(issued_license)

        response = api_client.post(
            VALIDATE_URL,
            {"license_key": issued_license.license_key.lower(), "signature": signature},
            format="json",
        )

        assert response.json()["signature_valid"] is True

    def test_validate_missing_key(self, api_client, db):
        """Test validation errors use the error envelope."""
        response = api_client.post(VALIDATE_URL, {}, format="json")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        assert "license_key" in response.json()["error"]["details"]


@pytest.mark.django_db
@pytest.mark.integration
class TestActivationAPI:
    """Integration tests for the activate and deactivate endpoints."""

    def test_activate_license_success(self, api_client, issued_license):
        """Test successful license activation via API."""
        response = api_client.post(
            ACTIVATE_URL,
            {
                "license_key": issued_license.license_key,
                "machine_fingerprint": "machine-a",
                "system_info": {"os": "linux"},
            },
            format="json",
            HTTP_USER_AGENT="licensed-app/2.1",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["remaining_activations"] == 1
        activation = LicenseActivation.objects.get(id=data["activation_id"])
        assert activation.machine_fingerprint == "machine-a"
        assert activation.system_info == {"os": "linux"}
        assert activation.user_agent == "licensed-app/2.1"
        assert License.objects.get(id=issued_license.id).activation_count == 1

    def test_activate_license_duplicate(self, api_client, issued_license):
        """Test duplicate license activation returns 409 instead of 500."""
        activate(api_client, issued_license.license_key, "machine-a")

        response = activate(api_client, issued_license.license_key, "machine-a")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ALREADY_ACTIVATED"

    def test_activation_cap(self, api_client, issued_license):
        """Test the third machine is refused and a released seat is reusable."""
        key = issued_license.license_key
        assert activate(api_client, key, "A").status_code == 201
        assert activate(api_client, key, "B").status_code == 201

        response = activate(api_client, key, "C")
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "CAP_EXCEEDED"

        released = api_client.post(
            DEACTIVATE_URL, {"license_key": key, "machine_fingerprint": "A"}, format="json"
        )
        assert released.status_code == 200
        assert released.json()["remaining_activations"] == 1

        assert activate(api_client, key, "C").status_code == 201

    def test_activate_unknown_key(self, api_client, db):
        response = activate(api_client, "ZZZZ-ZZZZ-ZZZZ-ZZZZ", "machine-a")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_activate_suspended_license(self, api_client, issued_license):
        License.objects.filter(id=issued_license.id).update(status="suspended")

        response = activate(api_client, issued_license.license_key, "machine-a")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_LICENSE"

    def test_activate_missing_fingerprint(self, api_client, issued_license):
        response = api_client.post(
            ACTIVATE_URL, {"license_key": issued_license.license_key}, format="json"
        )

        assert response.status_code == 400

    def test_activate_requires_machine_id(self, api_client, db, django_product_repository):
        """Test a product requiring machine ids passes the rule on to its licenses."""
        product = async_to_sync(django_product_repository.save)(
            Product.create(name="Workstation", max_activations=2, requires_machine_id=True)
        )
        license = async_to_sync(dependencies.license_issuer().issue)(
            product, "order-2", "customer@example.com"
        )
        assert License.objects.get(id=license.id).requires_machine_id is True

        rejected = activate(api_client, license.license_key, "machine-a")
        accepted = api_client.post(
            ACTIVATE_URL,
            {
                "license_key": license.license_key,
                "machine_fingerprint": "machine-a",
                "machine_id": "host-1234",
            },
            format="json",
        )

        assert rejected.status_code == 422
        assert rejected.json()["error"]["code"] == "INVALID_ARGUMENT"
        assert accepted.status_code == 201
        assert LicenseActivation.objects.get(license_id=license.id).machine_id == "host-1234"

    def test_deactivate_not_activated(self, api_client, issued_license):
        """Test releasing a machine that never activated."""
        response = api_client.post(
            DEACTIVATE_URL,
            {"license_key": issued_license.license_key, "machine_fingerprint": "nowhere"},
            format="json",
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "NOT_ACTIVATED"

    def test_activation_reported_by_validate(self, api_client, issued_license):
        activate(api_client, issued_license.license_key, "machine-a")

        response = api_client.post(
            VALIDATE_URL,
            {"license_key": issued_license.license_key, "machine_fingerprint": "machine-a"},
            format="json",
        )

        assert response.json()["activated_on_machine"] is True
        assert response.json()["activations_used"] == 1


@pytest.mark.django_db
@pytest.mark.integration
class TestHealthEndpoints:
    """Integration tests for health endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_live(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_ready(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["checks"]["database"] is True

    def test_metrics(self, client):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert b"activations_total" in response.content
