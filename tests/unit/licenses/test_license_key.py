"""
Unit tests for license key generation and signatures.
"""
import uuid
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from core.domain.value_objects import KeyFormat
from licenses.domain.license import License
from licenses.domain.license_key import (
    KEY_ALPHABET,
    LicenseKeyGenerator,
    LicenseSigner,
    detect_key_format,
    generate_license_key,
    is_valid_key_format,
    mask_license_key,
    normalize_license_key,
)


class TestKeyGeneration:
    """Tests for license key generation."""

    def test_standard_format(self):
        """Test standard keys are four groups of four."""
        key = generate_license_key(KeyFormat.STANDARD)

        groups = key.split("-")
        assert len(groups) == 4
        assert all(len(group) == 4 for group in groups)
        assert detect_key_format(key) == KeyFormat.STANDARD

    def test_long_format(self):
        """Test long keys are three groups of eight."""
        key = generate_license_key(KeyFormat.LONG)

        assert [len(group) for group in key.split("-")] == [8, 8, 8]
        assert detect_key_format(key) == KeyFormat.LONG

    def test_uuid_format(self):
        """Test uuid keys parse as UUIDs."""
        key = generate_license_key(KeyFormat.UUID)

        assert uuid.UUID(key)
        assert key == key.upper()
        assert detect_key_format(key) == KeyFormat.UUID

    def test_ambiguous_characters_excluded(self):
        """Test 0, O, 1 and I never appear in grouped keys."""
        for char in "0O1I":
            assert char not in KEY_ALPHABET
        keys = "".join(generate_license_key() for _ in range(50)).replace("-", "")
        assert not set(keys) & set("0O1I")

    def test_keys_are_distinct(self):
        keys = {generate_license_key() for _ in range(200)}
        assert len(keys) == 200

    def test_unsupported_format(self):
        with pytest.raises(ValueError, match="Unsupported"):
            generate_license_key("base64")

    def test_generator_default_format(self):
        """Test the generator falls back to its configured format."""
        generator = LicenseKeyGenerator(KeyFormat.LONG)

        assert detect_key_format(generator.generate()) == KeyFormat.LONG
        assert detect_key_format(generator.generate(KeyFormat.STANDARD)) == KeyFormat.STANDARD


class TestKeyFormatHelpers:
    """Tests for key normalization, format checks and masking."""

    def test_normalize(self):
        assert normalize_license_key("  abcd-efgh-jklm-npqr \n") == "ABCD-EFGH-JKLM-NPQR"
        assert normalize_license_key(None) == ""

    @pytest.mark.parametrize(
        "key",
        ["", "ABCD", "ABCD-EFGH-JKLM", "ABCD-EFGH-JKLM-NPQRS", "abcd-efgh-jklm-npqr", "ABCD_EFGH"],
    )
    def test_malformed_keys(self, key):
        """Test structurally invalid keys are rejected."""
        assert is_valid_key_format(key) is False

    def test_mask(self):
        """Test masked keys keep only a short prefix."""
        assert mask_license_key("ABCD-EFGH-JKLM-NPQR") == "ABCD-EFG..."
        assert mask_license_key("") == ""


class TestLicenseSigner:
    """Tests for LicenseSigner."""

    @pytest.fixture
    def license(self):
        return License.create(
            license_key="ABCD-EFGH-JKLM-NPQR",
            product_id=uuid.uuid4(),
            order_ref="order-1",
            customer_email="owner@example.com",
            now=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )

    def test_sign_and_verify(self, license):
        """Test a signature verifies for the license it was made for."""
        signer = LicenseSigner("secret")
        signature = signer.sign(license)

        assert len(signature) == LicenseSigner.SIGNATURE_LENGTH
        assert signer.verify(license, signature) is True
        assert signer.verify(license, signature.upper()) is True

    def test_signature_binds_owner(self, license):
        """Test changing the owner invalidates the signature."""
        signer = LicenseSigner("secret")
        signature = signer.sign(license)

        transferred = replace(license, customer_email=type(license.customer_email)("x@y.com"))

        assert signer.verify(transferred, signature) is False

    def test_signature_depends_on_secret(self, license):
        """Test a different secret produces a different signature."""
        assert LicenseSigner("one").sign(license) != LicenseSigner("two").sign(license)
        assert LicenseSigner("one").verify(license, "") is False

    def test_secret_required(self):
        with pytest.raises(ValueError, match="Signing secret"):
            LicenseSigner("")
