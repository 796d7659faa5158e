"""
Plain-text license certificates.
"""

from licenses.domain.license import License
from licenses.domain.license_key import LicenseSigner
from products.domain.product import Product


def render_license_file(
    license: License,
    product: Product,
    signer: LicenseSigner,
    support_email: str,
    public_base_url: str,
) -> str:
    """
    Render the downloadable certificate of a license.

    Args:
        license: License entity
        product: Product of the license
        signer: Signer holding the configured secret
        support_email: Contact printed on the certificate
        public_base_url: Base URL of the validation endpoint

    Returns:
        Certificate text ending with the license signature
    """
    max_activations = license.effective_max_activations
    expires_at = license.effective_expires_at
    lines = [
        f"{product.name} - Software License",
        "================================",
        "",
        f"License Key: {license.license_key}",
        f"Product: {product.name}",
        f"Version: {product.version or 'Latest'}",
        f"License Type: {license.license_type.value.capitalize()}",
        "",
        f"Licensed To: {license.customer_email}",
        f"Issue Date: {license.created_at:%Y-%m-%d}",
    ]
    if expires_at is not None:
        lines.append(f"Expiration Date: {expires_at:%Y-%m-%d}")
    lines += [
        "",
        f"Maximum Activations: {max_activations}",
        f"Current Activations: {license.activation_count}",
        "",
        "Terms and Conditions:",
        "- This license is non-transferable except as allowed by the software vendor",
        f"- You may install this software on up to {max_activations} machine(s)",
        "- Unauthorized distribution or sharing of this license is prohibited",
        "- Support is provided according to the vendor's support policy",
        "",
        f"For support, please contact: {support_email}",
        "",
        "License verification can be performed at:",
        f"{public_base_url.rstrip('/')}/api/v1/product/validate",
        "",
        f"Digital Signature: {signer.sign(license)}",
    ]
    return "\n".join(lines) + "\n"
