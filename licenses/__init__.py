"""
Licenses module - License key and License management.

This module handles:
- LicenseKey entity and domain logic
- License entity and domain logic
- License lifecycle (provision, renew, suspend, resume, cancel)
- License validation
"""
