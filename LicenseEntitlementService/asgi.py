"""
ASGI config for LicenseEntitlementService project.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "LicenseEntitlementService.settings.prod")

application = get_asgi_application()
