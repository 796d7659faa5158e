"""
WSGI config for LicenseEntitlementService project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "LicenseEntitlementService.settings.prod")

application = get_wsgi_application()
