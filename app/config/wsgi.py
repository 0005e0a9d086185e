"""
WSGI config for the marketplace service.

Exposes the WSGI callable as a module-level variable named `application`
(served by gunicorn in production).
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
