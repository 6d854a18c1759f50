"""WSGI config for the Seatwise project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "seatwise.settings")

application = get_wsgi_application()
