"""
WSGI config for the Group Expense Splitter project.

HTTP only; websockets need the ASGI entry point in config/asgi.py.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

application = get_wsgi_application()
