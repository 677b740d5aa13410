"""WSGI entry point for the monitoreo backend."""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'monitoreo.settings')

application = get_wsgi_application()
