"""
WSGI config for the Election Voting System project
==================================================

Exposes the WSGI callable as a module-level variable named ``application``.
Used by Gunicorn (or any WSGI server) in front of the voting API.
"""

import os
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'election_project.settings')

application = get_wsgi_application()
