"""
ASGI config for the Election Voting System project
==================================================

Exposes the ASGI callable as a module-level variable named ``application``
for Uvicorn / Daphne deployments.
"""

import os
from django.core.asgi import get_asgi_application # pyright: ignore[reportMissingModuleSource]

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'election_project.settings')

application = get_asgi_application()
