"""
Main URL Router for the Election Voting System
==============================================

Routes the Django admin (roster and candidate management) and the voting
JSON API. Pages are rendered by a separate front-end.
"""

from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    # Django admin panel
    path('admin/', admin.site.urls),

    # Voting API (sessions, validation, ballots, tally, monitoring)
    path('', include('voting.urls')),
]
