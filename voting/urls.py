"""
URL routing for voting app
==========================

Maps URL patterns to the JSON API:
- Session issuance and validation
- Ballot casting
- Candidates, tally and monitoring feeds
- Voter roster (admins)
"""

from django.urls import path
from . import views

app_name = 'voting'

urlpatterns = [
    # Credential lifecycle
    path('api/sessions/', views.issue_session, name='issue_session'),
    path('api/sessions/validate/', views.validate_session, name='validate_session'),

    # Ballot
    path('api/votes/', views.cast_vote, name='cast_vote'),
    path('api/candidates/', views.candidate_list, name='candidate_list'),

    # Results and monitoring
    path('api/tally/', views.tally, name='tally'),
    path('api/monitoring/recent-validations/', views.recent_validations, name='recent_validations'),
    path('api/monitoring/logs/', views.recent_logs, name='recent_logs'),

    # Administration
    path('api/admin/voters/', views.voter_list, name='voter_list'),
    path('api/programs/', views.program_list, name='program_list'),
]
