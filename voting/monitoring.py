"""
Monitoring read models
======================

Queries backing the admin and monitoring dashboards: recent validations,
the audit feed, the paginated voter roster and filter drop-down values.
All functions are read-only and return plain dicts ready for JsonResponse.
"""

import math

from django.conf import settings # pyright: ignore[reportMissingModuleSource]
from django.db import DEFAULT_DB_ALIAS # pyright: ignore[reportMissingModuleSource]
from django.db.models import Q # pyright: ignore[reportMissingModuleSource]

from .models import AdminLog, Candidate, Voter, VotingSession

MAX_PAGE_SIZE = 100


def _iso(value):
    return value.isoformat() if value else None


def _limit(limit):
    if limit is None:
        return settings.MONITORING_RECENT_LIMIT
    return max(1, min(int(limit), MAX_PAGE_SIZE))


def voter_summary(voter):
    return {
        'id': voter.pk,
        'name': voter.name,
        'registrationNumber': voter.registration_number,
        'program': voter.program,
        'role': voter.role,
        'hasVoted': voter.has_voted,
        'createdAt': _iso(voter.created_at),
    }


def candidate_summary(candidate):
    return {
        'id': candidate.pk,
        'name': candidate.name,
        'registrationNumber': candidate.registration_number,
        'program': candidate.program,
        'photo': candidate.photo,
        'vision': candidate.vision,
        'mission': candidate.mission,
    }


def recent_validations(limit=None, using=DEFAULT_DB_ALIAS):
    """Latest validated sessions with voter and validator details."""
    sessions = (
        VotingSession.objects.using(using)
        .filter(is_validated=True)
        .select_related('voter', 'validated_by')
        .order_by('-validated_at', '-pk')[:_limit(limit)]
    )
    results = []
    for session in sessions:
        validator = session.validated_by
        results.append({
            'id': session.pk,
            'redeemCode': session.redeem_code,
            'validatedAt': _iso(session.validated_at),
            'isUsed': session.is_used,
            'voter': {
                'name': session.voter.name,
                'registrationNumber': session.voter.registration_number,
                'program': session.voter.program,
            },
            'validator': {
                'name': validator.name,
                'role': validator.role,
            } if validator else None,
        })
    return results


def recent_logs(limit=None, using=DEFAULT_DB_ALIAS):
    """Latest audit entries, newest first."""
    logs = (
        AdminLog.objects.using(using)
        .select_related('actor')
        .order_by('-created_at', '-pk')[:_limit(limit)]
    )
    return [
        {
            'id': log.pk,
            'action': log.action,
            'target': log.target,
            'details': log.details,
            'ipAddress': log.ip_address,
            'createdAt': _iso(log.created_at),
            'actor': {
                'id': log.actor.pk,
                'name': log.actor.name,
                'role': log.actor.role,
            } if log.actor else None,
        }
        for log in logs
    ]


def program_list(using=DEFAULT_DB_ALIAS):
    """Sorted distinct non-blank programs among registered voters."""
    programs = (
        Voter.objects.using(using)
        .exclude(program='')
        .order_by('program')
        .values_list('program', flat=True)
        .distinct()
    )
    return list(programs)


def list_voters(search='', program='', role='', status='', page=1, limit=10,
                using=DEFAULT_DB_ALIAS):
    """
    Paginated roster listing.

    Args:
        search: case-insensitive match on name, registration number or program
        program: case-insensitive program filter
        role: Role value, '' or 'all' for every role
        status: 'voted', 'not_voted', '' or 'all'
        page: 1-based page number
        limit: page size (capped)

    Returns:
        dict with voters, pagination and the program list for filters
    """
    page = max(1, int(page or 1))
    limit = max(1, min(int(limit or 10), MAX_PAGE_SIZE))

    voters = Voter.objects.using(using).all()
    if search:
        voters = voters.filter(
            Q(name__icontains=search)
            | Q(registration_number__icontains=search)
            | Q(program__icontains=search)
        )
    if program:
        voters = voters.filter(program__icontains=program)
    if role and role != 'all':
        voters = voters.filter(role=role)
    if status and status != 'all':
        voters = voters.filter(has_voted=(status == 'voted'))

    total = voters.count()
    offset = (page - 1) * limit
    rows = voters.order_by('-created_at', '-pk')[offset:offset + limit]

    return {
        'voters': [voter_summary(v) for v in rows],
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'totalPages': math.ceil(total / limit),
        },
        'programs': program_list(using=using),
    }


def active_candidates(using=DEFAULT_DB_ALIAS):
    """Candidates a voter may select, in ballot order."""
    candidates = Candidate.objects.using(using).filter(is_active=True).order_by('created_at', 'pk')
    return [candidate_summary(c) for c in candidates]

