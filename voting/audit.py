"""
Audit trail writer
==================

Thin helper over AdminLog used by the validator and the ballot caster.
Every validation and cast attempt lands here, successful or not.
"""

from django.db import DEFAULT_DB_ALIAS # pyright: ignore[reportMissingModuleSource]

from .models import AdminLog

VALIDATE_SESSION = 'VALIDATE_SESSION'
CAST_VOTE = 'CAST_VOTE'

OUTCOME_SUCCESS = 'success'
OUTCOME_REJECTED = 'rejected'


def record_action(action, actor=None, target='', details=None, ip_address=None,
                  using=DEFAULT_DB_ALIAS):
    """Append one AdminLog row on the given database alias."""
    return AdminLog.objects.using(using).create(
        actor=actor,
        action=action,
        target=target or '',
        details=details or {},
        ip_address=ip_address or None,
    )


def rejection_details(error, **extra):
    details = {'outcome': OUTCOME_REJECTED, 'error': error.code, 'message': error.message}
    details.update({k: v for k, v in extra.items() if v is not None})
    return details


def success_details(**extra):
    details = {'outcome': OUTCOME_SUCCESS}
    details.update({k: v for k, v in extra.items() if v is not None})
    return details
