"""
Voting session lifecycle
========================

A session is always in exactly one state, derived from its stored fields:

    PENDING --validate--> VALIDATED --cast--> USED
       |                      |
       +------- time ---------+----> EXPIRED

USED and EXPIRED are terminal. Expiry is checked first by every guard, so a
validated-but-expired session reports EXPIRED, never VALIDATED.
"""

from django.db import models # pyright: ignore[reportMissingModuleSource]

from .exceptions import (
    SessionExpired, SessionAlreadyUsed, SessionAlreadyValidated,
    SessionNotValidated,
)


class SessionState(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    VALIDATED = 'VALIDATED', 'Validated'
    EXPIRED = 'EXPIRED', 'Expired'
    USED = 'USED', 'Used'


ACTIVE_STATES = frozenset({SessionState.PENDING, SessionState.VALIDATED})
TERMINAL_STATES = frozenset({SessionState.EXPIRED, SessionState.USED})


def derive_state(is_validated, is_used, expires_at, now):
    """Single source of truth for a session's state."""
    if is_used:
        return SessionState.USED
    if now >= expires_at:
        return SessionState.EXPIRED
    if is_validated:
        return SessionState.VALIDATED
    return SessionState.PENDING


def session_state(session, now):
    return derive_state(session.is_validated, session.is_used, session.expires_at, now)


def guard_validation(session, now):
    """Raise unless the session may move PENDING -> VALIDATED."""
    if now >= session.expires_at:
        raise SessionExpired()
    if session.is_used:
        raise SessionAlreadyUsed()
    if session.is_validated:
        raise SessionAlreadyValidated()


def guard_cast(session, now):
    """Raise unless the session may move VALIDATED -> USED."""
    if now >= session.expires_at:
        raise SessionExpired()
    if not session.is_validated:
        raise SessionNotValidated()
    if session.is_used:
        raise SessionAlreadyUsed()
