from datetime import timedelta
from types import SimpleNamespace

import pytest
from django.utils import timezone

from voting.exceptions import (
    SessionAlreadyUsed, SessionAlreadyValidated, SessionExpired, SessionNotValidated,
)
from voting.lifecycle import SessionState, derive_state, guard_cast, guard_validation

NOW = timezone.now()
LATER = NOW + timedelta(minutes=5)
EARLIER = NOW - timedelta(minutes=5)


@pytest.mark.parametrize('is_validated, is_used, expires_at, expected', [
    (False, False, LATER, SessionState.PENDING),
    (True, False, LATER, SessionState.VALIDATED),
    (True, True, LATER, SessionState.USED),
    (True, True, EARLIER, SessionState.USED),
    (False, False, EARLIER, SessionState.EXPIRED),
    (True, False, EARLIER, SessionState.EXPIRED),
    (False, False, NOW, SessionState.EXPIRED),
])
def test_derive_state(is_validated, is_used, expires_at, expected):
    assert derive_state(is_validated, is_used, expires_at, NOW) == expected


def session(**fields):
    defaults = {'is_validated': False, 'is_used': False, 'expires_at': LATER}
    defaults.update(fields)
    return SimpleNamespace(**defaults)


def test_validation_guard_checks_expiry_first():
    with pytest.raises(SessionExpired):
        guard_validation(session(is_validated=True, is_used=True, expires_at=EARLIER), NOW)


def test_validation_guard_order():
    with pytest.raises(SessionAlreadyUsed):
        guard_validation(session(is_validated=True, is_used=True), NOW)
    with pytest.raises(SessionAlreadyValidated):
        guard_validation(session(is_validated=True), NOW)
    guard_validation(session(), NOW)


def test_cast_guard_order():
    with pytest.raises(SessionExpired):
        guard_cast(session(is_validated=True, expires_at=EARLIER), NOW)
    with pytest.raises(SessionNotValidated):
        guard_cast(session(), NOW)
    with pytest.raises(SessionAlreadyUsed):
        guard_cast(session(is_validated=True, is_used=True), NOW)
    guard_cast(session(is_validated=True), NOW)
