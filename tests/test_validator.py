import json
from unittest import mock

import pytest

from voting.audit import VALIDATE_SESSION
from voting.exceptions import (
    InvalidPayload, SessionAlreadyUsed, SessionAlreadyValidated, SessionExpired,
    SessionNotFound, StoreConflict, Unauthorized,
)
from voting.lifecycle import SessionState
from voting.models import AdminLog, Vote, VotingSession
from voting.services import SessionValidator

pytestmark = pytest.mark.django_db


@pytest.fixture
def issued(issuer, voter):
    return issuer.issue(voter.pk)


def test_validate_with_qr_payload(validator, issued, admin, clock):
    session = validator.validate(issued.payload, admin.pk, ip_address='10.0.0.5')

    stored = VotingSession.objects.get(pk=issued.session_id)
    assert stored.state(clock()) == SessionState.VALIDATED
    assert stored.validated_by == admin
    assert stored.validated_at == clock()
    assert session.pk == stored.pk

    log = AdminLog.objects.get()
    assert log.action == VALIDATE_SESSION
    assert log.actor == admin
    assert log.target == issued.redeem_code
    assert log.details['outcome'] == 'success'
    assert log.ip_address == '10.0.0.5'


def test_validate_with_typed_code(validator, issued, admin):
    validator.validate(f'  {issued.redeem_code} ', admin.pk)
    assert VotingSession.objects.get(pk=issued.session_id).is_validated


def test_super_admin_may_validate(validator, issued, make_voter):
    super_admin = make_voter(role='SUPER_ADMIN')
    validator.validate(issued.redeem_code, super_admin.pk)


@pytest.mark.parametrize('role', ['VOTER', 'MONITORING'])
def test_other_roles_are_refused(validator, issued, make_voter, role):
    actor = make_voter(role=role)
    with pytest.raises(Unauthorized):
        validator.validate(issued.redeem_code, actor.pk)
    assert not VotingSession.objects.get(pk=issued.session_id).is_validated
    assert AdminLog.objects.get().details['error'] == 'unauthorized'


def test_garbage_payload(validator, admin):
    with pytest.raises(InvalidPayload):
        validator.validate('hello world', admin.pk)
    log = AdminLog.objects.get()
    assert log.details == {
        'outcome': 'rejected',
        'error': 'invalid_payload',
        'message': 'Unrecognised credential format',
    }


def test_unknown_code(validator, admin):
    with pytest.raises(SessionNotFound):
        validator.validate('ZZZZZZZZ', admin.pk)


def test_payload_for_a_different_voter_is_not_found(validator, issued, admin, make_voter):
    other = make_voter()
    forged = json.dumps({'redeemCode': issued.redeem_code, 'userId': str(other.pk)})
    with pytest.raises(SessionNotFound):
        validator.validate(forged, admin.pk)
    assert not VotingSession.objects.get(pk=issued.session_id).is_validated


def test_second_validation_is_rejected(validator, issued, admin, make_voter):
    validator.validate(issued.redeem_code, admin.pk)
    first = VotingSession.objects.get(pk=issued.session_id)

    with pytest.raises(SessionAlreadyValidated):
        validator.validate(issued.redeem_code, make_voter(role='ADMIN').pk)

    again = VotingSession.objects.get(pk=issued.session_id)
    assert again.validated_by_id == first.validated_by_id
    assert again.validated_at == first.validated_at


def test_expired_session(validator, issued, admin, clock):
    clock.advance(minutes=10)
    with pytest.raises(SessionExpired):
        validator.validate(issued.redeem_code, admin.pk)


def test_expiry_wins_over_validated_flag(validator, issued, admin, clock):
    validator.validate(issued.redeem_code, admin.pk)
    clock.advance(minutes=30)
    with pytest.raises(SessionExpired):
        validator.validate(issued.redeem_code, admin.pk)


def test_used_session(validated_session, validator, caster, candidates, voter, admin):
    caster.cast(validated_session.redeem_code, voter.pk, candidates[0].pk)
    with pytest.raises(SessionAlreadyUsed):
        validator.validate(validated_session.redeem_code, admin.pk)


def test_lost_race_is_reclassified(validator, issued, admin, make_voter):
    """A stale read sees PENDING, but another admin validated in between."""
    stale = VotingSession.objects.get(pk=issued.session_id)
    other_admin = make_voter(role='ADMIN')
    validator.validate(issued.redeem_code, other_admin.pk)

    with mock.patch.object(SessionValidator, '_find_session', return_value=stale):
        with pytest.raises(SessionAlreadyValidated):
            validator.validate(issued.redeem_code, admin.pk)

    assert VotingSession.objects.get(pk=issued.session_id).validated_by == other_admin


def test_lost_race_without_visible_change_is_store_conflict(validator, issued, admin):
    with mock.patch('django.db.models.query.QuerySet.update', return_value=0):
        with pytest.raises(StoreConflict):
            validator.validate(issued.redeem_code, admin.pk)
    assert AdminLog.objects.get().details['error'] == 'store_conflict'


def test_validation_does_not_touch_votes(validator, issued, admin, voter):
    validator.validate(issued.redeem_code, admin.pk)
    voter.refresh_from_db()
    assert not voter.has_voted
    assert not Vote.objects.filter(voter=voter).exists()
