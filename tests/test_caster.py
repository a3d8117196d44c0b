from datetime import timedelta
from unittest import mock

import pytest
from django.db import OperationalError

from voting.audit import CAST_VOTE
from voting.exceptions import (
    AlreadyVoted, CandidateNotFound, SessionAlreadyUsed, SessionExpired,
    SessionNotFound, SessionNotValidated, StoreConflict, Unauthorized,
)
from voting.lifecycle import SessionState
from voting.models import AdminLog, Vote, Voter, VotingSession
from voting.services import BallotCaster

pytestmark = pytest.mark.django_db


def cast_logs():
    return AdminLog.objects.filter(action=CAST_VOTE).order_by('pk')


def assert_nothing_written(voter, session):
    voter.refresh_from_db()
    session.refresh_from_db()
    assert not voter.has_voted
    assert not session.is_used
    assert not Vote.objects.filter(voter=voter).exists()


def test_successful_cast(caster, validated_session, voter, candidates, clock):
    vote = caster.cast(validated_session.redeem_code, voter.pk, candidates[1].pk, ip_address='10.1.1.1')

    assert vote.candidate == candidates[1]
    voter.refresh_from_db()
    validated_session.refresh_from_db()
    assert voter.has_voted
    assert validated_session.state(clock()) == SessionState.USED
    assert not validated_session.is_current

    log = cast_logs().get()
    assert log.actor == voter
    assert log.details['outcome'] == 'success'
    assert log.details['vote_id'] == vote.pk


def test_unknown_code(caster, voter, candidates):
    with pytest.raises(SessionNotFound):
        caster.cast('NOPE0000', voter.pk, candidates[0].pk)
    assert cast_logs().get().details['error'] == 'session_not_found'


def test_session_of_another_voter(caster, validated_session, voter, candidates, make_voter):
    intruder = make_voter()
    with pytest.raises(Unauthorized):
        caster.cast(validated_session.redeem_code, intruder.pk, candidates[0].pk)
    assert_nothing_written(voter, validated_session)
    log = cast_logs().get()
    assert log.actor == intruder
    assert log.details['session_id'] == validated_session.pk


def test_pending_session_cannot_vote(caster, issuer, voter, candidates):
    issued = issuer.issue(voter.pk)
    with pytest.raises(SessionNotValidated):
        caster.cast(issued.redeem_code, voter.pk, candidates[0].pk)


def test_expired_session(caster, validated_session, voter, candidates, clock):
    clock.advance(minutes=10)
    with pytest.raises(SessionExpired):
        caster.cast(validated_session.redeem_code, voter.pk, candidates[0].pk)
    assert_nothing_written(voter, validated_session)


def test_inactive_candidate(caster, validated_session, voter, make_candidate):
    retired = make_candidate(is_active=False)
    with pytest.raises(CandidateNotFound):
        caster.cast(validated_session.redeem_code, voter.pk, retired.pk)
    assert_nothing_written(voter, validated_session)


def test_missing_candidate(caster, validated_session, voter):
    with pytest.raises(CandidateNotFound):
        caster.cast(validated_session.redeem_code, voter.pk, 424242)


def test_second_cast_with_same_session(caster, validated_session, voter, candidates):
    caster.cast(validated_session.redeem_code, voter.pk, candidates[0].pk)
    with pytest.raises(SessionAlreadyUsed):
        caster.cast(validated_session.redeem_code, voter.pk, candidates[1].pk)
    assert Vote.objects.filter(voter=voter).count() == 1
    assert Vote.objects.get(voter=voter).candidate == candidates[0]


def make_second_validated_session(voter, admin, clock):
    """A leftover validated session outside the current slot (e.g. restored from backup)."""
    return VotingSession.objects.create(
        voter=voter,
        redeem_code='SPARE001',
        is_validated=True,
        validated_at=clock(),
        validated_by=admin,
        is_current=False,
        expires_at=clock() + timedelta(minutes=10),
    )


def test_second_session_after_voting_is_already_voted(caster, validated_session, voter, admin,
                                                      candidates, clock):
    spare = make_second_validated_session(voter, admin, clock)
    caster.cast(validated_session.redeem_code, voter.pk, candidates[0].pk)

    with pytest.raises(AlreadyVoted):
        caster.cast(spare.redeem_code, voter.pk, candidates[1].pk)

    spare.refresh_from_db()
    assert not spare.is_used
    assert Vote.objects.filter(voter=voter).count() == 1


def test_vote_constraint_is_the_last_guard(caster, validated_session, voter, admin,
                                          candidates, clock):
    """has_voted was reset behind our back; the one-vote-per-voter constraint still holds."""
    spare = make_second_validated_session(voter, admin, clock)
    caster.cast(validated_session.redeem_code, voter.pk, candidates[0].pk)
    Voter.objects.filter(pk=voter.pk).update(has_voted=False)

    with pytest.raises(AlreadyVoted):
        caster.cast(spare.redeem_code, voter.pk, candidates[1].pk)

    # the whole transaction rolled back
    spare.refresh_from_db()
    assert not spare.is_used
    assert spare.is_current is False
    voter.refresh_from_db()
    assert not voter.has_voted
    assert Vote.objects.filter(voter=voter).count() == 1
    assert cast_logs().last().details['error'] == 'already_voted'


def test_stale_session_read_cannot_double_spend(caster, validated_session, voter, candidates):
    stale = VotingSession.objects.select_related('voter').get(pk=validated_session.pk)
    caster.cast(validated_session.redeem_code, voter.pk, candidates[0].pk)

    with mock.patch.object(BallotCaster, '_find_session', return_value=stale):
        with pytest.raises(SessionAlreadyUsed):
            caster.cast(validated_session.redeem_code, voter.pk, candidates[1].pk)

    assert Vote.objects.filter(voter=voter).count() == 1


def test_operational_error_is_store_conflict(caster, validated_session, voter, candidates):
    with mock.patch.object(BallotCaster, '_commit', side_effect=OperationalError('deadlock detected')):
        with pytest.raises(StoreConflict):
            caster.cast(validated_session.redeem_code, voter.pk, candidates[0].pk)
    assert_nothing_written(voter, validated_session)
    assert cast_logs().get().details['error'] == 'store_conflict'


def test_every_attempt_is_audited(caster, validated_session, voter, candidates, make_voter):
    with pytest.raises(Unauthorized):
        caster.cast(validated_session.redeem_code, make_voter().pk, candidates[0].pk)
    with pytest.raises(CandidateNotFound):
        caster.cast(validated_session.redeem_code, voter.pk, 999)
    caster.cast(validated_session.redeem_code, voter.pk, candidates[0].pk)

    outcomes = [log.details['outcome'] for log in cast_logs()]
    assert outcomes == ['rejected', 'rejected', 'success']


def test_cast_moves_the_tally_by_one(caster, aggregator, validated_session, voter, candidates):
    before = aggregator.get_tally()
    caster.cast(validated_session.redeem_code, voter.pk, candidates[0].pk)
    after = aggregator.get_tally()

    assert after.candidates[0].vote_count == before.candidates[0].vote_count + 1
    assert after.total_votes == before.total_votes + 1
    assert after.candidates[1].vote_count == before.candidates[1].vote_count
