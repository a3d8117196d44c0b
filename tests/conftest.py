from datetime import timedelta

import pytest
from django.utils import timezone

from voting.models import Candidate, Role, Voter, VotingSession
from voting.services import BallotCaster, SessionIssuer, SessionValidator
from voting.tally import TallyAggregator


class FakeClock:
    """Callable clock the services accept; tests move it forward by hand."""

    def __init__(self, now=None):
        self.now = now or timezone.now()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def plain_http(settings):
    settings.SECURE_SSL_REDIRECT = False
    settings.VOTING_SESSION_VALIDITY_MINUTES = 10


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_voter(db):
    counter = {'n': 0}

    def factory(name=None, program='S1 Sains Data', role=Role.VOTER, **extra):
        counter['n'] += 1
        n = counter['n']
        return Voter.objects.create(
            registration_number=extra.pop('registration_number', f'1200{n:05d}'),
            name=name or f'Voter {n}',
            program=program,
            role=role,
            **extra,
        )
    return factory


@pytest.fixture
def voter(make_voter):
    return make_voter(name='Budi Santoso')


@pytest.fixture
def admin(make_voter):
    return make_voter(name='ADMIN', program='S1 Teknik Fisika', role=Role.ADMIN)


@pytest.fixture
def monitor(make_voter):
    return make_voter(name='MONITORING', program='S1 Teknik Fisika', role=Role.MONITORING)


@pytest.fixture
def make_candidate(db):
    counter = {'n': 0}

    def factory(name=None, is_active=True, **extra):
        counter['n'] += 1
        n = counter['n']
        return Candidate.objects.create(
            registration_number=extra.pop('registration_number', f'9900{n:05d}'),
            name=name or f'Candidate {n}',
            is_active=is_active,
            **extra,
        )
    return factory


@pytest.fixture
def candidates(make_candidate):
    return [make_candidate(name='Ahmad Rizky'), make_candidate(name='Kevin Andriano')]


@pytest.fixture
def issuer(clock):
    return SessionIssuer(clock=clock)


@pytest.fixture
def validator(clock):
    return SessionValidator(clock=clock)


@pytest.fixture
def caster(clock):
    return BallotCaster(clock=clock)


@pytest.fixture
def aggregator(clock):
    return TallyAggregator(clock=clock)


@pytest.fixture
def validated_session(issuer, validator, voter, admin):
    issued = issuer.issue(voter.pk)
    validator.validate(issued.redeem_code, admin.pk)
    return VotingSession.objects.get(pk=issued.session_id)


@pytest.fixture
def login_as(client):
    """Mimic the login screen: store the voter id in the Django session."""
    def login(voter):
        session = client.session
        session['voter_id'] = voter.pk
        session.save()
        return client
    return login
