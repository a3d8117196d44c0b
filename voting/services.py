"""
Voting session services
=======================

The three write paths of an election:

- SessionIssuer: hands a voter a fresh redeemable credential
- SessionValidator: an admin scans the credential and marks it validated
- BallotCaster: the voter spends the validated credential on one ballot

Concurrency model:
- The database is the only shared state; no in-process locks
- Every state change is a conditional UPDATE whose affected-row count is
  checked, so a stale read can never turn into a double transition
- Unique / partial-unique constraints back up the conditional updates
- Transient database failures surface as StoreConflict (retry once)

Each service takes a database alias and a clock so tests can pin time and
run against a second connection.
"""

from dataclasses import dataclass
from datetime import timedelta
import logging

from django.conf import settings # pyright: ignore[reportMissingModuleSource]
from django.db import ( # pyright: ignore[reportMissingModuleSource]
    DEFAULT_DB_ALIAS, IntegrityError, OperationalError, transaction,
)
from django.utils import timezone # pyright: ignore[reportMissingModuleSource]

from . import audit
from .codec import decode_credential, encode_credential, generate_redeem_code
from .exceptions import (
    AlreadyVoted, CandidateNotFound, SessionAlreadyActive, SessionNotFound,
    StoreConflict, Unauthorized, VoterNotFound, VotingError,
)
from .lifecycle import ACTIVE_STATES, guard_cast, guard_validation
from .models import Candidate, Vote, Voter, VotingSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedSession:
    session_id: int
    redeem_code: str
    expires_at: object
    payload: str

    def to_dict(self):
        return {
            'sessionId': self.session_id,
            'redeemCode': self.redeem_code,
            'expiresAt': self.expires_at.isoformat(),
            'payload': self.payload,
        }


class _StoreService:
    """Shared plumbing: database alias, clock, lookups."""

    def __init__(self, using=DEFAULT_DB_ALIAS, clock=None):
        self.using = using
        self.clock = clock or timezone.now

    def _sessions(self):
        return VotingSession.objects.using(self.using)

    def _find_voter(self, voter_id):
        if voter_id is None:
            return None
        try:
            return Voter.objects.using(self.using).get(pk=voter_id)
        except (Voter.DoesNotExist, ValueError, TypeError):
            return None


class SessionIssuer(_StoreService):
    """
    Issue a PENDING voting session for a voter.

    Rules:
    - Unknown voter -> VoterNotFound
    - Voter already voted -> AlreadyVoted
    - Current session still PENDING or VALIDATED -> SessionAlreadyActive
    - Expired or used current session is retired, then a new one is created
    """

    def __init__(self, using=DEFAULT_DB_ALIAS, clock=None, validity=None,
                 code_length=None, max_attempts=None):
        super().__init__(using=using, clock=clock)
        if validity is None:
            validity = timedelta(minutes=settings.VOTING_SESSION_VALIDITY_MINUTES)
        self.validity = validity
        self.code_length = code_length or settings.REDEEM_CODE_LENGTH
        self.max_attempts = max_attempts or settings.REDEEM_CODE_MAX_ATTEMPTS

    def issue(self, voter_id):
        now = self.clock()
        try:
            with transaction.atomic(using=self.using):
                voter = self._lock_voter(voter_id)
                if voter.has_voted:
                    raise AlreadyVoted()
                self._retire_terminal_sessions(voter, now)
                session = self._create_session(voter, now)
        except OperationalError as exc:
            logger.error(f"Store conflict while issuing session for voter {voter_id}: {exc}")
            raise StoreConflict() from exc

        logger.info(f"Session issued: {session.pk} for voter {voter.pk}, "
                    f"expires {session.expires_at.isoformat()}")
        return IssuedSession(
            session_id=session.pk,
            redeem_code=session.redeem_code,
            expires_at=session.expires_at,
            payload=encode_credential(session),
        )

    def _lock_voter(self, voter_id):
        try:
            return Voter.objects.using(self.using).select_for_update().get(pk=voter_id)
        except (Voter.DoesNotExist, ValueError, TypeError):
            raise VoterNotFound()

    def _retire_terminal_sessions(self, voter, now):
        current = list(
            self._sessions().select_for_update().filter(voter=voter, is_current=True)
        )
        for session in current:
            if session.state(now) in ACTIVE_STATES:
                raise SessionAlreadyActive()
        if current:
            self._sessions().filter(pk__in=[s.pk for s in current]).update(is_current=False)
            logger.debug(f"Retired {len(current)} terminal session(s) for voter {voter.pk}")

    def _create_session(self, voter, now):
        for attempt in range(1, self.max_attempts + 1):
            code = generate_redeem_code(self.code_length)
            if self._sessions().filter(redeem_code=code).exists():
                logger.warning(f"Redeem code collision on attempt {attempt}, regenerating")
                continue
            try:
                with transaction.atomic(using=self.using):
                    return self._sessions().create(
                        voter=voter,
                        redeem_code=code,
                        expires_at=now + self.validity,
                    )
            except IntegrityError:
                # Either a concurrent issuance took the voter's slot or the code was taken
                if self._sessions().filter(voter=voter, is_current=True).exists():
                    raise SessionAlreadyActive()
                logger.warning(f"Redeem code taken concurrently on attempt {attempt}, regenerating")

        logger.error(f"Could not allocate a unique redeem code for voter {voter.pk}")
        raise StoreConflict('Could not allocate a unique redeem code')


class SessionValidator(_StoreService):
    """
    Mark a PENDING session as VALIDATED after an admin scan.

    Check order: admin role, payload, lookup, expiry, used, already validated.
    The transition itself is a compare-and-set UPDATE; losing the race
    re-classifies the fresh row so the caller sees the real reason.
    """

    def validate(self, raw_payload, admin_id, ip_address=None):
        admin = self._find_voter(admin_id)
        target = ''
        try:
            if admin is None or not admin.can_validate:
                logger.warning(f"Validation refused for non-admin {admin_id} from {ip_address}")
                raise Unauthorized('Only admins can validate voting sessions')
            payload = decode_credential(raw_payload)
            target = payload.redeem_code
            with transaction.atomic(using=self.using):
                session = self._validate(payload, admin)
                audit.record_action(
                    audit.VALIDATE_SESSION,
                    actor=admin,
                    target=target,
                    details=audit.success_details(session_id=session.pk, voter_id=session.voter_id),
                    ip_address=ip_address,
                    using=self.using,
                )
        except VotingError as exc:
            self._audit_rejection(admin, target, exc, ip_address)
            raise
        except OperationalError as exc:
            conflict = StoreConflict()
            logger.error(f"Store conflict while validating {target}: {exc}")
            self._audit_rejection(admin, target, conflict, ip_address)
            raise conflict from exc

        logger.info(f"Session validated: {session.pk} ({target}) by admin {admin.pk}")
        return session

    def _find_session(self, payload):
        try:
            session = self._sessions().select_related('voter').get(redeem_code=payload.redeem_code)
        except VotingSession.DoesNotExist:
            raise SessionNotFound()
        if payload.voter_id is not None and str(session.voter_id) != payload.voter_id:
            raise SessionNotFound()
        return session

    def _validate(self, payload, admin):
        now = self.clock()
        session = self._find_session(payload)
        guard_validation(session, now)

        updated = self._sessions().filter(
            pk=session.pk,
            is_validated=False,
            is_used=False,
            expires_at__gt=now,
        ).update(is_validated=True, validated_at=now, validated_by=admin)

        if updated != 1:
            # Lost the race: report what the row looks like now
            session.refresh_from_db(using=self.using)
            guard_validation(session, now)
            raise StoreConflict()

        session.is_validated = True
        session.validated_at = now
        session.validated_by = admin
        return session

    def _audit_rejection(self, admin, target, error, ip_address):
        logger.warning(f"Validation rejected ({error.code}) for {target or '<unreadable>'}")
        with transaction.atomic(using=self.using):
            audit.record_action(
                audit.VALIDATE_SESSION,
                actor=admin,
                target=target,
                details=audit.rejection_details(error),
                ip_address=ip_address,
                using=self.using,
            )


class BallotCaster(_StoreService):
    """
    Spend a VALIDATED session on exactly one ballot.

    Check order: lookup, ownership, expiry, validated, used, candidate,
    has_voted. The session update, the voter flag and the Vote insert commit
    together or not at all; the one-vote-per-voter constraint is the last
    line of defence and maps to AlreadyVoted.
    """

    def cast(self, redeem_code, voter_id, candidate_id, ip_address=None):
        now = self.clock()
        actor = self._find_voter(voter_id)
        session = None
        try:
            session = self._find_session(redeem_code)
            if str(session.voter_id) != str(voter_id):
                logger.warning(f"Session {session.pk} presented by voter {voter_id} "
                               f"(owner {session.voter_id}) from {ip_address}")
                raise Unauthorized('Voting session belongs to another voter')
            guard_cast(session, now)
            candidate = self._find_candidate(candidate_id)
            voter = session.voter
            if voter.has_voted:
                raise AlreadyVoted()

            try:
                with transaction.atomic(using=self.using):
                    vote = self._commit(session, voter, candidate, now, ip_address)
            except IntegrityError as exc:
                raise AlreadyVoted() from exc
        except VotingError as exc:
            self._audit_rejection(actor, redeem_code, session, exc, ip_address)
            raise
        except OperationalError as exc:
            conflict = StoreConflict()
            logger.error(f"Store conflict while casting with {redeem_code}: {exc}")
            self._audit_rejection(actor, redeem_code, session, conflict, ip_address)
            raise conflict from exc

        logger.info(f"Vote recorded: {vote.pk} by voter {voter.pk} using session {session.pk}")
        return vote

    def _find_session(self, redeem_code):
        try:
            return self._sessions().select_related('voter').get(redeem_code=redeem_code)
        except VotingSession.DoesNotExist:
            raise SessionNotFound()

    def _find_candidate(self, candidate_id):
        try:
            return Candidate.objects.using(self.using).get(pk=candidate_id, is_active=True)
        except (Candidate.DoesNotExist, ValueError, TypeError):
            raise CandidateNotFound()

    def _commit(self, session, voter, candidate, now, ip_address):
        locked = self._sessions().select_for_update().get(pk=session.pk)
        guard_cast(locked, now)

        used = self._sessions().filter(
            pk=locked.pk,
            is_validated=True,
            is_used=False,
            expires_at__gt=now,
        ).update(is_used=True, is_current=False)
        if used != 1:
            raise StoreConflict()

        marked = Voter.objects.using(self.using).filter(
            pk=voter.pk, has_voted=False,
        ).update(has_voted=True)
        if marked != 1:
            raise AlreadyVoted()

        vote = Vote.objects.using(self.using).create(voter=voter, candidate=candidate)
        audit.record_action(
            audit.CAST_VOTE,
            actor=voter,
            target=locked.redeem_code,
            details=audit.success_details(session_id=locked.pk, vote_id=vote.pk),
            ip_address=ip_address,
            using=self.using,
        )
        return vote

    def _audit_rejection(self, actor, redeem_code, session, error, ip_address):
        logger.warning(f"Vote rejected ({error.code}) for session code {redeem_code}")
        with transaction.atomic(using=self.using):
            audit.record_action(
                audit.CAST_VOTE,
                actor=actor,
                target=redeem_code,
                details=audit.rejection_details(
                    error, session_id=session.pk if session is not None else None,
                ),
                ip_address=ip_address,
                using=self.using,
            )
