"""
Domain errors for the Election Voting System
============================================

Every rejected operation raises one of these. Services raise them, views
translate them into JSON responses using ``code`` and ``status_code``.
"""


class VotingError(Exception):
    """Base class for all voting-session errors."""

    code = 'voting_error'
    status_code = 400
    default_message = 'Voting operation failed'
    retryable = False

    def __init__(self, message=None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.code, 'message': self.message}


class VoterNotFound(VotingError):
    code = 'voter_not_found'
    status_code = 404
    default_message = 'Voter not found'


class CandidateNotFound(VotingError):
    code = 'candidate_not_found'
    status_code = 404
    default_message = 'Candidate not found or not active'


class SessionNotFound(VotingError):
    code = 'session_not_found'
    status_code = 404
    default_message = 'Voting session not found'


class InvalidPayload(VotingError):
    code = 'invalid_payload'
    status_code = 400
    default_message = 'Credential payload could not be read'


class SessionExpired(VotingError):
    code = 'session_expired'
    status_code = 410
    default_message = 'Voting session has expired'


class SessionAlreadyValidated(VotingError):
    code = 'session_already_validated'
    status_code = 409
    default_message = 'Voting session was already validated'


class SessionAlreadyUsed(VotingError):
    code = 'session_already_used'
    status_code = 409
    default_message = 'Voting session was already used'


class SessionNotValidated(VotingError):
    code = 'session_not_validated'
    status_code = 409
    default_message = 'Voting session has not been validated yet'


class SessionAlreadyActive(VotingError):
    code = 'session_already_active'
    status_code = 409
    default_message = 'Voter already holds an active voting session'


class AlreadyVoted(VotingError):
    code = 'already_voted'
    status_code = 409
    default_message = 'Voter has already voted'


class Unauthorized(VotingError):
    code = 'unauthorized'
    status_code = 403
    default_message = 'Not allowed to perform this action'


class StoreConflict(VotingError):
    """Transient store failure (lock timeout, serialization error). Safe to retry once."""

    code = 'store_conflict'
    status_code = 503
    default_message = 'Concurrent update detected, please retry'
    retryable = True
