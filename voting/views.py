"""
View functions for the Election Voting System
=============================================

JSON API handlers for:
- Issuing voting sessions (QR credential)
- Validating scanned credentials (admins)
- Casting ballots
- Live tally and monitoring feeds
- Voter roster listing

Security implemented:
- CSRF protection (built-in Django)
- Role checks on every endpoint (ActorMiddleware provides request.actor)
- Input validation through Django forms
- Every validation / cast attempt lands in the audit log
"""

from functools import wraps
import json
import logging

from django.http import JsonResponse # pyright: ignore[reportMissingModuleSource]
from django.views.decorators.http import require_http_methods # pyright: ignore[reportMissingModuleSource]

from . import monitoring
from .exceptions import Unauthorized, VotingError
from .forms import (
    CastVoteForm, IssueSessionForm, RecentFeedForm, ValidateSessionForm,
    VoterListForm,
)
from .models import MONITOR_ROLES, VALIDATOR_ROLES
from .services import BallotCaster, SessionIssuer, SessionValidator
from .tally import TallyAggregator

logger = logging.getLogger(__name__)


def error_response(exc):
    """Render a VotingError as JSON with its HTTP status."""
    return JsonResponse(exc.to_dict(), status=exc.status_code)


def form_error_response(form):
    return JsonResponse({
        'error': 'invalid_request',
        'message': 'Request data is invalid',
        'fields': form.errors.get_json_data(),
    }, status=400)


def request_data(request):
    """
    Body of a POST request as a dict.

    Accepts JSON bodies (scanner front-end) and form-encoded bodies.
    Returns None for malformed JSON.
    """
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body or b'{}')
        except (ValueError, RecursionError):
            return None
        return data if isinstance(data, dict) else None
    return request.POST


def actor_required(roles=None):
    """
    Require a signed-in actor, optionally with one of ``roles``.

    VotingError raised inside the view is rendered as JSON.
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            actor = getattr(request, 'actor', None)
            try:
                if not actor:
                    raise Unauthorized('Sign in required')
                if roles is not None and actor.role not in roles:
                    logger.warning(f"Role {actor.role} refused on {request.path} "
                                   f"for voter {actor.pk} from {request.client_ip}")
                    raise Unauthorized()
                return view_func(request, *args, **kwargs)
            except VotingError as exc:
                return error_response(exc)
        return wrapper
    return decorator


@require_http_methods(["POST"])
@actor_required()
def issue_session(request):
    """
    Issue a voting session.

    POST body:
        voter_id: optional, admins only (defaults to the signed-in voter)

    Returns:
        201 with sessionId, redeemCode, expiresAt and the QR payload
    """
    data = request_data(request)
    if data is None:
        return JsonResponse({'error': 'invalid_request', 'message': 'Malformed JSON'}, status=400)
    form = IssueSessionForm(data)
    if not form.is_valid():
        return form_error_response(form)

    actor = request.actor
    voter_id = form.cleaned_data.get('voter_id') or actor.pk
    if voter_id != actor.pk and actor.role not in VALIDATOR_ROLES:
        logger.warning(f"Voter {actor.pk} tried to issue a session for {voter_id}")
        raise Unauthorized('Only admins can issue sessions for other voters')

    issued = SessionIssuer().issue(voter_id)
    return JsonResponse(issued.to_dict(), status=201)


@require_http_methods(["POST"])
@actor_required(roles=VALIDATOR_ROLES)
def validate_session(request):
    """
    Validate a scanned credential.

    POST body:
        payload: raw QR text (JSON credential) or an 8-char redeem code
    """
    data = request_data(request)
    if data is None:
        return JsonResponse({'error': 'invalid_request', 'message': 'Malformed JSON'}, status=400)
    form = ValidateSessionForm(data)
    if not form.is_valid():
        return form_error_response(form)

    session = SessionValidator().validate(
        form.cleaned_data['payload'],
        admin_id=request.actor.pk,
        ip_address=request.client_ip,
    )
    voter = session.voter
    return JsonResponse({
        'sessionId': session.pk,
        'redeemCode': session.redeem_code,
        'validatedAt': session.validated_at.isoformat(),
        'expiresAt': session.expires_at.isoformat(),
        'voter': {
            'id': voter.pk,
            'name': voter.name,
            'registrationNumber': voter.registration_number,
            'program': voter.program,
        },
    })


@require_http_methods(["POST"])
@actor_required()
def cast_vote(request):
    """
    Cast the signed-in voter's ballot.

    POST body:
        redeem_code: code of the validated session
        candidate_id: chosen candidate
    """
    data = request_data(request)
    if data is None:
        return JsonResponse({'error': 'invalid_request', 'message': 'Malformed JSON'}, status=400)
    form = CastVoteForm(data)
    if not form.is_valid():
        return form_error_response(form)

    vote = BallotCaster().cast(
        form.cleaned_data['redeem_code'],
        voter_id=request.actor.pk,
        candidate_id=form.cleaned_data['candidate_id'],
        ip_address=request.client_ip,
    )
    return JsonResponse({
        'voteId': vote.pk,
        'candidateId': vote.candidate_id,
        'createdAt': vote.created_at.isoformat(),
    }, status=201)


@require_http_methods(["GET"])
@actor_required()
def candidate_list(request):
    return JsonResponse({'candidates': monitoring.active_candidates()})


@require_http_methods(["GET"])
@actor_required(roles=MONITOR_ROLES)
def tally(request):
    """Live election statistics."""
    return JsonResponse(TallyAggregator().get_tally().to_dict())


@require_http_methods(["GET"])
@actor_required(roles=MONITOR_ROLES)
def recent_validations(request):
    form = RecentFeedForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    return JsonResponse({
        'sessions': monitoring.recent_validations(form.cleaned_data.get('limit')),
    })


@require_http_methods(["GET"])
@actor_required(roles=MONITOR_ROLES)
def recent_logs(request):
    form = RecentFeedForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    return JsonResponse({'logs': monitoring.recent_logs(form.cleaned_data.get('limit'))})


@require_http_methods(["GET"])
@actor_required(roles=VALIDATOR_ROLES)
def voter_list(request):
    """
    Paginated voter roster.

    Query parameters: search, program, role, status (voted / not_voted),
    page, limit.
    """
    form = VoterListForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    return JsonResponse(monitoring.list_voters(**form.cleaned_data))


@require_http_methods(["GET"])
def program_list(request):
    """Distinct programs of study (public, used by the login screen)."""
    return JsonResponse({'programs': monitoring.program_list()})
