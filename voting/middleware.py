"""
Custom middleware for the Election Voting System
================================================

- ActorMiddleware: resolves the signed-in voter/admin from the session
- SecurityHeadersMiddleware: adds custom security headers

The login screen is an external collaborator: it writes the voter primary
key into the Django session under VOTING_ACTOR_SESSION_KEY. This middleware
only reads it.

OWASP recommendations implemented:
- X-Frame-Options: Prevent clickjacking
- X-Content-Type-Options: Prevent MIME type sniffing
- Referrer-Policy / Permissions-Policy
"""

from django.utils.deprecation import MiddlewareMixin # pyright: ignore[reportMissingModuleSource]
from django.utils.functional import SimpleLazyObject # pyright: ignore[reportMissingModuleSource]
from django.conf import settings # pyright: ignore[reportMissingModuleSource]
import logging

from .models import Voter

logger = logging.getLogger(__name__)


def get_actor(request):
    """Return the Voter behind the request session, or None."""
    session = getattr(request, 'session', None)
    if session is None:
        return None
    actor_id = session.get(settings.VOTING_ACTOR_SESSION_KEY)
    if actor_id is None:
        return None
    try:
        return Voter.objects.get(pk=actor_id)
    except (Voter.DoesNotExist, ValueError, TypeError):
        logger.warning(f"Session references unknown voter {actor_id!r}")
        return None


def get_client_ip(request):
    """
    Extract client IP address, considering proxies.

    Checks headers in order:
    1. X-Forwarded-For (most common proxy header)
    2. X-Real-IP
    3. REMOTE_ADDR (direct connection)

    Args:
        request: Django request object

    Returns:
        Client IP address string, or None when unknown
    """

    # Check for proxy headers (set by reverse proxy/load balancer)
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        # Can contain multiple IPs, first is client
        return x_forwarded_for.split(',')[0].strip()

    # Check alternative proxy header
    x_real_ip = request.META.get('HTTP_X_REAL_IP')
    if x_real_ip:
        return x_real_ip.strip()

    # Direct connection
    return request.META.get('REMOTE_ADDR') or None


class ActorMiddleware(MiddlewareMixin):
    """
    Attach ``request.actor`` (lazy Voter or None) and ``request.client_ip``.

    Must run after SessionMiddleware.
    """

    def process_request(self, request):
        request.actor = SimpleLazyObject(lambda: get_actor(request))
        request.client_ip = get_client_ip(request)
        return None


class SecurityHeadersMiddleware(MiddlewareMixin):
    """
    Add security headers to all HTTP responses.

    Headers added:
    - X-Frame-Options: DENY (prevent clickjacking)
    - X-Content-Type-Options: nosniff (prevent MIME sniffing)
    - Strict-Transport-Security: HTTPS enforcement (production only)
    - Cache-Control: no-store on API responses (credentials and tallies)
    """

    def process_response(self, request, response):
        """Add security headers to response."""

        # Prevent clickjacking attacks
        response['X-Frame-Options'] = 'DENY'

        # Prevent MIME type sniffing
        response['X-Content-Type-Options'] = 'nosniff'

        if not settings.DEBUG and not response.has_header('Strict-Transport-Security'):
            response['Strict-Transport-Security'] = (
                'max-age=31536000; includeSubDomains; preload'
            )

        # Keep Referer for same-origin requests (required for CSRF)
        response['Referrer-Policy'] = 'strict-origin-when-cross-origin'

        # The scanner page needs the camera
        response['Permissions-Policy'] = (
            'geolocation=(), microphone=(), camera=(self)'
        )

        # Credentials and live tallies must never be cached
        if request.path.startswith('/api/'):
            response['Cache-Control'] = 'no-store'

        return response
