"""
Credential codec for voting sessions
====================================

Encodes the scannable QR payload handed to a voter and decodes whatever the
admin scanner (or manual entry box) sends back.

Accepted inputs:
- JSON object with non-empty ``redeemCode`` and ``userId`` (``voterId`` is
  accepted as an alias)
- Bare 8-character uppercase alphanumeric code, surrounding whitespace ignored

Pure functions: nothing here touches the database.
"""

from dataclasses import dataclass
import json
import re
import secrets
import string

from .exceptions import InvalidPayload

REDEEM_CODE_ALPHABET = string.ascii_uppercase + string.digits
REDEEM_CODE_PATTERN = re.compile(r'^[A-Z0-9]{8}$')


@dataclass(frozen=True)
class CredentialPayload:
    """Decoded credential. Only ``redeem_code`` and ``voter_id`` are authoritative."""

    redeem_code: str
    voter_id: str = None
    session_id: str = None
    issued_at: str = None


def generate_redeem_code(length=8):
    """Random code from A-Z0-9 using the CSPRNG."""
    return ''.join(secrets.choice(REDEEM_CODE_ALPHABET) for _ in range(length))


def encode_credential(session):
    """
    Build the QR payload for a freshly issued session.

    Args:
        session: VotingSession instance

    Returns:
        Compact JSON string
    """
    issued = session.created_at.isoformat() if session.created_at else None
    return json.dumps({
        'redeemCode': session.redeem_code,
        'userId': str(session.voter_id),
        'sessionId': str(session.pk),
        'issuedAt': issued,
    }, separators=(',', ':'))


def _text_field(data, *keys):
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            return None
        value = str(value).strip()
        if value:
            return value
    return None


def decode_credential(text):
    """
    Parse a scanned or typed credential.

    Raises:
        InvalidPayload: input is neither a credential object nor a bare code
    """
    if not isinstance(text, str):
        raise InvalidPayload('Credential must be text')

    raw = text.strip()
    if not raw:
        raise InvalidPayload('Credential is empty')

    if raw.startswith('{'):
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError):
            raise InvalidPayload('Credential is not valid JSON')
        if not isinstance(data, dict):
            raise InvalidPayload('Credential JSON must be an object')

        redeem_code = _text_field(data, 'redeemCode')
        voter_id = _text_field(data, 'userId', 'voterId')
        if not redeem_code or not voter_id:
            raise InvalidPayload('Credential is missing redeemCode or userId')

        return CredentialPayload(
            redeem_code=redeem_code,
            voter_id=voter_id,
            session_id=_text_field(data, 'sessionId'),
            issued_at=_text_field(data, 'issuedAt'),
        )

    if REDEEM_CODE_PATTERN.match(raw):
        return CredentialPayload(redeem_code=raw)

    raise InvalidPayload('Unrecognised credential format')
