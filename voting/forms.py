"""
Django Forms for the Election Voting System
===========================================

Validates API request bodies and query strings before they reach the
services:
- Issuing a voting session
- Validating a scanned credential
- Casting a ballot
- Filtering the voter roster and monitoring feeds

Forms only check shape (types, lengths, allowed values). Business rules
live in the services and raise VotingError subclasses.
"""

from django import forms # pyright: ignore[reportMissingModuleSource]
from django.core.exceptions import ValidationError # pyright: ignore[reportMissingModuleSource]

from .models import Role


class IssueSessionForm(forms.Form):
    """
    Request a credential.

    Voters omit ``voter_id`` (they get a credential for themselves); admins
    may issue on behalf of a voter.
    """

    voter_id = forms.IntegerField(required=False, min_value=1)


class ValidateSessionForm(forms.Form):
    """Raw scanner output or a typed redeem code."""

    payload = forms.CharField(max_length=2000, strip=False)

    def clean_payload(self):
        payload = self.cleaned_data.get('payload', '')
        if not payload.strip():
            raise ValidationError('Scan a QR code or enter a redeem code.')
        return payload


class CastVoteForm(forms.Form):
    """Ballot submission: the validated session code plus the chosen candidate."""

    redeem_code = forms.CharField(max_length=16)
    candidate_id = forms.IntegerField(min_value=1)

    def clean_redeem_code(self):
        """Codes are uppercase; accept what the voter typed in lowercase."""
        return self.cleaned_data['redeem_code'].strip().upper()


class RecentFeedForm(forms.Form):
    limit = forms.IntegerField(required=False, min_value=1, max_value=100)


class VoterListForm(forms.Form):
    """Query string for the roster listing."""

    STATUS_CHOICES = [
        ('', 'Any'),
        ('all', 'All'),
        ('voted', 'Voted'),
        ('not_voted', 'Not voted'),
    ]

    search = forms.CharField(required=False, max_length=200)
    program = forms.CharField(required=False, max_length=200)
    role = forms.ChoiceField(
        required=False,
        choices=[('', 'Any'), ('all', 'All')] + list(Role.choices),
    )
    status = forms.ChoiceField(required=False, choices=STATUS_CHOICES)
    page = forms.IntegerField(required=False, min_value=1)
    limit = forms.IntegerField(required=False, min_value=1, max_value=100)

    def clean(self):
        cleaned_data = super().clean()
        cleaned_data['page'] = cleaned_data.get('page') or 1
        cleaned_data['limit'] = cleaned_data.get('limit') or 10
        return cleaned_data
