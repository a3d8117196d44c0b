"""
Database models for the Election Voting System
==============================================

Defines the data structure for:
- Voter: A pre-registered member of the electorate (or an admin account)
- Candidate: A candidate on the single ballot
- VotingSession: A short-lived credential a voter redeems to cast a ballot
- Vote: The ballot itself, one per voter
- AdminLog: Append-only audit trail of validations and casts

Integrity guarantees enforced by the store:
- At most one current (credential-holding) session per voter
- A session can only be used after it was validated
- At most one Vote per voter
- Redeem codes are unique
"""

from django.db import models # pyright: ignore[reportMissingModuleSource]
from django.db.models import Q # pyright: ignore[reportMissingModuleSource]
from django.core.validators import MaxLengthValidator # pyright: ignore[reportMissingModuleSource]

from .lifecycle import session_state


class Role(models.TextChoices):
    VOTER = 'VOTER', 'Voter'
    ADMIN = 'ADMIN', 'Admin'
    SUPER_ADMIN = 'SUPER_ADMIN', 'Super admin'
    MONITORING = 'MONITORING', 'Monitoring'


VALIDATOR_ROLES = (Role.ADMIN, Role.SUPER_ADMIN)
MONITOR_ROLES = (Role.ADMIN, Role.SUPER_ADMIN, Role.MONITORING)


class Voter(models.Model):
    """
    A member of the closed electorate, identified by registration number.

    Attributes:
        registration_number: Student number (natural key, never changes)
        name: Display name
        program: Program of study, may be blank
        role: VOTER for the electorate, other roles for staff accounts
        has_voted: Mirrors "a Vote row exists"; only the ballot caster sets it
        created_at: Timestamp of registration
    """

    registration_number = models.CharField(
        max_length=32,
        unique=True,
        help_text="Student registration number (NIM)"
    )
    name = models.CharField(
        max_length=200,
        validators=[MaxLengthValidator(200)],
    )
    program = models.CharField(
        max_length=200,
        blank=True,
        default='',
        help_text="Program of study"
    )
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.VOTER,
    )
    has_voted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['program'], name='voter_program_idx'),
            models.Index(fields=['role'], name='voter_role_idx'),
            models.Index(fields=['has_voted'], name='voter_has_voted_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.registration_number})"

    @property
    def can_validate(self):
        return self.role in VALIDATOR_ROLES

    @property
    def can_monitor(self):
        return self.role in MONITOR_ROLES


class Candidate(models.Model):
    """
    A candidate on the ballot.

    Inactive candidates cannot be selected and are left out of the tally.
    """

    name = models.CharField(max_length=200)
    registration_number = models.CharField(max_length=32, unique=True)
    program = models.CharField(max_length=200, blank=True, default='')
    photo = models.CharField(
        max_length=500,
        blank=True,
        default='',
        help_text="Photo URL or path (upload handled elsewhere)"
    )
    vision = models.TextField(blank=True, default='')
    mission = models.TextField(blank=True, default='')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'pk']

    def __str__(self):
        return self.name


class VotingSession(models.Model):
    """
    A redeemable credential for one voter.

    Attributes:
        voter: Owner of the credential
        redeem_code: 8-char A-Z0-9 code printed under the QR image
        is_validated / validated_at / validated_by: set once by an admin scan
        is_used: set once when the ballot is cast
        is_current: holds the voter's single credential slot; cleared when the
            session is consumed or retired after expiry
        expires_at: end of the validity window
    """

    voter = models.ForeignKey(
        Voter,
        on_delete=models.PROTECT,
        related_name='voting_sessions',
    )
    redeem_code = models.CharField(max_length=16, unique=True)
    is_validated = models.BooleanField(default=False)
    validated_at = models.DateTimeField(null=True, blank=True)
    validated_by = models.ForeignKey(
        Voter,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='validated_sessions',
    )
    is_used = models.BooleanField(default=False)
    is_current = models.BooleanField(default=True)
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['voter'],
                condition=Q(is_current=True),
                name='one_current_session_per_voter',
            ),
            models.CheckConstraint(
                condition=Q(is_used=False) | Q(is_validated=True),
                name='session_used_only_after_validation',
            ),
        ]
        indexes = [
            models.Index(fields=['voter', 'is_current'], name='session_voter_current_idx'),
            models.Index(fields=['is_validated', 'validated_at'], name='session_validated_idx'),
        ]

    def __str__(self):
        return f"Session {self.redeem_code} for {self.voter_id}"

    def state(self, now):
        return session_state(self, now)


class Vote(models.Model):
    """One ballot. The one-to-one voter link is the final double-vote guard."""

    voter = models.OneToOneField(
        Voter,
        on_delete=models.PROTECT,
        related_name='vote',
    )
    candidate = models.ForeignKey(
        Candidate,
        on_delete=models.PROTECT,
        related_name='votes',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Vote by {self.voter_id} at {self.created_at}"


class AdminLog(models.Model):
    """
    Audit trail entry. Rows are written once and never updated.

    Attributes:
        actor: Voter or admin account behind the attempt (nullable)
        action: Tag such as VALIDATE_SESSION or CAST_VOTE
        target: Redeem code or other identifier the action was aimed at
        details: JSON payload (outcome, error code, ids)
        ip_address: Origin address of the request
    """

    actor = models.ForeignKey(
        Voter,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='admin_logs',
    )
    action = models.CharField(max_length=64)
    target = models.CharField(max_length=255, blank=True, default='')
    details = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='adminlog_created_idx'),
            models.Index(fields=['action'], name='adminlog_action_idx'),
        ]

    def __str__(self):
        return f"{self.action} {self.target} at {self.created_at}"

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ValueError("AdminLog entries are append-only")
        super().save(*args, **kwargs)
