"""
Django Admin Configuration for the Election Voting System
=========================================================

Configures Django admin interface for:
- Voter roster management
- Candidate management
- VotingSession viewing (read-only)
- Vote viewing (read-only)
- AdminLog audit trail (read-only)

Security:
- Sessions, votes and audit entries cannot be created, edited or deleted
  here; only the voting services write them
- has_voted is read-only (set by the ballot caster alone)
- Requires Django admin authentication
"""

from django.contrib import admin # pyright: ignore[reportMissingModuleSource, reportMissingImports]
from django.utils import timezone # pyright: ignore[reportMissingModuleSource]

from .models import AdminLog, Candidate, Vote, Voter, VotingSession


class ReadOnlyAdmin(admin.ModelAdmin):
    """Base for models only the voting services may write."""

    def has_add_permission(self, request):
        """Prevent manual creation in admin."""
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        """Prevent deletion in admin (audit trail)."""
        return False


@admin.register(Voter)
class VoterAdmin(admin.ModelAdmin):
    """
    Admin interface for Voter model.

    Displays:
    - Name, registration number and program
    - Role and voting status
    """

    list_display = ('name', 'registration_number', 'program', 'role',
                   'has_voted', 'created_at')
    list_filter = ('role', 'has_voted', 'program')
    search_fields = ('name', 'registration_number', 'program')
    readonly_fields = ('has_voted', 'created_at')
    fieldsets = (
        ('Voter Information', {
            'fields': ('registration_number', 'name', 'program', 'role')
        }),
        ('Status', {
            'fields': ('has_voted', 'created_at'),
        }),
    )


@admin.register(Candidate)
class CandidateAdmin(admin.ModelAdmin):
    """
    Admin interface for Candidate model.

    Deactivate a candidate instead of deleting it once votes exist.
    """

    list_display = ('name', 'registration_number', 'program', 'is_active',
                   'get_vote_count', 'created_at')
    list_filter = ('is_active', 'program')
    search_fields = ('name', 'registration_number', 'program')
    readonly_fields = ('created_at', 'get_vote_count')
    fieldsets = (
        ('Candidate Information', {
            'fields': ('name', 'registration_number', 'program', 'photo', 'is_active')
        }),
        ('Manifesto', {
            'fields': ('vision', 'mission'),
        }),
        ('Statistics', {
            'fields': ('get_vote_count', 'created_at'),
        }),
    )

    def get_vote_count(self, obj):
        """Display number of votes for this candidate."""
        return obj.votes.count()
    get_vote_count.short_description = 'Votes'


@admin.register(VotingSession)
class VotingSessionAdmin(ReadOnlyAdmin):
    """
    Admin interface for VotingSession model.

    Used for monitoring and support:
    - Look up a voter's credential history
    - See who validated a session and when
    """

    list_display = ('redeem_code', 'voter', 'get_state', 'validated_by',
                   'validated_at', 'expires_at', 'created_at')
    list_filter = ('is_validated', 'is_used', 'is_current', 'created_at')
    search_fields = ('redeem_code', 'voter__name', 'voter__registration_number')
    list_select_related = ('voter', 'validated_by')

    def get_state(self, obj):
        """Lifecycle state at the time of viewing."""
        return obj.state(timezone.now()).label
    get_state.short_description = 'State'


@admin.register(Vote)
class VoteAdmin(ReadOnlyAdmin):
    """
    Admin interface for Vote model.

    IMPORTANT: Votes are READ-ONLY in admin
    - Protects voting integrity
    - Prevents accidental modification
    """

    list_display = ('voter', 'candidate', 'created_at')
    list_filter = ('candidate', 'created_at')
    search_fields = ('voter__name', 'voter__registration_number')
    list_select_related = ('voter', 'candidate')


@admin.register(AdminLog)
class AdminLogAdmin(ReadOnlyAdmin):
    """Audit trail of validation and cast attempts."""

    list_display = ('action', 'target', 'actor', 'get_outcome', 'ip_address', 'created_at')
    list_filter = ('action', 'created_at')
    search_fields = ('target', 'actor__name', 'actor__registration_number')
    list_select_related = ('actor',)

    def get_outcome(self, obj):
        return (obj.details or {}).get('outcome', '')
    get_outcome.short_description = 'Outcome'
