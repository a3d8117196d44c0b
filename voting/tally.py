"""
Tally aggregation
=================

Read-only election statistics, recomputed on every call:
- Votes and share per active candidate (withdrawn candidates keep a row
  once they hold votes)
- Breakdown per program of study (share within the program)
- Turnout: VOTER-role voters who voted over all VOTER-role voters
- Session counters for the monitoring dashboard

Percentages are rounded half-up: 2 decimals for vote shares, whole percent
for turnout. Empty elections (no candidates, votes or voters) yield zeros.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
import logging

from django.conf import settings # pyright: ignore[reportMissingModuleSource]
from django.db import DEFAULT_DB_ALIAS # pyright: ignore[reportMissingModuleSource]
from django.db.models import Count, Q # pyright: ignore[reportMissingModuleSource]
from django.utils import timezone # pyright: ignore[reportMissingModuleSource]

from .models import Candidate, Role, Vote, Voter, VotingSession

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')
WHOLE = Decimal('1')


def percent(part, whole, places=TWO_PLACES):
    """part / whole * 100 rounded half-up; 0 when whole is 0."""
    if not whole:
        return 0.0
    value = (Decimal(part) * 100 / Decimal(whole)).quantize(places, rounding=ROUND_HALF_UP)
    return float(value)


@dataclass(frozen=True)
class CandidateTally:
    candidate_id: int
    name: str
    vote_count: int
    percentage: float

    def to_dict(self):
        return {
            'candidateId': self.candidate_id,
            'name': self.name,
            'voteCount': self.vote_count,
            'percentage': self.percentage,
        }


@dataclass(frozen=True)
class ProgramTally:
    program: str
    total_votes: int
    candidates: tuple = ()

    def to_dict(self):
        return {
            'program': self.program,
            'totalVotes': self.total_votes,
            'candidates': [
                {
                    'candidateId': c.candidate_id,
                    'name': c.name,
                    'count': c.vote_count,
                    'percentage': c.percentage,
                }
                for c in self.candidates
            ],
        }


@dataclass(frozen=True)
class SessionCounts:
    pending: int = 0
    validated_today: int = 0
    validated_total: int = 0

    def to_dict(self):
        return {
            'pending': self.pending,
            'validatedToday': self.validated_today,
            'validatedTotal': self.validated_total,
        }


@dataclass(frozen=True)
class Tally:
    candidates: tuple = ()
    programs: tuple = ()
    total_voters: int = 0
    total_votes: int = 0
    turnout_percentage: float = 0.0
    total_candidates: int = 0
    total_voted: int = 0
    sessions: SessionCounts = field(default_factory=SessionCounts)

    def to_dict(self):
        return {
            'candidates': [c.to_dict() for c in self.candidates],
            'programs': [p.to_dict() for p in self.programs],
            'totalVoters': self.total_voters,
            'totalVotes': self.total_votes,
            'turnoutPercentage': self.turnout_percentage,
            'totalCandidates': self.total_candidates,
            'totalVoted': self.total_voted,
            'sessions': self.sessions.to_dict(),
        }


class TallyAggregator:
    """Compute a Tally snapshot from the store."""

    def __init__(self, using=DEFAULT_DB_ALIAS, clock=None, unknown_program_label=None):
        self.using = using
        self.clock = clock or timezone.now
        self.unknown_label = unknown_program_label or settings.TALLY_UNKNOWN_PROGRAM_LABEL

    def get_tally(self):
        now = self.clock()
        votes = Vote.objects.using(self.using)
        total_votes = votes.count()

        per_candidate = {
            row['candidate_id']: row['n']
            for row in votes.order_by().values('candidate_id').annotate(n=Count('id'))
        }
        # Withdrawn candidates keep their row once they hold votes
        candidates = list(
            Candidate.objects.using(self.using)
            .filter(Q(is_active=True) | Q(pk__in=list(per_candidate)))
            .order_by('created_at', 'pk')
        )
        candidate_rows = tuple(
            CandidateTally(
                candidate_id=c.pk,
                name=c.name,
                vote_count=per_candidate.get(c.pk, 0),
                percentage=percent(per_candidate.get(c.pk, 0), total_votes),
            )
            for c in candidates
        )

        electorate = Voter.objects.using(self.using).filter(role=Role.VOTER)
        total_voters = electorate.count()
        # Staff may vote too; turnout only counts the VOTER electorate
        total_voted = electorate.filter(has_voted=True).count()

        tally = Tally(
            candidates=candidate_rows,
            programs=self._program_breakdown(candidates),
            total_voters=total_voters,
            total_votes=total_votes,
            turnout_percentage=percent(total_voted, total_voters, places=WHOLE),
            total_candidates=sum(1 for c in candidates if c.is_active),
            total_voted=total_voted,
            sessions=self._session_counts(now),
        )
        logger.debug(f"Tally computed: {total_votes} votes, {len(tally.programs)} programs")
        return tally

    def _program_label(self, program):
        label = (program or '').strip()
        return label or self.unknown_label

    def _program_breakdown(self, candidates):
        counts = defaultdict(lambda: defaultdict(int))
        rows = (
            Vote.objects.using(self.using)
            .order_by()
            .values('voter__program', 'candidate_id')
            .annotate(n=Count('id'))
        )
        for row in rows:
            label = self._program_label(row['voter__program'])
            counts[label][row['candidate_id']] += row['n']

        programs = []
        for label, by_candidate in counts.items():
            program_total = sum(by_candidate.values())
            programs.append(ProgramTally(
                program=label,
                total_votes=program_total,
                candidates=tuple(
                    CandidateTally(
                        candidate_id=c.pk,
                        name=c.name,
                        vote_count=by_candidate.get(c.pk, 0),
                        percentage=percent(by_candidate.get(c.pk, 0), program_total),
                    )
                    for c in candidates
                ),
            ))
        programs.sort(key=lambda p: (-p.total_votes, p.program))
        return tuple(programs)

    def _session_counts(self, now):
        sessions = VotingSession.objects.using(self.using)
        today = timezone.localtime(now).date()
        validated = sessions.filter(is_validated=True)
        return SessionCounts(
            pending=sessions.filter(is_validated=False, is_used=False, expires_at__gt=now).count(),
            validated_today=validated.filter(validated_at__date=today).count(),
            validated_total=validated.count(),
        )
