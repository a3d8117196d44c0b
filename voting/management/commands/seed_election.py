"""
Seed the election with its candidates and staff accounts.

Idempotent: existing candidates are left untouched, staff accounts get
their name / program / role refreshed.

Usage:
    python manage.py seed_election
"""

import logging

from django.core.management.base import BaseCommand # pyright: ignore[reportMissingModuleSource]
from django.db import transaction # pyright: ignore[reportMissingModuleSource]

from voting.models import Candidate, Role, Voter

logger = logging.getLogger(__name__)

CANDIDATES = [
    {
        'registration_number': '123450050',
        'name': 'Ahmad Rizky',
        'program': 'S1 Sains Data',
        'photo': '/candidate-1.jpg',
        'vision': (
            'Menghadirkan KM-ITERA yang aktif, progresif humanis, inklusif '
            'berlandaskan pada kepentingan mahasiswa dan masyarakat.'
        ),
        'mission': (
            '1. Aktif melakukan pengawalan isu di tingkat kampus, regional, nasional dan global.\n'
            '2. Mengakomodasi ekspresi mahasiswa dalam beragam ruang dan rupa.\n'
            '3. Membuka ruang yang komunikatif dan menyinergikan langkah berbagai elemen institut.\n'
            '4. Merestorasi nilai KM-ITERA agar bergerak cepat menghadapi tantangan yang dinamis.'
        ),
    },
    {
        'registration_number': '123130039',
        'name': 'Kevin Andriano',
        'program': 'S1 Teknik Elektro',
        'photo': '/candidate-2.jpg',
        'vision': (
            'Mewujudkan KM-ITERA yang harmonis, kolaboratif, dan berdampak nyata '
            'dalam membangun mahasiswa ITERA yang unggul dan berkarakter.'
        ),
        'mission': (
            '1. Membangun mahasiswa ITERA yang unggul, berdaya saing, dan berkarakter.\n'
            '2. Menghadirkan gerakan yang harmonis dan kolaboratif dengan seluruh elemen mahasiswa.\n'
            '3. Mewujudkan program yang berdampak nyata bagi kebutuhan mahasiswa.\n'
            '4. Menjadi wadah, pendamping, dan pelindung bagi aspirasi mahasiswa ITERA.'
        ),
    },
]

STAFF_ACCOUNTS = [
    {'registration_number': '1', 'name': 'SUPER ADMIN', 'role': Role.SUPER_ADMIN},
    {'registration_number': '2', 'name': 'ADMIN', 'role': Role.ADMIN},
    {'registration_number': '3', 'name': 'MONITORING', 'role': Role.MONITORING},
]

STAFF_PROGRAM = 'S1 TEKNIK FISIKA'


class Command(BaseCommand):
    help = 'Create the default candidates and the super-admin / admin / monitoring accounts'

    def add_arguments(self, parser):
        parser.add_argument(
            '--skip-candidates',
            action='store_true',
            help='Only create the staff accounts',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if not options['skip_candidates']:
            for data in CANDIDATES:
                defaults = {k: v for k, v in data.items() if k != 'registration_number'}
                candidate, created = Candidate.objects.get_or_create(
                    registration_number=data['registration_number'],
                    defaults=defaults,
                )
                self._report('Candidate', candidate, created)

        for data in STAFF_ACCOUNTS:
            account, created = Voter.objects.update_or_create(
                registration_number=data['registration_number'],
                defaults={
                    'name': data['name'],
                    'program': STAFF_PROGRAM,
                    'role': data['role'],
                },
            )
            self._report(data['role'].label, account, created)

        self.stdout.write(self.style.SUCCESS('Seed completed'))

    def _report(self, kind, obj, created):
        verb = 'Created' if created else 'Kept'
        logger.info(f"Seed: {verb.lower()} {kind} {obj}")
        self.stdout.write(f"{verb} {kind}: {obj}")
