"""
Management command to seed the default grade thresholds for a section.
This stores the standard A / B+ / B / C+ / C / D+ / D cut points so teachers
start from a valid configuration.

Usage:
    python manage.py seed_grade_thresholds --section=12

    # Override individual bands (legacy keys such as b_plus are accepted)
    python manage.py seed_grade_thresholds --section=12 --set a=85 --set b_plus=78 --force
"""
from django.core.management.base import BaseCommand, CommandError

from gradebook.grading import thresholds_from_mapping
from gradebook.models import GradeThreshold
from gradebook.services import save_thresholds


class Command(BaseCommand):
    help = 'Seed default grade thresholds (A to D, fail below D) for a section'

    def add_arguments(self, parser):
        parser.add_argument(
            '--section',
            type=int,
            required=True,
            help='Section id to seed thresholds for',
        )
        parser.add_argument(
            '--set',
            action='append',
            default=[],
            metavar='LABEL=PERCENT',
            help='Override a band, e.g. --set a=85 --set b_plus=78',
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Overwrite existing thresholds',
        )

    def handle(self, *args, **options):
        section_id = options['section']

        if GradeThreshold.objects.filter(section_id=section_id).exists() and not options['force']:
            self.stdout.write(
                f'Section {section_id} already has thresholds. Use --force to overwrite.'
            )
            return

        overrides = {}
        for item in options['set']:
            key, sep, value = item.partition('=')
            if not sep:
                raise CommandError(f'Invalid --set value "{item}", expected LABEL=PERCENT')
            overrides[key] = value

        validation = save_thresholds(section_id, thresholds_from_mapping(overrides))
        if not validation.is_valid:
            raise CommandError(validation.message)

        for threshold in validation.threshold_set:
            self.stdout.write(f'  {threshold}')
        self.stdout.write(self.style.SUCCESS(
            f'Seeded {len(validation.threshold_set)} grade thresholds for section {section_id}'
        ))
