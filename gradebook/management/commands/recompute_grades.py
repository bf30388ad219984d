"""
Management command to recompute stored grades for a section.

Usage:
    python manage.py recompute_grades --section=12
    python manage.py recompute_grades --section=12 --student=101 --student=102
"""
from django.core.management.base import BaseCommand, CommandError

from gradebook.services import recompute_section


class Command(BaseCommand):
    help = 'Recompute totals, percentages and grades for every student in a section'

    def add_arguments(self, parser):
        parser.add_argument(
            '--section',
            type=int,
            required=True,
            help='Section id to recompute',
        )
        parser.add_argument(
            '--student',
            type=int,
            action='append',
            dest='students',
            help='Student id on the roster (repeatable); defaults to students with scores',
        )

    def handle(self, *args, **options):
        section_id = options['section']
        result = recompute_section(section_id, student_ids=options['students'])

        if not result.ok:
            raise CommandError(
                f'Cannot recompute section {section_id}: {result.threshold_validation.message}'
            )

        for aggregate in result.aggregates:
            self.stdout.write(
                f'  Student {aggregate.student_id}: '
                f'{aggregate.total_score}/{aggregate.max_possible} '
                f'({aggregate.percentage}%) {aggregate.grade}'
            )

        distribution = result.distribution
        counts = ', '.join(
            f'{label}: {count}' for label, count in distribution.counts_by_grade.items()
        )
        self.stdout.write(f'  Distribution: {counts}')
        self.stdout.write(self.style.SUCCESS(
            f'Recomputed {distribution.student_count} students in section {section_id} '
            f'(average {distribution.average_percentage}%, {distribution.pass_count} passing)'
        ))
