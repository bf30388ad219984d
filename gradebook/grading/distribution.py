"""
Section grade distribution.

A pure reduction over already-classified aggregates. Grades are never
recomputed here; the threshold set is only used to list the bands.
"""
from dataclasses import dataclass, field
from decimal import Decimal

from .numbers import ratio_percentage, round_percentage


@dataclass(frozen=True)
class SectionDistribution:
    """
    Section-level report.

    counts_by_grade and percentages_by_grade hold every configured band and
    the fail band, highest first, including bands nobody fell into.
    """
    student_count: int
    average_percentage: Decimal
    pass_count: int
    fail_count: int
    counts_by_grade: dict = field(default_factory=dict)
    percentages_by_grade: dict = field(default_factory=dict)

    def as_dict(self):
        return {
            'student_count': self.student_count,
            'average_percentage': self.average_percentage,
            'pass_count': self.pass_count,
            'fail_count': self.fail_count,
            'counts_by_grade': dict(self.counts_by_grade),
            'percentages_by_grade': dict(self.percentages_by_grade),
        }


def summarize(aggregates, threshold_set):
    """
    Summarize a section's classified aggregates.

    Args:
        aggregates: StudentAggregate list, each already carrying a grade
        threshold_set: the ThresholdSet the grades were assigned with

    Returns:
        SectionDistribution
    """
    aggregates = list(aggregates)
    student_count = len(aggregates)

    counts = {label: 0 for label in threshold_set.all_labels}
    passing = set(threshold_set.labels)
    pass_count = 0
    percentage_sum = Decimal('0')

    for aggregate in aggregates:
        # Grades from outside the set are kept as their own keys
        counts[aggregate.grade] = counts.get(aggregate.grade, 0) + 1
        if aggregate.grade in passing:
            pass_count += 1
        percentage_sum += aggregate.percentage

    if student_count:
        average = round_percentage(percentage_sum / student_count)
    else:
        average = round_percentage(0)

    return SectionDistribution(
        student_count=student_count,
        average_percentage=average,
        pass_count=pass_count,
        fail_count=student_count - pass_count,
        counts_by_grade=counts,
        percentages_by_grade={
            label: ratio_percentage(count, student_count)
            for label, count in counts.items()
        },
    )
