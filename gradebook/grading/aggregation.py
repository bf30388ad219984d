"""
Score aggregation.

Rolls one student's item scores up into a total, a maximum possible and a
percentage. Only items with a positive maximum take part. An unfilled score
counts as zero against its item's maximum; it is not left out.

Percentages are the raw ratio rounded to two places. They are not clamped,
so scores saved above an item's maximum show up as more than 100%.
"""
from dataclasses import dataclass, replace
from decimal import Decimal

from .. import config
from .numbers import ratio_percentage, round_percentage, to_decimal


@dataclass(frozen=True)
class AssessmentItem:
    """A scored item in a section (quiz, test, exam...)."""
    id: object
    max_score: Decimal
    title: str = ''
    category: str = ''


@dataclass(frozen=True)
class ScoreEntry:
    """One student's raw value for one item; None means unfilled."""
    student_id: object
    item_id: object
    raw_value: object = None


@dataclass(frozen=True)
class CategoryScore:
    name: str
    total_score: Decimal
    max_possible: Decimal
    percentage: Decimal
    normalized_score: Decimal


@dataclass(frozen=True)
class StudentAggregate:
    """
    Derived result for one student in one section.

    grade is empty until the aggregate has been classified.
    """
    student_id: object
    total_score: Decimal
    max_possible: Decimal
    percentage: Decimal
    grade: str = ''
    categories: tuple = ()

    def with_grade(self, grade):
        return replace(self, grade=grade)

    def as_dict(self):
        return {
            'student_id': self.student_id,
            'total_score': self.total_score,
            'max_possible': self.max_possible,
            'percentage': self.percentage,
            'grade': self.grade,
        }


def participating_items(items):
    """Items that can be scored: those whose max_score is a positive number."""
    result = []
    for item in items:
        max_score = to_decimal(item.max_score)
        if max_score is not None and max_score.is_finite() and max_score > 0:
            result.append(replace(item, max_score=max_score))
    return result


def _filled_value(raw_value):
    value = to_decimal(raw_value)
    if value is None or not value.is_finite():
        return None
    return value


def normalize_to_scale(percentage, scale_max=None):
    """Map a percentage onto the 0..scale_max display scale."""
    if scale_max is None:
        scale_max = config.NORMALIZED_SCALE_MAX
    scale_max = Decimal(scale_max)
    normalized = round_percentage(percentage * scale_max / 100)
    return min(scale_max, max(Decimal('0'), normalized))


def _category_breakdown(items, values):
    default_name = config.DEFAULT_CATEGORY_NAME
    totals = {}
    for item in items:
        name = item.category or default_name
        total, maximum = totals.get(name, (Decimal('0'), Decimal('0')))
        total += values.get(item.id) or Decimal('0')
        maximum += item.max_score
        totals[name] = (total, maximum)

    breakdown = []
    for name, (total, maximum) in totals.items():
        percentage = ratio_percentage(total, maximum)
        breakdown.append(CategoryScore(
            name=name,
            total_score=total,
            max_possible=maximum,
            percentage=percentage,
            normalized_score=normalize_to_scale(percentage),
        ))
    return tuple(breakdown)


def aggregate_student(student_id, items, entries):
    """
    Aggregate one student's scores.

    Args:
        student_id: the student to aggregate
        items: AssessmentItem list for the section
        entries: ScoreEntry list; entries for other students or for items
            not in items are ignored

    Returns:
        StudentAggregate with an empty grade
    """
    items = participating_items(items)
    item_ids = {item.id for item in items}

    values = {}
    for entry in entries:
        if entry.student_id != student_id or entry.item_id not in item_ids:
            continue
        values[entry.item_id] = _filled_value(entry.raw_value)

    total = sum((v for v in values.values() if v is not None), Decimal('0'))
    max_possible = sum((item.max_score for item in items), Decimal('0'))

    return StudentAggregate(
        student_id=student_id,
        total_score=total,
        max_possible=max_possible,
        percentage=ratio_percentage(total, max_possible),
        categories=_category_breakdown(items, values),
    )


def aggregate_section(student_ids, items, entries):
    """Aggregate every student in student_ids, keeping roster order."""
    by_student = {}
    for entry in entries:
        by_student.setdefault(entry.student_id, []).append(entry)

    return [
        aggregate_student(student_id, items, by_student.get(student_id, []))
        for student_id in student_ids
    ]
