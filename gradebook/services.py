"""
Storage-side workflows around the grading engine.

The engine in gradebook.grading only computes. This module loads its inputs
from the database, runs it, and writes the results back:

- save_item_scores: all-or-nothing save of one item's scores
- save_thresholds: replace a section's grade cut points
- recompute_section: aggregate, classify and store every student's result
- section_distribution: summarize the stored results of a section
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
import logging

from django.db import transaction

from . import config
from .choices import ThresholdError
from .grading import (
    StudentAggregate, Threshold, ThresholdValidation, aggregate_section, classify_all,
    summarize, validate_item_batch, validate_thresholds,
)
from .grading.numbers import to_decimal
from .models import AssessmentItem, GradeThreshold, ScoreEntry, StudentGradeResult

logger = logging.getLogger(__name__)

SCORE_PLACES = Decimal('0.01')

# GradeThreshold.min_percentage holds 6 digits, 2 of them decimal
THRESHOLD_LIMIT = Decimal('10000')


@dataclass(frozen=True)
class ItemSaveResult:
    """Outcome of saving one item's scores."""
    validation: object
    saved: bool = False
    created: int = 0
    updated: int = 0
    deleted: int = 0


@dataclass(frozen=True)
class SectionRecomputeResult:
    """
    Outcome of a section recompute.

    When the section's thresholds are invalid nothing is computed or stored:
    aggregates is empty and distribution is None.
    """
    section_id: int
    threshold_validation: object
    aggregates: list = field(default_factory=list)
    distribution: object = None

    @property
    def ok(self):
        return self.threshold_validation.is_valid

    def as_dict(self):
        """JSON-friendly summary (Decimals as strings)."""
        if not self.ok:
            return {
                'section_id': self.section_id,
                'success': False,
                'error': self.threshold_validation.error_code,
                'message': self.threshold_validation.message,
                'violation': list(self.threshold_validation.violation or ()),
            }
        distribution = self.distribution.as_dict()
        return {
            'section_id': self.section_id,
            'success': True,
            'students': [_jsonable(a.as_dict()) for a in self.aggregates],
            'distribution': _jsonable(distribution),
        }


def _jsonable(data):
    if isinstance(data, dict):
        return {key: _jsonable(value) for key, value in data.items()}
    if isinstance(data, Decimal):
        return str(data)
    return data


# ============ Thresholds ============

def load_threshold_pairs(section_id):
    """
    Stored (label, min_percentage) pairs for a section, highest band first.
    Falls back to GRADEBOOK_DEFAULT_THRESHOLDS when none are saved.
    """
    rows = list(
        GradeThreshold.objects.filter(section_id=section_id).order_by('position')
    )
    if not rows:
        return [(label, Decimal(str(value))) for label, value in config.DEFAULT_THRESHOLDS]
    return [(row.label, row.min_percentage) for row in rows]


def _storable_pairs(pairs):
    """
    Round boundaries to the stored precision.

    Returns (pairs, error); error is an invalid_value ThresholdValidation for
    the first boundary the column cannot hold. Values that are not numbers
    are passed through for validate_thresholds to report.
    """
    storable = []
    for item in pairs:
        if isinstance(item, Threshold):
            label, value = item.label, item.min_percentage
        else:
            label, value = item

        boundary = to_decimal(value)
        if boundary is not None and boundary.is_finite():
            if abs(boundary) < THRESHOLD_LIMIT:
                boundary = boundary.quantize(SCORE_PLACES, rounding=ROUND_HALF_UP)
            if abs(boundary) >= THRESHOLD_LIMIT:
                label = str(label).strip()
                return None, ThresholdValidation(
                    error_code=ThresholdError.INVALID_VALUE,
                    message=f'Threshold for grade {label} must be below {THRESHOLD_LIMIT}: {value!r}',
                    label=label,
                )
            value = boundary
        storable.append((label, value))
    return storable, None


def save_thresholds(section_id, pairs):
    """
    Validate and store a section's thresholds, replacing any saved ones.

    Boundaries are rounded to two places before validation, so the stored
    set is exactly the validated one.

    Returns:
        ThresholdValidation; nothing is stored when it is invalid.
    """
    pairs, validation = _storable_pairs(pairs)
    if validation is None:
        validation = validate_thresholds(pairs)
    if not validation.is_valid:
        logger.warning(f"Rejected thresholds for section {section_id}: {validation.message}")
        return validation

    with transaction.atomic():
        GradeThreshold.objects.filter(section_id=section_id).delete()
        GradeThreshold.objects.bulk_create([
            GradeThreshold(
                section_id=section_id,
                label=threshold.label,
                min_percentage=threshold.min_percentage,
                position=position,
            )
            for position, threshold in enumerate(validation.threshold_set)
        ])

    logger.info(f"Saved {len(validation.threshold_set)} thresholds for section {section_id}")
    return validation


# ============ Score Entry ============

def save_item_scores(item, values, last_saved=None):
    """
    Save every student's score for one item, or none of them.

    Args:
        item: AssessmentItem instance
        values: {student_id: raw_value}; an empty value clears the score
        last_saved: optional {student_id: raw_value} for change tracking

    Returns:
        ItemSaveResult. If any cell is invalid the batch is rejected and
        nothing is written.
    """
    values = {int(student_id): raw for student_id, raw in values.items()}
    if last_saved is not None:
        last_saved = {int(student_id): raw for student_id, raw in last_saved.items()}

    validation = validate_item_batch(values, item.max_score, last_saved=last_saved)
    if not validation.is_valid:
        logger.warning(
            f"Rejected score batch for item {item.pk}: "
            f"{validation.invalid_count} invalid of {len(values)}"
        )
        return ItemSaveResult(validation=validation)

    to_create = []
    to_update = []
    to_delete = []

    with transaction.atomic():
        existing = {
            entry.student_id: entry
            for entry in ScoreEntry.objects.select_for_update().filter(
                item=item,
                student_id__in=list(values)
            )
        }

        for student_id, result in validation.results.items():
            entry = existing.get(student_id)
            if result.is_unfilled:
                if entry is not None:
                    to_delete.append(entry.pk)
                continue

            value = result.value.quantize(SCORE_PLACES, rounding=ROUND_HALF_UP)
            if entry is None:
                to_create.append(ScoreEntry(item=item, student_id=student_id, raw_value=value))
            elif entry.raw_value != value:
                entry.raw_value = value
                to_update.append(entry)

        if to_delete:
            ScoreEntry.objects.filter(pk__in=to_delete).delete()
        if to_create:
            ScoreEntry.objects.bulk_create(to_create)
        if to_update:
            ScoreEntry.objects.bulk_update(
                to_update, ['raw_value'],
                batch_size=config.BULK_UPDATE_BATCH_SIZE
            )

    logger.info(
        f"Saved scores for item {item.pk}: {len(to_create)} created, "
        f"{len(to_update)} updated, {len(to_delete)} cleared"
    )
    return ItemSaveResult(
        validation=validation,
        saved=True,
        created=len(to_create),
        updated=len(to_update),
        deleted=len(to_delete),
    )


# ============ Recompute ============

def _roster_for(section_id, entries):
    """Students with a stored score or a previously stored result."""
    student_ids = {entry.student_id for entry in entries}
    student_ids.update(
        StudentGradeResult.objects.filter(section_id=section_id).values_list('student_id', flat=True)
    )
    return sorted(student_ids)


def _store_results(section_id, aggregates):
    existing = {
        result.student_id: result
        for result in StudentGradeResult.objects.filter(section_id=section_id)
    }
    to_create = []
    to_update = []

    for aggregate in aggregates:
        result = existing.pop(aggregate.student_id, None)
        if result is None:
            result = StudentGradeResult(section_id=section_id, student_id=aggregate.student_id)
            to_create.append(result)
        else:
            to_update.append(result)

        result.total_score = aggregate.total_score
        result.max_possible = aggregate.max_possible
        result.percentage = aggregate.percentage
        result.grade = aggregate.grade
        result.category_scores = {
            category.name: float(category.percentage) for category in aggregate.categories
        }

    if existing:
        # Students no longer on the roster
        StudentGradeResult.objects.filter(pk__in=[r.pk for r in existing.values()]).delete()
    if to_create:
        StudentGradeResult.objects.bulk_create(to_create)
    if to_update:
        StudentGradeResult.objects.bulk_update(
            to_update,
            ['total_score', 'max_possible', 'percentage', 'grade', 'category_scores'],
            batch_size=config.BULK_UPDATE_BATCH_SIZE
        )


def recompute_section(section_id, student_ids=None):
    """
    Recompute and store every student's result for a section.

    Thresholds are validated once and the same set is used for every
    student. If they are invalid nothing is computed or written.

    Args:
        section_id: section to recompute
        student_ids: roster to grade; defaults to every student with a
            stored score or result in the section

    Returns:
        SectionRecomputeResult
    """
    validation = validate_thresholds(load_threshold_pairs(section_id))
    if not validation.is_valid:
        logger.warning(f"Not recomputing section {section_id}: {validation.message}")
        return SectionRecomputeResult(section_id=section_id, threshold_validation=validation)

    threshold_set = validation.threshold_set
    items = [item.to_value() for item in AssessmentItem.objects.filter(section_id=section_id)]
    entries = [
        entry.to_value()
        for entry in ScoreEntry.objects.filter(item__section_id=section_id, raw_value__isnull=False)
    ]
    if student_ids is None:
        student_ids = _roster_for(section_id, entries)

    aggregates = classify_all(aggregate_section(student_ids, items, entries), threshold_set)
    distribution = summarize(aggregates, threshold_set)

    with transaction.atomic():
        _store_results(section_id, aggregates)

    logger.info(
        f"Recomputed section {section_id}: {distribution.student_count} students, "
        f"{len(items)} items, average {distribution.average_percentage}%"
    )
    return SectionRecomputeResult(
        section_id=section_id,
        threshold_validation=validation,
        aggregates=aggregates,
        distribution=distribution,
    )


def section_distribution(section_id):
    """
    Summarize a section's stored results without recomputing them.

    Returns:
        SectionDistribution, or None when the section's thresholds are invalid.
    """
    validation = validate_thresholds(load_threshold_pairs(section_id))
    if not validation.is_valid:
        return None

    aggregates = [
        StudentAggregate(
            student_id=result.student_id,
            total_score=result.total_score,
            max_possible=result.max_possible,
            percentage=result.percentage,
            grade=result.grade,
        )
        for result in StudentGradeResult.objects.filter(section_id=section_id)
    ]
    return summarize(aggregates, validation.threshold_set)
