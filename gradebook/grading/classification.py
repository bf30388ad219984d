"""
Grade classification and the grade-point table.
"""
from decimal import Decimal

from .. import config
from ..exceptions import InvalidThresholdConfiguration
from .numbers import to_decimal
from .thresholds import ThresholdSet


# Canonical label <-> grade point, highest first. F is the failing band.
GRADE_POINTS = (
    ('A', Decimal('4')),
    ('B+', Decimal('3.5')),
    ('B', Decimal('3')),
    ('C+', Decimal('2.5')),
    ('C', Decimal('2')),
    ('D+', Decimal('1.5')),
    ('D', Decimal('1')),
    ('F', Decimal('0')),
)

_POINT_BY_LABEL = {label: point for label, point in GRADE_POINTS}
_LABEL_BY_POINT = {point: label for label, point in GRADE_POINTS}

# Extra spellings found in older records
_ALIASES = {
    'a+': 'A',
}


def classify(percentage, threshold_set):
    """
    Return the grade label for a percentage.

    Bands are scanned from the highest down and the first one whose boundary
    is at or below the percentage wins, so a percentage equal to a boundary
    gets the higher grade. Below every boundary is the fail label.

    Raises:
        InvalidThresholdConfiguration: threshold_set is not a ThresholdSet.
            Validate the configuration with validate_thresholds() first.
    """
    if not isinstance(threshold_set, ThresholdSet):
        raise InvalidThresholdConfiguration(
            'Grades can only be classified with a validated threshold set'
        )

    value = to_decimal(percentage)
    if value is None or not value.is_finite():
        return threshold_set.fail_label

    for threshold in threshold_set:
        if threshold.min_percentage <= value:
            return threshold.label
    return threshold_set.fail_label


def classify_aggregate(aggregate, threshold_set):
    """Return a copy of the aggregate with its grade filled in."""
    return aggregate.with_grade(classify(aggregate.percentage, threshold_set))


def classify_all(aggregates, threshold_set):
    return [classify_aggregate(aggregate, threshold_set) for aggregate in aggregates]


def grade_point(label):
    """Grade point for a canonical label, or None if the label is unknown."""
    label = str(label).strip()
    if label == config.FAIL_LABEL:
        return _POINT_BY_LABEL['F']
    return _POINT_BY_LABEL.get(label)


def label_for_point(point):
    """Canonical label for a grade point (4 -> 'A'), or None if unknown."""
    value = to_decimal(point)
    if value is None or not value.is_finite():
        return None
    label = _LABEL_BY_POINT.get(value)
    if label == 'F':
        return config.FAIL_LABEL
    return label


def normalize_grade(raw):
    """
    Map a stored grade to its canonical label.

    Accepts labels in any case ('b+'), grade points ('3.5', '4.0') and a few
    legacy aliases ('a+'). An empty value is the fail label. Anything else is
    returned as entered, so non-standard grades still display.
    """
    text = '' if raw is None else str(raw).strip()
    if not text:
        return config.FAIL_LABEL

    lowered = text.lower()
    if lowered in _ALIASES:
        return _ALIASES[lowered]
    if lowered == str(config.FAIL_LABEL).lower():
        return config.FAIL_LABEL

    for label, _point in GRADE_POINTS:
        if lowered == label.lower():
            return config.FAIL_LABEL if label == 'F' else label

    label = label_for_point(text)
    if label is not None:
        return label

    return text
