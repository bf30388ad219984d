"""
Grade thresholds.

A threshold set is an ordered list of (label, min_percentage) records from
the highest band to the lowest. It is valid when the boundaries never
increase going down the list. A percentage belongs to the highest band whose
boundary is at or below it; anything under the lowest boundary falls into
the implicit fail band.

Boundary values are trusted as entered: they are not clamped to [0, 100].
"""
import logging
from dataclasses import dataclass
from decimal import Decimal

from .. import config
from ..choices import ThresholdError
from ..exceptions import InvalidThresholdConfiguration
from .numbers import to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Threshold:
    """Lower edge (inclusive) of one grade band."""
    label: str
    min_percentage: Decimal

    def __str__(self):
        return f"{self.label} (>= {self.min_percentage}%)"


@dataclass(frozen=True)
class ThresholdValidation:
    """
    Result of validating a threshold configuration.

    When invalid, error_code says why. For ordering errors, violation holds
    the first (label_above, label_below) pair that breaks the order; for bad
    values or duplicate labels, label names the offending band.
    """
    error_code: str = ''
    message: str = ''
    violation: tuple = None
    label: str = ''
    threshold_set: 'ThresholdSet' = None

    @property
    def is_valid(self):
        return not self.error_code


def _as_pair(item):
    if isinstance(item, Threshold):
        return item.label, item.min_percentage
    label, value = item
    return label, value


def _check(pairs, fail_label):
    """
    Walk the pairs and return (thresholds, error) where error is a
    ThresholdValidation describing the first problem found, or None.
    """
    thresholds = []
    seen = {fail_label}

    for item in pairs:
        label, value = _as_pair(item)
        label = str(label).strip()
        boundary = to_decimal(value)
        if boundary is None or not boundary.is_finite():
            return None, ThresholdValidation(
                error_code=ThresholdError.INVALID_VALUE,
                message=f'Threshold for grade {label} is not a valid number: {value!r}',
                label=label,
            )
        if label in seen:
            return None, ThresholdValidation(
                error_code=ThresholdError.DUPLICATE_LABEL,
                message=(
                    f'Grade {label} appears more than once'
                    if label != fail_label else f'Grade {label} is reserved for the fail band'
                ),
                label=label,
            )
        seen.add(label)
        thresholds.append(Threshold(label=label, min_percentage=boundary))

    if not thresholds:
        return None, ThresholdValidation(
            error_code=ThresholdError.EMPTY,
            message='At least one grade threshold is required',
        )

    for above, below in zip(thresholds, thresholds[1:]):
        if above.min_percentage < below.min_percentage:
            return None, ThresholdValidation(
                error_code=ThresholdError.ORDER,
                message=(
                    f'Threshold for {above.label} ({above.min_percentage}%) must not be '
                    f'lower than {below.label} ({below.min_percentage}%)'
                ),
                violation=(above.label, below.label),
            )

    return tuple(thresholds), None


@dataclass(frozen=True)
class ThresholdSet:
    """
    A validated, read-only set of grade bands.

    Build one with validate_thresholds() or ThresholdSet.from_pairs();
    constructing it from an invalid list raises InvalidThresholdConfiguration.
    """
    thresholds: tuple
    fail_label: str = None

    def __post_init__(self):
        if self.fail_label is None:
            object.__setattr__(self, 'fail_label', config.FAIL_LABEL)
        checked, error = _check(self.thresholds, self.fail_label)
        if error is not None:
            raise InvalidThresholdConfiguration(error.message, validation=error)
        object.__setattr__(self, 'thresholds', checked)

    @classmethod
    def from_pairs(cls, pairs, fail_label=None):
        """Build from (label, percentage) pairs, raising if they are invalid."""
        validation = validate_thresholds(pairs, fail_label=fail_label)
        if not validation.is_valid:
            raise InvalidThresholdConfiguration(validation.message, validation=validation)
        return validation.threshold_set

    @property
    def labels(self):
        """Configured labels, highest band first (fail label excluded)."""
        return tuple(t.label for t in self.thresholds)

    @property
    def all_labels(self):
        """Configured labels followed by the fail label."""
        return self.labels + (self.fail_label,)

    @property
    def lowest(self):
        """The pass floor: the lowest configured boundary."""
        return self.thresholds[-1].min_percentage

    def as_pairs(self):
        return [(t.label, t.min_percentage) for t in self.thresholds]

    def __len__(self):
        return len(self.thresholds)

    def __iter__(self):
        return iter(self.thresholds)


def validate_thresholds(pairs, fail_label=None):
    """
    Validate an ordered list of (label, percentage) pairs, highest first.

    Returns:
        ThresholdValidation; on success its threshold_set is ready for use
        by the classifier.
    """
    if fail_label is None:
        fail_label = config.FAIL_LABEL
    thresholds, error = _check(pairs, fail_label)
    if error is not None:
        return error
    return ThresholdValidation(threshold_set=ThresholdSet(thresholds, fail_label=fail_label))


def _normalize_key(key):
    return str(key).strip().lower().replace('_plus', '+').replace(' ', '')


def thresholds_from_mapping(data, defaults=None):
    """
    Convert a loosely keyed threshold object into ordered pairs.

    Legacy configurations store thresholds as {'a': 80, 'b_plus': 75, ...}.
    Keys are matched to the default labels case-insensitively, with '_plus'
    read as '+'. Bands missing from data keep their default value; keys that
    match no default band are dropped.

    Args:
        data: mapping of key -> percentage (may be None or partial)
        defaults: ordered (label, percentage) pairs; config.DEFAULT_THRESHOLDS
            when omitted

    Returns:
        list of (label, value) pairs in the defaults' order
    """
    if defaults is None:
        defaults = config.DEFAULT_THRESHOLDS

    overrides = {}
    for key, value in (data or {}).items():
        overrides[_normalize_key(key)] = value

    pairs = []
    for label, default in defaults:
        pairs.append((label, overrides.pop(_normalize_key(label), default)))

    if overrides:
        logger.warning(f"Ignoring unknown threshold keys: {', '.join(sorted(overrides))}")

    return pairs
