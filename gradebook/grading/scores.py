"""
Score entry validation.

Checks a single raw score against its item's maximum and classifies it as
unfilled, valid or invalid. Nothing here clamps or saves; callers decide
what to do with an invalid cell.
"""
from dataclasses import dataclass, field
from decimal import Decimal

from ..choices import ScoreError, ScoreStatus
from .numbers import to_decimal


@dataclass(frozen=True)
class ScoreValidation:
    """Outcome of validating one score cell."""
    status: str
    value: Decimal = None
    error_code: str = ''
    message: str = ''

    @property
    def is_valid(self):
        return self.status == ScoreStatus.VALID

    @property
    def is_invalid(self):
        return self.status == ScoreStatus.INVALID

    @property
    def is_unfilled(self):
        return self.status == ScoreStatus.UNFILLED


@dataclass(frozen=True)
class ItemBatchValidation:
    """
    Validation of every score entered for one assessment item.

    Attributes:
        results: {student_id: ScoreValidation}, in input order
        invalid_student_ids: students whose cell is invalid
        changed_student_ids: students whose cell differs from the last saved
            value (empty when no last-saved values were given)
    """
    results: dict = field(default_factory=dict)
    invalid_student_ids: tuple = ()
    changed_student_ids: tuple = ()

    @property
    def is_valid(self):
        """The whole batch may be saved only when no cell is invalid."""
        return not self.invalid_student_ids

    @property
    def invalid_count(self):
        return len(self.invalid_student_ids)

    @property
    def changed_count(self):
        return len(self.changed_student_ids)


def _is_blank(raw_value):
    return raw_value is None or (isinstance(raw_value, str) and not raw_value.strip())


def _invalid(code, message, value=None):
    return ScoreValidation(
        status=ScoreStatus.INVALID,
        value=value,
        error_code=code,
        message=message,
    )


def validate_score(raw_value, max_score):
    """
    Validate a raw score entered for an item worth max_score.

    Args:
        raw_value: the entered value (str, number or None)
        max_score: the item's maximum; the upper bound is only enforced
            when it is positive

    Returns:
        ScoreValidation
    """
    if _is_blank(raw_value):
        return ScoreValidation(status=ScoreStatus.UNFILLED)

    value = to_decimal(raw_value)
    if value is None:
        return _invalid(ScoreError.NOT_A_NUMBER, f'"{raw_value}" is not a number')
    if not value.is_finite():
        return _invalid(ScoreError.NOT_FINITE, 'Score must be a finite number')
    if value < 0:
        return _invalid(ScoreError.NEGATIVE, f'Score ({value}) cannot be negative', value)

    maximum = to_decimal(max_score)
    if maximum is not None and maximum.is_finite() and maximum > 0 and value > maximum:
        return _invalid(
            ScoreError.ABOVE_MAX,
            f'Score ({value}) cannot exceed maximum score ({maximum})',
            value,
        )

    return ScoreValidation(status=ScoreStatus.VALID, value=value)


def _entered_text(value):
    if value is None:
        return ''
    return str(value).strip()


def score_changed(current, last_saved):
    """True when the entered value differs from the last saved one."""
    return _entered_text(current) != _entered_text(last_saved)


def validate_item_batch(values, max_score, last_saved=None):
    """
    Validate all cells entered for one item before an all-or-nothing save.

    Args:
        values: {student_id: raw_value}
        max_score: the item's maximum score
        last_saved: optional {student_id: raw_value} as last persisted

    Returns:
        ItemBatchValidation
    """
    results = {}
    invalid = []
    changed = []

    for student_id, raw_value in values.items():
        result = validate_score(raw_value, max_score)
        results[student_id] = result
        if result.is_invalid:
            invalid.append(student_id)
        if last_saved is not None and score_changed(raw_value, last_saved.get(student_id)):
            changed.append(student_id)

    return ItemBatchValidation(
        results=results,
        invalid_student_ids=tuple(invalid),
        changed_student_ids=tuple(changed),
    )


def clamp_score(value, max_score):
    """
    Clamp a score into [0, max_score] for callers that clamp on save.

    When max_score is not positive only the lower bound applies.
    """
    value = to_decimal(value) or Decimal('0')
    if not value.is_finite():
        return Decimal('0')
    maximum = to_decimal(max_score)
    value = max(Decimal('0'), value)
    if maximum is not None and maximum.is_finite() and maximum > 0:
        value = min(maximum, value)
    return value
