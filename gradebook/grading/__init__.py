"""
Score aggregation and grade classification.

Pure functions over plain values; nothing in this package touches the
database. The flow for one section is:

    validation = validate_thresholds(pairs)
    aggregates = aggregate_section(student_ids, items, entries)
    graded = classify_all(aggregates, validation.threshold_set)
    distribution = summarize(graded, validation.threshold_set)
"""
from .aggregation import (
    AssessmentItem, CategoryScore, ScoreEntry, StudentAggregate,
    aggregate_section, aggregate_student, participating_items,
)
from .classification import (
    GRADE_POINTS, classify, classify_aggregate, classify_all,
    grade_point, label_for_point, normalize_grade,
)
from .distribution import SectionDistribution, summarize
from .scores import (
    ItemBatchValidation, ScoreValidation,
    clamp_score, score_changed, validate_item_batch, validate_score,
)
from .thresholds import (
    Threshold, ThresholdSet, ThresholdValidation,
    thresholds_from_mapping, validate_thresholds,
)

__all__ = [
    'AssessmentItem', 'CategoryScore', 'ScoreEntry', 'StudentAggregate',
    'aggregate_section', 'aggregate_student', 'participating_items',
    'GRADE_POINTS', 'classify', 'classify_aggregate', 'classify_all',
    'grade_point', 'label_for_point', 'normalize_grade',
    'SectionDistribution', 'summarize',
    'ItemBatchValidation', 'ScoreValidation',
    'clamp_score', 'score_changed', 'validate_item_batch', 'validate_score',
    'Threshold', 'ThresholdSet', 'ThresholdValidation',
    'thresholds_from_mapping', 'validate_thresholds',
]
