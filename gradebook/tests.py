"""
Tests for the gradebook app.

Focuses on:
- Score entry validation and the all-or-nothing item save
- Threshold validation, storage and legacy keyed thresholds
- Aggregation, classification and the section distribution
- Forms, management commands and the recompute task
"""
import uuid
from decimal import Decimal
from io import StringIO

from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase, TestCase, override_settings

from .choices import ScoreError, ScoreStatus, ThresholdError
from .exceptions import InvalidThresholdConfiguration
from .forms import GradeThresholdForm, ScoreForm
from .grading import (
    AssessmentItem as ItemValue, ScoreEntry as EntryValue, StudentAggregate,
    Threshold, ThresholdSet, aggregate_section, aggregate_student, clamp_score,
    classify, classify_aggregate, classify_all, grade_point, label_for_point,
    normalize_grade, participating_items, score_changed, summarize,
    thresholds_from_mapping, validate_item_batch, validate_score, validate_thresholds,
)
from .grading.aggregation import normalize_to_scale
from .models import AssessmentItem, GradeThreshold, ScoreEntry, StudentGradeResult
from .services import (
    load_threshold_pairs, recompute_section, save_item_scores, save_thresholds,
    section_distribution,
)
from .tasks import recompute_section_grades


DEFAULT_PAIRS = [
    ('A', 80), ('B+', 75), ('B', 70), ('C+', 65),
    ('C', 60), ('D+', 55), ('D', 50),
]

SECTION = 12


# =============================================================================
# SCORE ENTRY VALIDATION
# =============================================================================

class ValidateScoreTest(SimpleTestCase):
    """Tests for single-cell score validation."""

    def test_empty_values_are_unfilled(self):
        """Test None, empty and whitespace-only input are unfilled, not zero."""
        for raw in (None, '', '   '):
            result = validate_score(raw, 50)
            self.assertEqual(result.status, ScoreStatus.UNFILLED)
            self.assertTrue(result.is_unfilled)
            self.assertIsNone(result.value)

    def test_zero_is_valid(self):
        """Test a zero score is a filled, valid score."""
        result = validate_score('0', 50)
        self.assertTrue(result.is_valid)
        self.assertEqual(result.value, Decimal('0'))

    def test_valid_score(self):
        """Test a score within range is valid."""
        result = validate_score('45.5', 50)
        self.assertEqual(result.status, ScoreStatus.VALID)
        self.assertEqual(result.value, Decimal('45.5'))

    def test_numeric_input(self):
        """Test int and float input are accepted."""
        self.assertTrue(validate_score(30, 50).is_valid)
        self.assertEqual(validate_score(12.25, 50).value, Decimal('12.25'))

    def test_score_equal_to_max_is_valid(self):
        """Test the maximum itself is allowed."""
        self.assertTrue(validate_score('50', Decimal('50')).is_valid)

    def test_score_above_max_is_invalid(self):
        """Test out-of-range values are reported, not clamped."""
        result = validate_score('51', 50)
        self.assertTrue(result.is_invalid)
        self.assertEqual(result.error_code, ScoreError.ABOVE_MAX)
        self.assertEqual(result.value, Decimal('51'))
        self.assertIn('cannot exceed', result.message)

    def test_negative_score_invalid(self):
        """Test negative scores are rejected."""
        result = validate_score('-1', 50)
        self.assertTrue(result.is_invalid)
        self.assertEqual(result.error_code, ScoreError.NEGATIVE)

    def test_non_numeric_invalid(self):
        """Test text that is not a number is rejected."""
        result = validate_score('abc', 50)
        self.assertTrue(result.is_invalid)
        self.assertEqual(result.error_code, ScoreError.NOT_A_NUMBER)

    def test_non_finite_invalid(self):
        """Test NaN and infinity are rejected."""
        for raw in ('NaN', 'Infinity', float('inf')):
            result = validate_score(raw, 50)
            self.assertTrue(result.is_invalid)
            self.assertEqual(result.error_code, ScoreError.NOT_FINITE)

    def test_no_upper_bound_without_positive_max(self):
        """Test the maximum is only enforced when it is positive."""
        self.assertTrue(validate_score('500', 0).is_valid)
        self.assertTrue(validate_score('500', None).is_valid)
        self.assertTrue(validate_score('-5', 0).is_invalid)

    def test_validation_is_pure(self):
        """Test the same input always gives the same result."""
        self.assertEqual(validate_score('49', 50), validate_score('49', 50))


class ScoreChangedTest(SimpleTestCase):
    """Tests for the entered-vs-saved comparison."""

    def test_unchanged(self):
        """Test equal text, ignoring surrounding spaces, is unchanged."""
        self.assertFalse(score_changed('30', '30'))
        self.assertFalse(score_changed(' 30 ', '30'))

    def test_none_and_empty_are_the_same(self):
        """Test None and empty both mean unfilled."""
        self.assertFalse(score_changed('', None))
        self.assertFalse(score_changed(None, None))

    def test_changed(self):
        """Test edits, clears and new entries are changes."""
        self.assertTrue(score_changed('31', '30'))
        self.assertTrue(score_changed('', '30'))
        self.assertTrue(score_changed('30', None))

    def test_change_does_not_affect_validity(self):
        """Test an invalid cell can be unchanged."""
        self.assertFalse(score_changed('99', '99'))
        self.assertTrue(validate_score('99', 50).is_invalid)


class ItemBatchValidationTest(SimpleTestCase):
    """Tests for validating every cell of one item before saving."""

    def test_valid_batch(self):
        """Test a batch of valid and unfilled cells can be saved."""
        batch = validate_item_batch({1: '30', 2: '', 3: '50'}, 50)
        self.assertTrue(batch.is_valid)
        self.assertEqual(batch.invalid_count, 0)
        self.assertTrue(batch.results[1].is_valid)
        self.assertTrue(batch.results[2].is_unfilled)

    def test_one_invalid_cell_rejects_batch(self):
        """Test any invalid cell blocks the whole batch."""
        batch = validate_item_batch({1: '30', 2: '60', 3: 'x'}, 50)
        self.assertFalse(batch.is_valid)
        self.assertEqual(batch.invalid_student_ids, (2, 3))
        self.assertEqual(batch.invalid_count, 2)

    def test_changed_cells_tracked(self):
        """Test cells differing from the last saved values are counted."""
        batch = validate_item_batch(
            {1: '30', 2: '40', 3: ''},
            50,
            last_saved={1: '30', 2: '35', 3: '10'},
        )
        self.assertEqual(batch.changed_student_ids, (2, 3))
        self.assertEqual(batch.changed_count, 2)

    def test_no_change_tracking_without_last_saved(self):
        """Test change tracking is off when no saved values are given."""
        batch = validate_item_batch({1: '30'}, 50)
        self.assertEqual(batch.changed_student_ids, ())


class ClampScoreTest(SimpleTestCase):
    """Tests for the optional save-time clamp."""

    def test_clamps_into_range(self):
        """Test values are clamped to [0, max]."""
        self.assertEqual(clamp_score('60', 50), Decimal('50'))
        self.assertEqual(clamp_score('-3', 50), Decimal('0'))
        self.assertEqual(clamp_score('20', 50), Decimal('20'))

    def test_only_lower_bound_without_max(self):
        """Test only the lower bound applies when max is not positive."""
        self.assertEqual(clamp_score('60', 0), Decimal('60'))
        self.assertEqual(clamp_score('-3', 0), Decimal('0'))

    def test_garbage_clamps_to_zero(self):
        """Test unreadable values clamp to zero."""
        self.assertEqual(clamp_score('abc', 50), Decimal('0'))
        self.assertEqual(clamp_score('NaN', 50), Decimal('0'))


# =============================================================================
# THRESHOLDS
# =============================================================================

class ValidateThresholdsTest(SimpleTestCase):
    """Tests for threshold configuration validation."""

    def test_default_pairs_are_valid(self):
        """Test the standard A to D cut points are valid."""
        validation = validate_thresholds(DEFAULT_PAIRS)
        self.assertTrue(validation.is_valid)
        self.assertEqual(validation.error_code, '')
        threshold_set = validation.threshold_set
        self.assertEqual(threshold_set.labels, ('A', 'B+', 'B', 'C+', 'C', 'D+', 'D'))
        self.assertEqual(threshold_set.lowest, Decimal('50'))
        self.assertEqual(len(threshold_set), 7)

    def test_empty_list_rejected(self):
        """Test at least one threshold is required."""
        validation = validate_thresholds([])
        self.assertFalse(validation.is_valid)
        self.assertEqual(validation.error_code, ThresholdError.EMPTY)
        self.assertIsNone(validation.threshold_set)

    def test_order_violation_reports_first_pair(self):
        """Test a grade placed above another must not have a lower boundary."""
        pairs = [('A', 80), ('B+', 85), ('B', 70), ('C', 75)]
        validation = validate_thresholds(pairs)
        self.assertFalse(validation.is_valid)
        self.assertEqual(validation.error_code, ThresholdError.ORDER)
        self.assertEqual(validation.violation, ('A', 'B+'))

    def test_equal_boundaries_allowed(self):
        """Test neighbouring bands may share a boundary."""
        validation = validate_thresholds([('A', 70), ('B', 70), ('C', 60)])
        self.assertTrue(validation.is_valid)

    def test_non_numeric_value_rejected(self):
        """Test a boundary that is not a number is reported with its label."""
        validation = validate_thresholds([('A', 80), ('B', 'abc')])
        self.assertEqual(validation.error_code, ThresholdError.INVALID_VALUE)
        self.assertEqual(validation.label, 'B')

    def test_non_finite_value_rejected(self):
        """Test missing, NaN and infinite boundaries are rejected."""
        for value in (None, 'NaN', float('inf')):
            validation = validate_thresholds([('A', value)])
            self.assertEqual(validation.error_code, ThresholdError.INVALID_VALUE)

    def test_duplicate_label_rejected(self):
        """Test a label may appear only once."""
        validation = validate_thresholds([('A', 80), ('A', 70)])
        self.assertEqual(validation.error_code, ThresholdError.DUPLICATE_LABEL)
        self.assertEqual(validation.label, 'A')

    def test_fail_label_is_reserved(self):
        """Test the fail label cannot be configured as a band."""
        validation = validate_thresholds([('A', 80), ('F', 40)])
        self.assertEqual(validation.error_code, ThresholdError.DUPLICATE_LABEL)
        self.assertIn('fail band', validation.message)

    def test_boundaries_outside_range_trusted(self):
        """Test boundaries are not clamped to [0, 100]."""
        validation = validate_thresholds([('A', 120), ('B', -5)])
        self.assertTrue(validation.is_valid)
        self.assertEqual(validation.threshold_set.lowest, Decimal('-5'))

    def test_accepts_threshold_objects(self):
        """Test Threshold records are accepted as well as pairs."""
        validation = validate_thresholds([Threshold('A', Decimal('80'))])
        self.assertTrue(validation.is_valid)

    def test_custom_fail_label(self):
        """Test the fail label can be given per call."""
        validation = validate_thresholds([('A', 80)], fail_label='E')
        self.assertEqual(validation.threshold_set.all_labels, ('A', 'E'))

    @override_settings(GRADEBOOK_FAIL_LABEL='E')
    def test_fail_label_from_settings(self):
        """Test GRADEBOOK_FAIL_LABEL replaces the default fail label."""
        validation = validate_thresholds([('A', 80), ('F', 40)])
        self.assertTrue(validation.is_valid)
        self.assertEqual(validation.threshold_set.fail_label, 'E')


class ThresholdSetTest(SimpleTestCase):
    """Tests for the validated threshold set."""

    def test_from_pairs(self):
        """Test building a set from pairs."""
        threshold_set = ThresholdSet.from_pairs(DEFAULT_PAIRS)
        self.assertEqual(threshold_set.all_labels[-1], 'F')
        self.assertEqual(threshold_set.as_pairs()[0], ('A', Decimal('80')))

    def test_from_pairs_raises_for_invalid(self):
        """Test an invalid list cannot become a set."""
        with self.assertRaises(InvalidThresholdConfiguration) as ctx:
            ThresholdSet.from_pairs([('A', 50), ('B', 60)])
        self.assertEqual(ctx.exception.validation.error_code, ThresholdError.ORDER)

    def test_direct_construction_is_checked(self):
        """Test the constructor validates too."""
        with self.assertRaises(InvalidThresholdConfiguration):
            ThresholdSet(())

    def test_threshold_str(self):
        """Test string representation."""
        self.assertEqual(str(Threshold('A', Decimal('80'))), 'A (>= 80%)')


class ThresholdsFromMappingTest(SimpleTestCase):
    """Tests for reading legacy keyed threshold objects."""

    def test_legacy_keys(self):
        """Test keys such as b_plus map onto the ordered bands."""
        pairs = thresholds_from_mapping({'a': 85, 'b_plus': 78, 'D': 45})
        self.assertEqual(pairs[0], ('A', 85))
        self.assertEqual(pairs[1], ('B+', 78))
        self.assertEqual(pairs[-1], ('D', 45))
        # Untouched bands keep their defaults
        self.assertEqual(pairs[2], ('B', 70))

    def test_empty_mapping_gives_defaults(self):
        """Test no overrides gives the default list."""
        self.assertEqual(thresholds_from_mapping(None), DEFAULT_PAIRS)

    def test_unknown_keys_dropped(self):
        """Test unknown keys are ignored with a warning."""
        with self.assertLogs('gradebook.grading.thresholds', level='WARNING'):
            pairs = thresholds_from_mapping({'z': 10})
        self.assertEqual([label for label, _value in pairs], [p[0] for p in DEFAULT_PAIRS])

    def test_custom_defaults(self):
        """Test a custom band list can be overridden."""
        pairs = thresholds_from_mapping({'pass': 40}, defaults=[('Pass', 50)])
        self.assertEqual(pairs, [('Pass', 40)])


# =============================================================================
# AGGREGATION
# =============================================================================

class AggregateStudentTest(SimpleTestCase):
    """Tests for rolling one student's scores into a percentage."""

    def setUp(self):
        self.items = [
            ItemValue(id=1, max_score=Decimal('50'), title='Quiz 1', category='Quiz'),
            ItemValue(id=2, max_score=Decimal('50'), title='Exam', category='Exam'),
        ]

    def test_total_and_percentage(self):
        """Test 30 + 45 out of 100 gives 75.00%."""
        entries = [EntryValue(7, 1, '30'), EntryValue(7, 2, '45')]
        aggregate = aggregate_student(7, self.items, entries)
        self.assertEqual(aggregate.total_score, Decimal('75'))
        self.assertEqual(aggregate.max_possible, Decimal('100'))
        self.assertEqual(aggregate.percentage, Decimal('75.00'))
        self.assertEqual(aggregate.grade, '')

    def test_unfilled_counts_as_zero(self):
        """Test an unfilled score still counts against the maximum."""
        entries = [EntryValue(7, 1, '30'), EntryValue(7, 2, None)]
        aggregate = aggregate_student(7, self.items, entries)
        self.assertEqual(aggregate.total_score, Decimal('30'))
        self.assertEqual(aggregate.max_possible, Decimal('100'))
        self.assertEqual(aggregate.percentage, Decimal('30.00'))

    def test_no_scores(self):
        """Test a student without scores gets 0%."""
        aggregate = aggregate_student(7, self.items, [])
        self.assertEqual(aggregate.total_score, Decimal('0'))
        self.assertEqual(aggregate.percentage, Decimal('0'))

    def test_no_items(self):
        """Test a section without items gives 0% instead of dividing by zero."""
        aggregate = aggregate_student(7, [], [EntryValue(7, 1, '30')])
        self.assertEqual(aggregate.max_possible, Decimal('0'))
        self.assertEqual(aggregate.percentage, Decimal('0'))

    def test_items_without_positive_max_excluded(self):
        """Test items worth 0 or nothing are left out."""
        items = self.items + [
            ItemValue(id=3, max_score=Decimal('0')),
            ItemValue(id=4, max_score=None),
        ]
        entries = [EntryValue(7, 1, '30'), EntryValue(7, 3, '10'), EntryValue(7, 4, '5')]
        aggregate = aggregate_student(7, items, entries)
        self.assertEqual(aggregate.total_score, Decimal('30'))
        self.assertEqual(aggregate.max_possible, Decimal('100'))

    def test_scores_for_removed_items_ignored(self):
        """Test scores for items no longer in the section are ignored."""
        entries = [EntryValue(7, 1, '30'), EntryValue(7, 99, '50')]
        aggregate = aggregate_student(7, self.items, entries)
        self.assertEqual(aggregate.total_score, Decimal('30'))

    def test_other_students_ignored(self):
        """Test only the requested student's scores are summed."""
        entries = [EntryValue(7, 1, '30'), EntryValue(8, 2, '50')]
        aggregate = aggregate_student(7, self.items, entries)
        self.assertEqual(aggregate.total_score, Decimal('30'))

    def test_percentage_not_clamped(self):
        """Test totals above the maximum give more than 100%."""
        entries = [EntryValue(7, 1, '60'), EntryValue(7, 2, '50')]
        aggregate = aggregate_student(7, self.items, entries)
        self.assertEqual(aggregate.percentage, Decimal('110.00'))

    def test_huge_percentage_passes_through(self):
        """Test very large percentages are rounded without raising."""
        items = [ItemValue(id=1, max_score=Decimal('50'))]
        aggregate = aggregate_student(7, items, [EntryValue(7, 1, '1e30')])
        self.assertEqual(aggregate.percentage, Decimal('2e30'))
        self.assertEqual(aggregate.categories[0].normalized_score, Decimal('5'))

    def test_tiny_maximum(self):
        """Test a tiny positive maximum does not break rounding."""
        items = [ItemValue(id=1, max_score=Decimal('1e-26'))]
        aggregate = aggregate_student(7, items, [EntryValue(7, 1, '1')])
        self.assertEqual(aggregate.percentage, Decimal('1e28'))

    def test_percentage_rounded_half_up(self):
        """Test percentages round to 2 places with halves away from zero."""
        items = [ItemValue(id=1, max_score=Decimal('8'))]
        self.assertEqual(
            aggregate_student(7, items, [EntryValue(7, 1, '1')]).percentage,
            Decimal('12.50'),
        )
        # 0.001 / 16 = 0.00625%
        items = [ItemValue(id=1, max_score=Decimal('16'))]
        self.assertEqual(
            aggregate_student(7, items, [EntryValue(7, 1, '0.001')]).percentage,
            Decimal('0.01'),
        )
        items = [ItemValue(id=1, max_score=Decimal('3'))]
        self.assertEqual(
            aggregate_student(7, items, [EntryValue(7, 1, '1')]).percentage,
            Decimal('33.33'),
        )

    def test_unreadable_value_treated_as_unfilled(self):
        """Test bad stored values count as unfilled."""
        entries = [EntryValue(7, 1, 'abc'), EntryValue(7, 2, '20')]
        aggregate = aggregate_student(7, self.items, entries)
        self.assertEqual(aggregate.total_score, Decimal('20'))

    def test_idempotent(self):
        """Test aggregating twice gives the same result."""
        entries = [EntryValue(7, 1, '30'), EntryValue(7, 2, '45')]
        self.assertEqual(
            aggregate_student(7, self.items, entries),
            aggregate_student(7, self.items, entries),
        )

    def test_category_breakdown(self):
        """Test per-category percentages and 0-5 scores."""
        entries = [EntryValue(7, 1, '30'), EntryValue(7, 2, '45')]
        categories = {
            c.name: c for c in aggregate_student(7, self.items, entries).categories
        }
        self.assertEqual(set(categories), {'Quiz', 'Exam'})
        self.assertEqual(categories['Quiz'].percentage, Decimal('60.00'))
        self.assertEqual(categories['Quiz'].normalized_score, Decimal('3.00'))
        self.assertEqual(categories['Exam'].percentage, Decimal('90.00'))
        self.assertEqual(categories['Exam'].normalized_score, Decimal('4.50'))

    def test_uncategorized_items_grouped(self):
        """Test items without a category fall under the default name."""
        items = [ItemValue(id=1, max_score=Decimal('10'))]
        aggregate = aggregate_student(7, items, [EntryValue(7, 1, '5')])
        self.assertEqual(aggregate.categories[0].name, 'Other')


class AggregateSectionTest(SimpleTestCase):
    """Tests for aggregating a whole roster."""

    def test_roster_order_kept(self):
        """Test results follow the roster order, including students without scores."""
        items = [ItemValue(id=1, max_score=Decimal('100'))]
        entries = [EntryValue(2, 1, '90'), EntryValue(1, 1, '40')]
        aggregates = aggregate_section([2, 3, 1], items, entries)
        self.assertEqual([a.student_id for a in aggregates], [2, 3, 1])
        self.assertEqual([a.percentage for a in aggregates],
                         [Decimal('90'), Decimal('0'), Decimal('40')])


class AggregationHelpersTest(SimpleTestCase):
    """Tests for aggregation helpers."""

    def test_participating_items(self):
        """Test only items with a positive, finite maximum take part."""
        items = [
            ItemValue(id=1, max_score='20'),
            ItemValue(id=2, max_score=-1),
            ItemValue(id=3, max_score='NaN'),
        ]
        result = participating_items(items)
        self.assertEqual([item.id for item in result], [1])
        self.assertEqual(result[0].max_score, Decimal('20'))

    def test_normalize_to_scale(self):
        """Test percentages map onto the bounded display scale."""
        self.assertEqual(normalize_to_scale(Decimal('100')), Decimal('5'))
        self.assertEqual(normalize_to_scale(Decimal('150')), Decimal('5'))
        self.assertEqual(normalize_to_scale(Decimal('50'), scale_max=10), Decimal('5'))


# =============================================================================
# CLASSIFICATION
# =============================================================================

class ClassifyTest(SimpleTestCase):
    """Tests for mapping a percentage to a grade label."""

    def setUp(self):
        self.threshold_set = ThresholdSet.from_pairs(DEFAULT_PAIRS)

    def test_boundary_gets_higher_grade(self):
        """Test a percentage on a boundary gets the higher grade."""
        self.assertEqual(classify(Decimal('80'), self.threshold_set), 'A')
        self.assertEqual(classify(Decimal('79.99'), self.threshold_set), 'B+')
        self.assertEqual(classify(Decimal('75.00'), self.threshold_set), 'B+')
        self.assertEqual(classify(Decimal('50'), self.threshold_set), 'D')

    def test_below_floor_fails(self):
        """Test anything under the lowest boundary is the fail label."""
        fail_label = self.threshold_set.fail_label
        self.assertEqual(classify(Decimal('49.99'), self.threshold_set), fail_label)
        self.assertEqual(classify(Decimal('0'), self.threshold_set), fail_label)
        self.assertEqual(classify(Decimal('-10'), self.threshold_set), fail_label)

    def test_above_hundred(self):
        """Test unclamped percentages get the top grade."""
        self.assertEqual(classify(Decimal('110'), self.threshold_set), 'A')

    def test_non_numeric_percentage_fails(self):
        """Test a missing or NaN percentage is the fail label."""
        fail_label = self.threshold_set.fail_label
        self.assertEqual(classify(None, self.threshold_set), fail_label)
        self.assertEqual(classify('NaN', self.threshold_set), fail_label)

    def test_accepts_plain_numbers(self):
        """Test int and float percentages."""
        self.assertEqual(classify(72, self.threshold_set), 'B')
        self.assertEqual(classify(64.5, self.threshold_set), 'C')

    def test_every_band_reachable(self):
        """Test each band and the fail band can be assigned."""
        labels = [classify(value, self.threshold_set) for value in (85, 77, 71, 66, 61, 56, 51, 10)]
        self.assertEqual(labels, list(self.threshold_set.all_labels))

    def test_equal_boundaries_pick_first(self):
        """Test bands sharing a boundary resolve to the higher one."""
        threshold_set = ThresholdSet.from_pairs([('A', 70), ('B', 70)])
        self.assertEqual(classify(70, threshold_set), 'A')

    def test_requires_threshold_set(self):
        """Test classifying with an unvalidated configuration raises."""
        with self.assertRaises(InvalidThresholdConfiguration):
            classify(Decimal('90'), DEFAULT_PAIRS)
        with self.assertRaises(InvalidThresholdConfiguration):
            classify(Decimal('90'), None)

    def test_classify_aggregate(self):
        """Test the grade is set on a copy of the aggregate."""
        aggregate = StudentAggregate(
            student_id=1,
            total_score=Decimal('75'),
            max_possible=Decimal('100'),
            percentage=Decimal('75.00'),
        )
        graded = classify_aggregate(aggregate, self.threshold_set)
        self.assertEqual(graded.grade, 'B+')
        self.assertEqual(aggregate.grade, '')
        self.assertEqual(graded.percentage, aggregate.percentage)

    def test_classify_all(self):
        """Test every aggregate in a roster is graded."""
        aggregates = [
            StudentAggregate(1, Decimal('75'), Decimal('100'), Decimal('75.00')),
            StudentAggregate(2, Decimal('0'), Decimal('100'), Decimal('0.00')),
        ]
        grades = [a.grade for a in classify_all(aggregates, self.threshold_set)]
        self.assertEqual(grades, ['B+', self.threshold_set.fail_label])

    def test_idempotent(self):
        """Test classifying twice gives the same grades."""
        aggregates = [
            StudentAggregate(i, Decimal('0'), Decimal('100'), Decimal(p))
            for i, p in enumerate(['80', '79.99', '50', '12'])
        ]
        first = classify_all(aggregates, self.threshold_set)
        self.assertEqual(first, classify_all(aggregates, self.threshold_set))
        self.assertEqual(classify_all(first, self.threshold_set), first)
        self.assertEqual(
            classify(Decimal('79.99'), self.threshold_set),
            classify(Decimal('79.99'), self.threshold_set),
        )


class GradePointTest(SimpleTestCase):
    """Tests for the label <-> grade point table."""

    def test_grade_point(self):
        """Test labels map to their grade points."""
        self.assertEqual(grade_point('A'), Decimal('4'))
        self.assertEqual(grade_point('B+'), Decimal('3.5'))
        self.assertEqual(grade_point('D'), Decimal('1'))
        self.assertEqual(grade_point('F'), Decimal('0'))
        self.assertIsNone(grade_point('A1'))

    def test_label_for_point(self):
        """Test grade points map back to their labels."""
        self.assertEqual(label_for_point(4), 'A')
        self.assertEqual(label_for_point('3.5'), 'B+')
        self.assertEqual(label_for_point(Decimal('2.0')), 'C')
        self.assertEqual(label_for_point(0), 'F')
        self.assertIsNone(label_for_point(3.7))
        self.assertIsNone(label_for_point('x'))

    @override_settings(GRADEBOOK_FAIL_LABEL='E')
    def test_custom_fail_label(self):
        """Test the zero point follows GRADEBOOK_FAIL_LABEL."""
        self.assertEqual(grade_point('E'), Decimal('0'))
        self.assertEqual(label_for_point(0), 'E')


class NormalizeGradeTest(SimpleTestCase):
    """Tests for reading stored grades back to canonical labels."""

    def test_canonical_labels(self):
        """Test labels in any case are recognised."""
        self.assertEqual(normalize_grade('A'), 'A')
        self.assertEqual(normalize_grade('b+'), 'B+')
        self.assertEqual(normalize_grade(' c '), 'C')

    def test_aliases(self):
        """Test legacy aliases."""
        self.assertEqual(normalize_grade('A+'), 'A')
        self.assertEqual(normalize_grade('a+'), 'A')

    def test_grade_points(self):
        """Test grade points stored in place of labels."""
        self.assertEqual(normalize_grade('4.0'), 'A')
        self.assertEqual(normalize_grade('3.5'), 'B+')
        self.assertEqual(normalize_grade(2), 'C')

    def test_empty_is_fail(self):
        """Test empty grades read as the fail label."""
        self.assertEqual(normalize_grade(''), 'F')
        self.assertEqual(normalize_grade(None), 'F')
        self.assertEqual(normalize_grade('f'), 'F')

    def test_unknown_passed_through(self):
        """Test unknown grades are kept as entered."""
        self.assertEqual(normalize_grade('Distinction'), 'Distinction')
        self.assertEqual(normalize_grade('A1'), 'A1')


# =============================================================================
# DISTRIBUTION
# =============================================================================

class SummarizeTest(SimpleTestCase):
    """Tests for the section grade distribution."""

    def setUp(self):
        self.threshold_set = ThresholdSet.from_pairs(DEFAULT_PAIRS)
        self.fail_label = self.threshold_set.fail_label

    def test_section_end_to_end(self):
        """Test aggregate, classify and summarize for a two-student section."""
        items = [
            ItemValue(id='quiz', max_score=Decimal('50')),
            ItemValue(id='exam', max_score=Decimal('50')),
        ]
        entries = [
            EntryValue(1, 'quiz', '30'),
            EntryValue(1, 'exam', '45'),
        ]
        aggregates = classify_all(aggregate_section([1, 2], items, entries), self.threshold_set)
        self.assertEqual([a.grade for a in aggregates], ['B+', self.fail_label])

        distribution = summarize(aggregates, self.threshold_set)
        self.assertEqual(distribution.student_count, 2)
        self.assertEqual(distribution.average_percentage, Decimal('37.50'))
        self.assertEqual(distribution.pass_count, 1)
        self.assertEqual(distribution.fail_count, 1)
        self.assertEqual(distribution.counts_by_grade['B+'], 1)
        self.assertEqual(distribution.counts_by_grade[self.fail_label], 1)
        self.assertEqual(distribution.counts_by_grade['A'], 0)
        self.assertEqual(list(distribution.counts_by_grade), list(self.threshold_set.all_labels))
        self.assertEqual(distribution.percentages_by_grade['B+'], Decimal('50.00'))

    def test_counts_add_up(self):
        """Test the per-grade counts sum to the student count."""
        aggregates = classify_all([
            StudentAggregate(i, Decimal('0'), Decimal('100'), Decimal(p))
            for i, p in enumerate(['95', '81', '72', '66', '40', '12'])
        ], self.threshold_set)
        distribution = summarize(aggregates, self.threshold_set)
        self.assertEqual(sum(distribution.counts_by_grade.values()), 6)
        self.assertEqual(distribution.pass_count + distribution.fail_count, 6)
        self.assertEqual(distribution.counts_by_grade['A'], 2)
        self.assertEqual(distribution.pass_count, 4)

    def test_empty_section(self):
        """Test an empty roster gives zeros for every band."""
        distribution = summarize([], self.threshold_set)
        self.assertEqual(distribution.student_count, 0)
        self.assertEqual(distribution.average_percentage, Decimal('0'))
        self.assertEqual(distribution.pass_count, 0)
        self.assertEqual(distribution.fail_count, 0)
        self.assertTrue(all(count == 0 for count in distribution.counts_by_grade.values()))
        self.assertEqual(len(distribution.counts_by_grade), 8)
        self.assertTrue(all(p == 0 for p in distribution.percentages_by_grade.values()))

    def test_average_rounded(self):
        """Test the average is rounded to 2 places."""
        aggregates = [
            StudentAggregate(i, Decimal('0'), Decimal('100'), Decimal(p), grade='A')
            for i, p in enumerate(['100', '100', '0'])
        ]
        distribution = summarize(aggregates, self.threshold_set)
        self.assertEqual(distribution.average_percentage, Decimal('66.67'))

    def test_grades_are_not_recomputed(self):
        """Test stored grades are counted as they are."""
        aggregates = [StudentAggregate(1, Decimal('0'), Decimal('100'), Decimal('10'), grade='A')]
        distribution = summarize(aggregates, self.threshold_set)
        self.assertEqual(distribution.counts_by_grade['A'], 1)
        self.assertEqual(distribution.pass_count, 1)

    def test_unknown_grades_kept(self):
        """Test grades outside the set get their own key and do not pass."""
        aggregates = [StudentAggregate(1, Decimal('0'), Decimal('100'), Decimal('90'), grade='A1')]
        distribution = summarize(aggregates, self.threshold_set)
        self.assertEqual(distribution.counts_by_grade['A1'], 1)
        self.assertEqual(distribution.fail_count, 1)

    def test_as_dict(self):
        """Test dictionary representation."""
        data = summarize([], self.threshold_set).as_dict()
        self.assertEqual(
            set(data),
            {'student_count', 'average_percentage', 'pass_count', 'fail_count',
             'counts_by_grade', 'percentages_by_grade'},
        )


# =============================================================================
# SERVICES
# =============================================================================

class GradebookServiceTestCase(TestCase):
    """Base test case with a two-item section."""

    def setUp(self):
        self.quiz = AssessmentItem.objects.create(
            section_id=SECTION,
            title='Quiz 1',
            category='Quiz',
            max_score=Decimal('50'),
            order=1,
        )
        self.exam = AssessmentItem.objects.create(
            section_id=SECTION,
            title='Final Exam',
            category='Exam',
            max_score=Decimal('50'),
            order=2,
        )


class SaveItemScoresTest(GradebookServiceTestCase):
    """Tests for the all-or-nothing score save."""

    def test_saves_valid_batch(self):
        """Test valid scores are created and empty cells skipped."""
        result = save_item_scores(self.quiz, {1: '30', 2: '45.5', 3: ''})
        self.assertTrue(result.saved)
        self.assertEqual(result.created, 2)
        self.assertEqual(
            ScoreEntry.objects.get(item=self.quiz, student_id=2).raw_value,
            Decimal('45.50'),
        )
        self.assertFalse(ScoreEntry.objects.filter(item=self.quiz, student_id=3).exists())

    def test_invalid_cell_rejects_whole_batch(self):
        """Test one invalid cell means nothing is written."""
        result = save_item_scores(self.quiz, {1: '30', 2: '55'})
        self.assertFalse(result.saved)
        self.assertEqual(result.validation.invalid_student_ids, (2,))
        self.assertEqual(result.validation.results[2].error_code, ScoreError.ABOVE_MAX)
        self.assertEqual(ScoreEntry.objects.count(), 0)

    def test_rejected_batch_keeps_previous_scores(self):
        """Test a rejected batch leaves saved scores untouched."""
        save_item_scores(self.quiz, {1: '30'})
        save_item_scores(self.quiz, {1: '40', 2: '-1'})
        self.assertEqual(
            ScoreEntry.objects.get(item=self.quiz, student_id=1).raw_value,
            Decimal('30'),
        )

    def test_update_and_clear(self):
        """Test edited scores are updated and cleared cells deleted."""
        save_item_scores(self.quiz, {1: '30', 2: '20', 3: '10'})
        result = save_item_scores(
            self.quiz,
            {'1': '35', '2': '', '3': '10'},
            last_saved={'1': '30', '2': '20', '3': '10'},
        )
        self.assertTrue(result.saved)
        self.assertEqual(result.updated, 1)
        self.assertEqual(result.deleted, 1)
        self.assertEqual(result.created, 0)
        self.assertEqual(result.validation.changed_count, 2)
        self.assertEqual(
            ScoreEntry.objects.get(item=self.quiz, student_id=1).raw_value,
            Decimal('35'),
        )
        self.assertFalse(ScoreEntry.objects.filter(item=self.quiz, student_id=2).exists())

    def test_model_clean_uses_item_maximum(self):
        """Test model validation checks the item's maximum."""
        entry = ScoreEntry(item=self.quiz, student_id=1, raw_value=Decimal('51'))
        with self.assertRaises(ValidationError) as ctx:
            entry.full_clean()
        self.assertIn('raw_value', ctx.exception.message_dict)


class ThresholdStorageTest(GradebookServiceTestCase):
    """Tests for saving and loading a section's thresholds."""

    def test_defaults_without_saved_thresholds(self):
        """Test the configured defaults are used when none are saved."""
        pairs = load_threshold_pairs(SECTION)
        self.assertEqual(pairs[0], ('A', Decimal('80')))
        self.assertEqual(len(pairs), 7)

    def test_save_and_load(self):
        """Test saved thresholds load back in order."""
        validation = save_thresholds(SECTION, [('A', 85), ('B', 70), ('C', 55)])
        self.assertTrue(validation.is_valid)
        self.assertEqual(
            load_threshold_pairs(SECTION),
            [('A', Decimal('85')), ('B', Decimal('70')), ('C', Decimal('55'))],
        )

    def test_save_replaces_previous(self):
        """Test saving replaces the whole set."""
        save_thresholds(SECTION, [('A', 85), ('B', 70)])
        save_thresholds(SECTION, [('Pass', 40)])
        self.assertEqual(GradeThreshold.objects.filter(section_id=SECTION).count(), 1)

    def test_invalid_thresholds_not_saved(self):
        """Test an out-of-order set is rejected and the old one kept."""
        save_thresholds(SECTION, [('A', 85), ('B', 70)])
        validation = save_thresholds(SECTION, [('A', 60), ('B', 70)])
        self.assertEqual(validation.error_code, ThresholdError.ORDER)
        self.assertEqual(validation.violation, ('A', 'B'))
        self.assertEqual(load_threshold_pairs(SECTION)[0], ('A', Decimal('85')))

    def test_boundaries_rounded_before_validation(self):
        """Test the validated set matches what is stored."""
        validation = save_thresholds(SECTION, [('A', '80.125'), ('B', Decimal('80.124'))])
        self.assertTrue(validation.is_valid)
        self.assertEqual(
            validation.threshold_set.as_pairs(),
            [('A', Decimal('80.13')), ('B', Decimal('80.12'))],
        )
        self.assertEqual(load_threshold_pairs(SECTION), validation.threshold_set.as_pairs())

    def test_rounding_can_change_order(self):
        """Test boundaries equal after rounding are still in order."""
        validation = save_thresholds(SECTION, [('A', '70.001'), ('B', '70.004')])
        self.assertTrue(validation.is_valid)
        self.assertEqual(validation.threshold_set.lowest, Decimal('70.00'))

    def test_boundary_too_large_for_storage(self):
        """Test boundaries the column cannot hold are reported, not saved."""
        for value in (10000, '-10000', '9999.999', '1e30'):
            validation = save_thresholds(SECTION, [('A', value)])
            self.assertEqual(validation.error_code, ThresholdError.INVALID_VALUE)
            self.assertEqual(validation.label, 'A')
        self.assertFalse(GradeThreshold.objects.exists())

    def test_non_numeric_boundary_reported(self):
        """Test non-numeric boundaries are reported by validation."""
        validation = save_thresholds(SECTION, [('A', 'abc')])
        self.assertEqual(validation.error_code, ThresholdError.INVALID_VALUE)
        self.assertFalse(GradeThreshold.objects.exists())


class RecomputeSectionTest(GradebookServiceTestCase):
    """Tests for recomputing and storing section results."""

    def test_recompute_stores_results(self):
        """Test totals, percentages, grades and categories are stored."""
        save_item_scores(self.quiz, {1: '30', 2: '10'})
        save_item_scores(self.exam, {1: '45'})

        result = recompute_section(SECTION)
        self.assertTrue(result.ok)
        self.assertEqual([a.student_id for a in result.aggregates], [1, 2])

        first = StudentGradeResult.objects.get(section_id=SECTION, student_id=1)
        self.assertEqual(first.total_score, Decimal('75'))
        self.assertEqual(first.percentage, Decimal('75.00'))
        self.assertEqual(first.grade, 'B+')
        self.assertEqual(first.category_scores, {'Quiz': 60.0, 'Exam': 90.0})

        second = StudentGradeResult.objects.get(section_id=SECTION, student_id=2)
        self.assertEqual(second.percentage, Decimal('10.00'))
        self.assertEqual(second.grade, 'F')

        self.assertEqual(result.distribution.average_percentage, Decimal('42.50'))
        self.assertEqual(result.distribution.pass_count, 1)

    def test_explicit_roster_includes_students_without_scores(self):
        """Test students on the roster without scores get 0%."""
        save_item_scores(self.quiz, {1: '50'})
        result = recompute_section(SECTION, student_ids=[1, 5])
        self.assertEqual(result.distribution.student_count, 2)
        self.assertEqual(
            StudentGradeResult.objects.get(section_id=SECTION, student_id=5).percentage,
            Decimal('0'),
        )

    def test_recompute_is_repeatable(self):
        """Test recomputing overwrites rather than duplicates results."""
        save_item_scores(self.quiz, {1: '30'})
        recompute_section(SECTION)
        recompute_section(SECTION)
        self.assertEqual(StudentGradeResult.objects.filter(section_id=SECTION).count(), 1)

    def test_recompute_uses_saved_thresholds(self):
        """Test the section's own thresholds are used."""
        save_thresholds(SECTION, [('Pass', 25)])
        save_item_scores(self.quiz, {1: '30'})
        recompute_section(SECTION)
        self.assertEqual(
            StudentGradeResult.objects.get(section_id=SECTION, student_id=1).grade,
            'Pass',
        )

    def test_removed_student_result_deleted(self):
        """Test results for students off the roster are removed."""
        save_item_scores(self.quiz, {1: '30', 2: '20'})
        recompute_section(SECTION)
        recompute_section(SECTION, student_ids=[1])
        self.assertFalse(
            StudentGradeResult.objects.filter(section_id=SECTION, student_id=2).exists()
        )

    def test_deleted_item_no_longer_counts(self):
        """Test deleting an item removes it from the totals."""
        save_item_scores(self.quiz, {1: '30'})
        save_item_scores(self.exam, {1: '50'})
        self.exam.delete()
        recompute_section(SECTION)
        self.assertEqual(
            StudentGradeResult.objects.get(section_id=SECTION, student_id=1).percentage,
            Decimal('60.00'),
        )

    def test_invalid_thresholds_block_recompute(self):
        """Test nothing is computed or stored with out-of-order thresholds."""
        # Out-of-order rows written directly, bypassing save_thresholds
        GradeThreshold.objects.create(section_id=SECTION, label='A', min_percentage=50, position=0)
        GradeThreshold.objects.create(section_id=SECTION, label='B', min_percentage=70, position=1)
        save_item_scores(self.quiz, {1: '30'})

        result = recompute_section(SECTION)
        self.assertFalse(result.ok)
        self.assertEqual(result.threshold_validation.violation, ('A', 'B'))
        self.assertEqual(result.aggregates, [])
        self.assertFalse(StudentGradeResult.objects.exists())
        self.assertFalse(result.as_dict()['success'])

    def test_as_dict_is_json_friendly(self):
        """Test the summary holds Decimals as strings."""
        save_item_scores(self.quiz, {1: '30'})
        data = recompute_section(SECTION).as_dict()
        self.assertTrue(data['success'])
        self.assertEqual(data['students'][0]['percentage'], '30.00')
        self.assertEqual(data['distribution']['average_percentage'], '30.00')


class SectionDistributionTest(GradebookServiceTestCase):
    """Tests for summarizing stored results."""

    def test_distribution_from_stored_results(self):
        """Test the distribution is built from stored grades."""
        save_item_scores(self.quiz, {1: '50', 2: '5'})
        save_item_scores(self.exam, {1: '50', 2: '5'})
        recompute_section(SECTION)

        distribution = section_distribution(SECTION)
        self.assertEqual(distribution.student_count, 2)
        self.assertEqual(distribution.counts_by_grade['A'], 1)
        self.assertEqual(distribution.counts_by_grade['F'], 1)
        self.assertEqual(distribution.average_percentage, Decimal('55.00'))

    def test_empty_section(self):
        """Test a section without results gives zeros."""
        distribution = section_distribution(SECTION)
        self.assertEqual(distribution.student_count, 0)
        self.assertEqual(distribution.pass_count, 0)


# =============================================================================
# FORMS
# =============================================================================

class ScoreFormTest(SimpleTestCase):
    """Tests for ScoreForm."""

    def _form(self, points, max_score=Decimal('50')):
        return ScoreForm(
            data={'student_id': 1, 'item_id': str(uuid.uuid4()), 'points': points},
            max_score=max_score,
        )

    def test_valid_score(self):
        """Test valid score."""
        form = self._form('45')
        self.assertTrue(form.is_valid())
        self.assertEqual(form.cleaned_data['points'], Decimal('45'))
        self.assertTrue(form.validation.is_valid)

    def test_decimal_score_valid(self):
        """Test decimal scores are accepted."""
        form = self._form('42.5')
        self.assertTrue(form.is_valid())
        self.assertEqual(form.cleaned_data['points'], Decimal('42.5'))

    def test_empty_score_is_unfilled(self):
        """Test an empty cell cleans to None."""
        form = self._form('')
        self.assertTrue(form.is_valid())
        self.assertIsNone(form.cleaned_data['points'])
        self.assertTrue(form.validation.is_unfilled)

    def test_score_exceeds_max_invalid(self):
        """Test score above max fails."""
        form = self._form('51')
        self.assertFalse(form.is_valid())
        self.assertTrue(form.has_error('points', ScoreError.ABOVE_MAX))

    def test_negative_score_invalid(self):
        """Test negative score fails."""
        form = self._form('-1')
        self.assertFalse(form.is_valid())
        self.assertTrue(form.has_error('points', ScoreError.NEGATIVE))

    def test_text_invalid(self):
        """Test text fails."""
        form = self._form('ten')
        self.assertFalse(form.is_valid())
        self.assertTrue(form.has_error('points', ScoreError.NOT_A_NUMBER))


class GradeThresholdFormTest(SimpleTestCase):
    """Tests for GradeThresholdForm."""

    def _data(self, *values):
        return {f'threshold_{i}': value for i, value in enumerate(values)}

    def test_default_fields(self):
        """Test one field per default band."""
        form = GradeThresholdForm()
        self.assertEqual(len(form.fields), 7)
        self.assertEqual(form.fields['threshold_0'].label, 'A')
        self.assertEqual(form.fields['threshold_0'].initial, 80)

    def test_valid_form(self):
        """Test valid form data."""
        form = GradeThresholdForm(data=self._data('85', '78', '70', '65', '60', '55', '45'))
        self.assertTrue(form.is_valid())
        self.assertEqual(form.threshold_set.lowest, Decimal('45'))
        self.assertEqual(form.get_pairs()[1], ('B+', Decimal('78')))

    def test_order_violation_invalid(self):
        """Test a higher grade with a lower boundary fails."""
        form = GradeThresholdForm(data=self._data('70', '78', '70', '65', '60', '55', '45'))
        self.assertFalse(form.is_valid())
        self.assertTrue(form.has_error('__all__', ThresholdError.ORDER))
        self.assertIn('Grade A must not be lower than grade B+.', form.non_field_errors())

    def test_missing_value_invalid(self):
        """Test every band needs a value."""
        form = GradeThresholdForm(data=self._data('85', '78'))
        self.assertFalse(form.is_valid())
        self.assertIn('threshold_2', form.errors)

    def test_custom_bands(self):
        """Test the form can edit a custom band list."""
        form = GradeThresholdForm(
            data=self._data('60', '40'),
            thresholds=[('Merit', 70), ('Pass', 50)],
        )
        self.assertTrue(form.is_valid())
        self.assertEqual(form.get_pairs(), [('Merit', Decimal('60')), ('Pass', Decimal('40'))])


# =============================================================================
# MANAGEMENT COMMANDS AND TASKS
# =============================================================================

class SeedGradeThresholdsCommandTest(TestCase):
    """Tests for the seed_grade_thresholds command."""

    def test_seeds_defaults(self):
        """Test the default bands are stored."""
        out = StringIO()
        call_command('seed_grade_thresholds', section=SECTION, stdout=out)
        self.assertEqual(GradeThreshold.objects.filter(section_id=SECTION).count(), 7)
        self.assertIn(f'Seeded 7 grade thresholds for section {SECTION}', out.getvalue())

    def test_overrides(self):
        """Test --set overrides with legacy keys."""
        call_command(
            'seed_grade_thresholds', section=SECTION,
            set=['a=85', 'b_plus=78'], stdout=StringIO(),
        )
        pairs = load_threshold_pairs(SECTION)
        self.assertEqual(pairs[0], ('A', Decimal('85')))
        self.assertEqual(pairs[1], ('B+', Decimal('78')))

    def test_existing_thresholds_kept_without_force(self):
        """Test saved thresholds are not overwritten without --force."""
        call_command('seed_grade_thresholds', section=SECTION, stdout=StringIO())
        out = StringIO()
        call_command('seed_grade_thresholds', section=SECTION, set=['a=90'], stdout=out)
        self.assertIn('Use --force to overwrite', out.getvalue())
        self.assertEqual(load_threshold_pairs(SECTION)[0], ('A', Decimal('80')))

    def test_force_overwrites(self):
        """Test --force replaces saved thresholds."""
        call_command('seed_grade_thresholds', section=SECTION, stdout=StringIO())
        call_command(
            'seed_grade_thresholds', section=SECTION, set=['a=90'], force=True,
            stdout=StringIO(),
        )
        self.assertEqual(load_threshold_pairs(SECTION)[0], ('A', Decimal('90')))

    def test_invalid_override_raises(self):
        """Test an override that breaks the order is rejected."""
        with self.assertRaises(CommandError):
            call_command(
                'seed_grade_thresholds', section=SECTION, set=['d=90'], stdout=StringIO(),
            )
        self.assertFalse(GradeThreshold.objects.exists())

    def test_malformed_override_raises(self):
        """Test --set needs LABEL=PERCENT."""
        with self.assertRaises(CommandError):
            call_command('seed_grade_thresholds', section=SECTION, set=['a'], stdout=StringIO())


class RecomputeGradesTestCase(TestCase):
    """Base test case with one scored item."""

    def setUp(self):
        self.item = AssessmentItem.objects.create(
            section_id=SECTION,
            title='Test 1',
            max_score=Decimal('20'),
        )
        save_item_scores(self.item, {1: '17', 2: '8'})


class RecomputeGradesCommandTest(RecomputeGradesTestCase):
    """Tests for the recompute_grades command."""

    def test_recompute(self):
        """Test results are stored and reported."""
        out = StringIO()
        call_command('recompute_grades', section=SECTION, stdout=out)
        output = out.getvalue()
        self.assertIn('Student 1: 17.00/20.00 (85.00%) A', output)
        self.assertIn(f'Recomputed 2 students in section {SECTION}', output)
        self.assertIn('1 passing', output)
        self.assertEqual(StudentGradeResult.objects.filter(section_id=SECTION).count(), 2)

    def test_explicit_students(self):
        """Test --student limits the roster."""
        call_command('recompute_grades', section=SECTION, student=[1], stdout=StringIO())
        self.assertEqual(
            list(StudentGradeResult.objects.values_list('student_id', flat=True)), [1]
        )

    def test_invalid_thresholds_raise(self):
        """Test out-of-order thresholds stop the command."""
        GradeThreshold.objects.create(section_id=SECTION, label='A', min_percentage=10, position=0)
        GradeThreshold.objects.create(section_id=SECTION, label='B', min_percentage=20, position=1)
        with self.assertRaises(CommandError):
            call_command('recompute_grades', section=SECTION, stdout=StringIO())
        self.assertFalse(StudentGradeResult.objects.exists())


class RecomputeSectionGradesTaskTest(RecomputeGradesTestCase):
    """Tests for the recompute_section_grades task."""

    def test_task_returns_summary(self):
        """Test the task stores results and returns a summary."""
        summary = recompute_section_grades(SECTION)
        self.assertTrue(summary['success'])
        self.assertEqual(summary['distribution']['student_count'], 2)
        self.assertEqual(summary['distribution']['counts_by_grade']['A'], 1)
        self.assertEqual(StudentGradeResult.objects.filter(section_id=SECTION).count(), 2)

    def test_task_reports_invalid_thresholds(self):
        """Test a blocked recompute is logged and reported."""
        GradeThreshold.objects.create(section_id=SECTION, label='A', min_percentage=10, position=0)
        GradeThreshold.objects.create(section_id=SECTION, label='B', min_percentage=20, position=1)
        with self.assertLogs('gradebook.tasks', level='ERROR'):
            summary = recompute_section_grades(SECTION)
        self.assertFalse(summary['success'])
        self.assertEqual(summary['violation'], ['A', 'B'])
