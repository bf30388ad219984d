import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from .grading import AssessmentItem as ItemValue
from .grading import ScoreEntry as EntryValue
from .grading import Threshold, validate_score


class AssessmentItem(models.Model):
    """
    A scored item within a section (e.g., Quiz 1, Mid-term Test, Final Exam).
    Sections themselves are managed by the roster app and referenced by id.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    section_id = models.PositiveIntegerField(
        db_index=True,
        help_text='Section (teaching assignment) this item belongs to'
    )
    title = models.CharField(
        max_length=200,
        help_text='Display name (e.g., Quiz 1)'
    )
    category = models.CharField(
        max_length=100,
        blank=True,
        help_text='Grade category used for the per-category breakdown (e.g., Midterm)'
    )
    max_score = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        help_text='Maximum score; items with 0 are left out of aggregation'
    )
    order = models.PositiveSmallIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.title} ({self.max_score})"

    def to_value(self):
        """Plain value object consumed by the grading engine."""
        return ItemValue(
            id=self.pk,
            max_score=self.max_score,
            title=self.title,
            category=self.category,
        )

    class Meta:
        db_table = 'assessment_item'
        ordering = ['section_id', 'order', 'created_at']
        verbose_name = 'Assessment Item'
        verbose_name_plural = 'Assessment Items'


class ScoreEntry(models.Model):
    """A student's raw score for one item. A null raw_value means unfilled."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    item = models.ForeignKey(
        AssessmentItem,
        on_delete=models.CASCADE,
        related_name='scores',
        db_index=True
    )
    student_id = models.PositiveIntegerField(db_index=True)
    raw_value = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0'))],
        help_text='Points earned; empty until entered'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Student {self.student_id} - {self.item.title}: {self.raw_value}/{self.item.max_score}"

    def clean(self):
        """Validate that the score is within the item's range"""
        result = validate_score(self.raw_value, self.item.max_score)
        if result.is_invalid:
            raise ValidationError({'raw_value': result.message})

    def to_value(self):
        return EntryValue(
            student_id=self.student_id,
            item_id=self.item_id,
            raw_value=self.raw_value,
        )

    class Meta:
        db_table = 'score_entry'
        ordering = ['item', 'student_id']
        verbose_name = 'Score Entry'
        verbose_name_plural = 'Score Entries'
        unique_together = ['item', 'student_id']


class GradeThreshold(models.Model):
    """
    One grade band's lower boundary for a section (e.g., B+ from 75%).
    Rows are read in ascending position, highest band first.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    section_id = models.PositiveIntegerField(db_index=True)
    label = models.CharField(
        max_length=10,
        help_text='Grade label (e.g., A, B+)'
    )
    min_percentage = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        help_text='Minimum percentage for this grade (inclusive)'
    )
    position = models.PositiveSmallIntegerField(
        default=0,
        help_text='0 for the highest band'
    )
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.label} (>= {self.min_percentage}%)"

    def to_value(self):
        return Threshold(label=self.label, min_percentage=self.min_percentage)

    class Meta:
        db_table = 'grade_threshold'
        ordering = ['section_id', 'position']
        verbose_name = 'Grade Threshold'
        verbose_name_plural = 'Grade Thresholds'
        unique_together = ['section_id', 'label']


class StudentGradeResult(models.Model):
    """
    Computed result for a student in a section.
    Overwritten on every recompute, never patched incrementally.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    section_id = models.PositiveIntegerField(db_index=True)
    student_id = models.PositiveIntegerField(db_index=True)
    total_score = models.DecimalField(max_digits=9, decimal_places=2, default=0)
    max_possible = models.DecimalField(max_digits=9, decimal_places=2, default=0)
    percentage = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        default=0,
        help_text='Unclamped; may exceed 100 when saved scores exceed item maximums'
    )
    grade = models.CharField(max_length=10, blank=True)
    category_scores = models.JSONField(default=dict, blank=True)
    computed_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Student {self.student_id} (section {self.section_id}): {self.percentage}% {self.grade}"

    class Meta:
        db_table = 'student_grade_result'
        ordering = ['section_id', '-percentage', 'student_id']
        verbose_name = 'Student Grade Result'
        verbose_name_plural = 'Student Grade Results'
        unique_together = ['section_id', 'student_id']
        indexes = [
            models.Index(fields=['section_id', 'grade'], name='grade_result_section_grade_idx'),
        ]
