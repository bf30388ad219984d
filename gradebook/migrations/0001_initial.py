import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='AssessmentItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('section_id', models.PositiveIntegerField(db_index=True, help_text='Section (teaching assignment) this item belongs to')),
                ('title', models.CharField(help_text='Display name (e.g., Quiz 1)', max_length=200)),
                ('category', models.CharField(blank=True, help_text='Grade category used for the per-category breakdown (e.g., Midterm)', max_length=100)),
                ('max_score', models.DecimalField(decimal_places=2, help_text='Maximum score; items with 0 are left out of aggregation', max_digits=7)),
                ('order', models.PositiveSmallIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Assessment Item',
                'verbose_name_plural': 'Assessment Items',
                'db_table': 'assessment_item',
                'ordering': ['section_id', 'order', 'created_at'],
            },
        ),
        migrations.CreateModel(
            name='GradeThreshold',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('section_id', models.PositiveIntegerField(db_index=True)),
                ('label', models.CharField(help_text='Grade label (e.g., A, B+)', max_length=10)),
                ('min_percentage', models.DecimalField(decimal_places=2, help_text='Minimum percentage for this grade (inclusive)', max_digits=6)),
                ('position', models.PositiveSmallIntegerField(default=0, help_text='0 for the highest band')),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Grade Threshold',
                'verbose_name_plural': 'Grade Thresholds',
                'db_table': 'grade_threshold',
                'ordering': ['section_id', 'position'],
                'unique_together': {('section_id', 'label')},
            },
        ),
        migrations.CreateModel(
            name='StudentGradeResult',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('section_id', models.PositiveIntegerField(db_index=True)),
                ('student_id', models.PositiveIntegerField(db_index=True)),
                ('total_score', models.DecimalField(decimal_places=2, default=0, max_digits=9)),
                ('max_possible', models.DecimalField(decimal_places=2, default=0, max_digits=9)),
                ('percentage', models.DecimalField(decimal_places=2, default=0, help_text='Unclamped; may exceed 100 when saved scores exceed item maximums', max_digits=7)),
                ('grade', models.CharField(blank=True, max_length=10)),
                ('category_scores', models.JSONField(blank=True, default=dict)),
                ('computed_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Student Grade Result',
                'verbose_name_plural': 'Student Grade Results',
                'db_table': 'student_grade_result',
                'ordering': ['section_id', '-percentage', 'student_id'],
                'indexes': [models.Index(fields=['section_id', 'grade'], name='grade_result_section_grade_idx')],
                'unique_together': {('section_id', 'student_id')},
            },
        ),
        migrations.CreateModel(
            name='ScoreEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('student_id', models.PositiveIntegerField(db_index=True)),
                ('raw_value', models.DecimalField(blank=True, decimal_places=2, help_text='Points earned; empty until entered', max_digits=7, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='scores', to='gradebook.assessmentitem')),
            ],
            options={
                'verbose_name': 'Score Entry',
                'verbose_name_plural': 'Score Entries',
                'db_table': 'score_entry',
                'ordering': ['item', 'student_id'],
                'unique_together': {('item', 'student_id')},
            },
        ),
    ]
