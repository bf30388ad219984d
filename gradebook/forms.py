from django import forms
from decimal import Decimal

from .grading import validate_score, validate_thresholds
from . import config


class ScoreForm(forms.Form):
    """Form for entering one score cell."""
    student_id = forms.IntegerField(widget=forms.HiddenInput())
    item_id = forms.UUIDField(widget=forms.HiddenInput())
    points = forms.CharField(
        required=False,
        strip=True,
        widget=forms.TextInput(attrs={
            'class': 'input input-sm input-bordered w-16 text-center',
            'inputmode': 'decimal',
        })
    )

    def __init__(self, *args, max_score=Decimal('100'), **kwargs):
        super().__init__(*args, **kwargs)
        self.max_score = Decimal(str(max_score))
        if self.max_score > 0:
            self.fields['points'].widget.attrs['max'] = str(self.max_score)

    def clean_points(self):
        """Returns the score as Decimal, or None when the cell is left empty."""
        points = self.cleaned_data.get('points')
        result = validate_score(points, self.max_score)
        if result.is_invalid:
            raise forms.ValidationError(result.message, code=result.error_code)
        self.validation = result
        return result.value


class GradeThresholdForm(forms.Form):
    """
    Form for editing a section's grade cut points.

    One field per grade band, highest first. The labels come from the saved
    thresholds or GRADEBOOK_DEFAULT_THRESHOLDS.
    """

    def __init__(self, *args, thresholds=None, **kwargs):
        super().__init__(*args, **kwargs)
        if thresholds is None:
            thresholds = config.DEFAULT_THRESHOLDS
        self.labels = []
        for position, (label, value) in enumerate(thresholds):
            name = self.field_name(position)
            self.labels.append(label)
            self.fields[name] = forms.DecimalField(
                label=label,
                initial=value,
                max_digits=6,
                decimal_places=2,
                widget=forms.NumberInput(attrs={
                    'class': 'input input-bordered w-20 text-center',
                    'step': '0.01',
                })
            )

    @staticmethod
    def field_name(position):
        return f'threshold_{position}'

    def clean(self):
        cleaned_data = super().clean()
        if self.errors:
            return cleaned_data

        pairs = [
            (label, cleaned_data.get(self.field_name(position)))
            for position, label in enumerate(self.labels)
        ]
        validation = validate_thresholds(pairs)
        if not validation.is_valid:
            if validation.violation:
                above, below = validation.violation
                raise forms.ValidationError(
                    f'Grade {above} must not be lower than grade {below}.',
                    code=validation.error_code
                )
            raise forms.ValidationError(validation.message, code=validation.error_code)

        self.threshold_set = validation.threshold_set
        return cleaned_data

    def get_pairs(self):
        """(label, value) pairs from cleaned data, highest band first."""
        return [
            (label, self.cleaned_data[self.field_name(position)])
            for position, label in enumerate(self.labels)
        ]
