from django.db import models
from django.utils.translation import gettext_lazy as _


class ScoreStatus(models.TextChoices):
    UNFILLED = 'unfilled', _('Unfilled')
    VALID = 'valid', _('Valid')
    INVALID = 'invalid', _('Invalid')


class ScoreError(models.TextChoices):
    NOT_A_NUMBER = 'not_a_number', _('Not a number')
    NOT_FINITE = 'not_finite', _('Not a finite number')
    NEGATIVE = 'negative', _('Negative score')
    ABOVE_MAX = 'above_max', _('Above maximum score')


class ThresholdError(models.TextChoices):
    EMPTY = 'empty', _('No thresholds')
    INVALID_VALUE = 'invalid_value', _('Invalid threshold value')
    DUPLICATE_LABEL = 'duplicate_label', _('Duplicate grade label')
    ORDER = 'order', _('Thresholds out of order')
