"""
Exceptions raised by the grading engine.

Validation problems (bad scores, badly ordered thresholds) are returned as
result objects. These exceptions only signal a caller that skipped
validation.
"""


class GradingError(Exception):
    """Base class for gradebook engine errors."""


class InvalidThresholdConfiguration(GradingError):
    """Raised when classification is attempted without a valid threshold set."""

    def __init__(self, message, validation=None):
        super().__init__(message)
        self.validation = validation
