"""
Configuration settings for the gradebook app.

These values can be overridden in Django settings by prefixing with GRADEBOOK_.
For example, to change the label of the failing band:
    GRADEBOOK_FAIL_LABEL = 'E'

All configuration values are lazily loaded to avoid Django setup issues.
"""


def _get_setting(name, default):
    """Get a gradebook setting from Django settings or use default."""
    from django.conf import settings
    return getattr(settings, f'GRADEBOOK_{name}', default)


_DEFAULTS = {
    # Grade cut points used when a section has none saved, highest band first
    'DEFAULT_THRESHOLDS': (
        ('A', 80),
        ('B+', 75),
        ('B', 70),
        ('C+', 65),
        ('C', 60),
        ('D+', 55),
        ('D', 50),
    ),
    # Implicit band below the lowest threshold
    'FAIL_LABEL': 'F',

    # Rounding for percentages and averages
    'PERCENTAGE_PLACES': 2,

    # Category breakdown
    'DEFAULT_CATEGORY_NAME': 'Other',
    'NORMALIZED_SCALE_MAX': 5,

    # Bulk operation settings
    'BULK_UPDATE_BATCH_SIZE': 500,
}


class _ConfigProxy:
    """
    Lazy configuration proxy that loads settings only when accessed.
    This avoids Django setup issues during module import.
    """

    def __getattr__(self, name):
        if name in _DEFAULTS:
            return _get_setting(name, _DEFAULTS[name])
        raise AttributeError(f"Unknown config setting: {name}")


# Module-level proxy object for attribute access
_config = _ConfigProxy()


def __getattr__(name):
    """Enable module-level attribute access via the config proxy."""
    return getattr(_config, name)
