"""
Moderation settings with defaults.

Values come from the ``IYAYA`` dict in Django settings and are looked up on
every call, so ``override_settings(IYAYA=...)`` takes effect in tests.
"""

from django.conf import settings

DEFAULTS = {
    'JOB_ACTION_TARGETS': {
        'approve': 'filled',
        'reject': 'cancelled',
        'cancel': 'cancelled',
        'complete': 'completed',
        'reopen': 'active',
    },
    # Transient job vocabulary used by some clients, mapped onto the
    # persisted enum before comparison and storage.
    'JOB_STATUS_ALIASES': {
        'pending': 'active',
        'open': 'active',
        'confirmed': 'filled',
        'inactive': 'cancelled',
    },
    'DEFAULT_SUSPENSION_DAYS': 7,
    'SUSPENSION_SWEEP_INTERVAL_SECONDS': 300,
    'AUDIT_PAYMENT_NOOPS': False,
    'EXPOSE_ERROR_DETAILS': False,
    'PAGE_SIZE_DEFAULTS': {
        'users': 20,
        'jobs': 20,
        'bookings': 20,
        'payments': 25,
        'user_reports': 20,
        'audit_logs': 20,
    },
    'MAX_PAGE_SIZE': 100,
}


def get_setting(name):
    """
    Return a moderation setting, falling back to its default.

    Args:
        name: Key inside the ``IYAYA`` settings dict

    Returns:
        The configured value, or the default when not configured

    Raises:
        KeyError: If ``name`` is not a known setting
    """
    if name not in DEFAULTS:
        raise KeyError(f'Unknown iYaya setting: {name}')
    overrides = getattr(settings, 'IYAYA', None) or {}
    return overrides.get(name, DEFAULTS[name])
