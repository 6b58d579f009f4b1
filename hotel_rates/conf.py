"""
App settings with defaults.

Override any of these in the project settings:
    HOTEL_RATES = {'COMMIT_MAX_ATTEMPTS': 5}
"""

from django.conf import settings

DEFAULTS = {
    # Attempts per commit when the database reports a lock/serialization failure
    'COMMIT_MAX_ATTEMPTS': 3,
    # Seconds to wait before the first retry; doubled on every further attempt
    'COMMIT_RETRY_BACKOFF': 0.05,
    # Reject commits that don't carry the fingerprint of a preview
    'REQUIRE_PREVIEW_FINGERPRINT': False,
    'DATE_DISPLAY_FORMAT': '%d %b %Y',
    'CURRENCY_SYMBOL': '₹',
}


def get_setting(name):
    overrides = getattr(settings, 'HOTEL_RATES', None) or {}
    return overrides.get(name, DEFAULTS[name])
