"""
Per-client request throttling.
"""

import re

from rest_framework.throttling import SimpleRateThrottle

PERIODS = {
    's': 1,
    'm': 60,
    'h': 3600,
    'd': 86400,
}

RATE_PATTERN = re.compile(r'^(?P<count>\d+)\s*/\s*(?P<multiplier>\d*)\s*(?P<unit>[smhd])', re.IGNORECASE)


class ClientAddressRateThrottle(SimpleRateThrottle):
    """
    Throttle every request by client address, authenticated or not.

    Rates accept a multiplier on the period, e.g. ``100/15m`` for 100
    requests per 15 minutes, in addition to DRF's ``100/hour`` form.
    """

    scope = 'client'

    def parse_rate(self, rate):
        """
        Parse ``<count>/<multiplier><unit>``.

        Returns:
            tuple: (num_requests, duration_in_seconds), or (None, None) for no rate
        """
        if rate is None:
            return (None, None)
        match = RATE_PATTERN.match(rate.strip())
        if match is None:
            raise ValueError(f"Invalid throttle rate: {rate!r}")
        multiplier = int(match.group('multiplier') or 1)
        duration = PERIODS[match.group('unit').lower()] * multiplier
        return (int(match.group('count')), duration)

    def get_cache_key(self, request, view):
        return self.cache_format % {
            'scope': self.scope,
            'ident': self.get_ident(request),
        }
