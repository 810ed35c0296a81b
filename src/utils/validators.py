"""
URL Validation Utilities

This module checks the source URLs written into the attribution line of every
converted page. A URL is accepted or rejected, never rewritten, so the
attribution shows exactly what the user supplied.
"""

import re
from urllib.parse import urlparse
from typing import Tuple, Optional
import logging


class URLValidator:
    """
    Validates puzzle page source URLs.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

        self.allowed_schemes = ('http', 'https')
        self.domain_pattern = re.compile(
            r'^[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?)*$'
        )

    def validate(self, url: str) -> Tuple[bool, str]:
        """
        Check that a source URL is an absolute http(s) URL with a valid host.

        Args:
            url: The URL to check

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not url or not isinstance(url, str) or not url.strip():
            return False, "URL cannot be empty"

        if url != url.strip():
            return False, "URL has leading or trailing whitespace"

        try:
            parsed = urlparse(url)
            port = parsed.port
        except ValueError as e:
            return False, f"URL validation error: {str(e)}"

        if parsed.scheme.lower() not in self.allowed_schemes:
            return False, "URL must be absolute and use HTTP or HTTPS"

        host = parsed.hostname
        if not host:
            return False, "URL must have a valid domain"

        if not self.domain_pattern.match(host):
            return False, "Invalid domain format"

        self.logger.debug(f"Accepted source URL for host {host}" + (f":{port}" if port else ""))
        return True, ""


# Global validator instance
_validator_instance: Optional[URLValidator] = None


def get_validator() -> URLValidator:
    """
    Get the global URL validator instance.

    Returns:
        URLValidator instance
    """
    global _validator_instance
    if _validator_instance is None:
        _validator_instance = URLValidator()
    return _validator_instance


def validate_source_url(url: str) -> Tuple[bool, str]:
    """
    Accept or reject a page source URL.

    Args:
        url: URL to check

    Returns:
        Tuple of (is_valid, error_message)
    """
    return get_validator().validate(url)
