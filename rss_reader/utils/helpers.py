"""
Helper functions for the RSS reader.
Contains utility functions for URL checks.
"""
import re
import urllib.parse
import logging

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')


def validate_url(url: str) -> bool:
    """
    Check that a string can be parsed as a URL.

    Only syntax is checked; whether the scheme is supported is up to the
    HTTP client.

    Args:
        url: URL string to validate

    Returns:
        True if the URL is non-empty and parseable, False otherwise
    """
    if not url or not isinstance(url, str) or not url.strip():
        return False

    if _CONTROL_CHARS.search(url):
        return False

    try:
        parsed = urllib.parse.urlsplit(url)
        # Accessing port validates it
        parsed.port
    except ValueError:
        return False

    return True


def extract_domain(url: str) -> str:
    """
    Extract domain name from a URL.

    Args:
        url: Full URL string

    Returns:
        Domain name or empty string if extraction fails
    """
    if not url:
        return ""

    try:
        parsed = urllib.parse.urlparse(url)
        return (parsed.hostname or "").lower()
    except ValueError:
        return ""


def is_reddit_url(url: str) -> bool:
    """True for reddit.com and its subdomains."""
    domain = extract_domain(url)
    return domain == "reddit.com" or domain.endswith(".reddit.com")
