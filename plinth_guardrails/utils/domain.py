"""
Domain Extraction

Derives the bare domain used for the evidence-by-domain fallback lookup
from whatever a user typed as a competitor URL.
"""

import logging
import re
from typing import Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

# host labels: letters, digits, hyphens; at least one dot
_HOSTNAME_RE = re.compile(r"^(?=.{1,253}$)([a-z0-9-]{1,63}\.)+[a-z0-9-]{2,63}$")


def extract_domain(url: Optional[str]) -> Optional[str]:
    """
    Extract a normalized domain from a URL or bare host.

    Examples:
        https://www.fullstory.com/pricing -> fullstory.com
        example.com/path -> example.com
        https://subdomain.example.com -> subdomain.example.com
        not a valid url -> None

    Args:
        url: Competitor URL as stored (may lack a scheme)

    Returns:
        Lowercase domain without "www.", or None if nothing usable
    """
    if not url:
        return None

    candidate = url.strip().lower()
    if not candidate or any(ch.isspace() for ch in candidate):
        return None

    # urlsplit only finds the host when a scheme is present
    if "://" not in candidate:
        candidate = "http://" + candidate

    try:
        host = urlsplit(candidate).hostname
    except ValueError as e:
        logger.debug(f"Could not parse URL '{url}': {e}")
        return None

    if not host:
        return None

    # Remove www. prefix if present
    if host.startswith("www."):
        host = host[4:]

    if not _HOSTNAME_RE.match(host):
        return None

    return host
