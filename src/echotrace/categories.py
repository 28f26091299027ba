"""Utilities to normalize tab URLs into domains and assign categories."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

SOCIAL = "social"
NEWS = "news"
PRODUCTIVITY = "productivity"
ENTERTAINMENT = "entertainment"
OTHER = "other"

# Checked in declared order; the first category with a matching entry wins.
DOMAIN_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        SOCIAL,
        (
            "x.com",
            "twitter.com",
            "facebook.com",
            "instagram.com",
            "tiktok.com",
            "reddit.com",
            "linkedin.com",
        ),
    ),
    (NEWS, ("cnn.com", "bbc.com", "nytimes.com", "theguardian.com", "bloomberg.com")),
    (
        PRODUCTIVITY,
        (
            "notion.so",
            "github.com",
            "stackoverflow.com",
            "docs.google.com",
            "linear.app",
            "figma.com",
        ),
    ),
    (ENTERTAINMENT, ("youtube.com", "netflix.com", "twitch.tv")),
)

CATEGORIES: tuple[str, ...] = tuple(name for name, _ in DOMAIN_CATEGORIES) + (OTHER,)

_TRACKED_SCHEMES = frozenset({"http", "https"})
_WWW_PREFIX = "www."


def extract_domain(url: Optional[str]) -> Optional[str]:
    """Return the tab's hostname without a leading ``www.``, or None if it has none."""
    if not url:
        return None
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError:
        return None
    if parts.scheme.lower() not in _TRACKED_SCHEMES or not hostname:
        return None
    if hostname.startswith(_WWW_PREFIX):
        hostname = hostname[len(_WWW_PREFIX):]
    return hostname or None


def categorize(domain: Optional[str]) -> str:
    """Map a domain to one of :data:`CATEGORIES`."""
    if not domain:
        return OTHER
    for category, domains in DOMAIN_CATEGORIES:
        for listed in domains:
            if listed in domain or domain in listed:
                return category
    return OTHER
