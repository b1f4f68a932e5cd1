"""Host string validation.

Every host that reaches the catalog, and later a shell command line, passes
through :func:`normalize_host`. The allow-list below is deliberately narrow.
"""

from __future__ import annotations

import re

SAFE_HOST_RE = re.compile(r"^(?:[A-Za-z0-9._-]+|\[[0-9A-Fa-f:]+\])$")
_WHITESPACE_RE = re.compile(r"\s")


class InvalidHost(ValueError):
    """Raised when a host string fails validation."""


def normalize_host(raw: str) -> str:
    """Trim *raw* and return it if it is a safe host, else raise ``InvalidHost``."""
    host = raw.strip()
    if not host:
        raise InvalidHost("host cannot be empty")
    if _WHITESPACE_RE.search(host):
        raise InvalidHost(f"host cannot contain whitespace: {host!r}")
    if not SAFE_HOST_RE.fullmatch(host):
        raise InvalidHost(f"invalid host format: {host!r}")
    return host


def is_safe_host(host: str) -> bool:
    return SAFE_HOST_RE.fullmatch(host) is not None
