"""Hostname normalization for server creation."""

import re

from ..constants import HOSTNAME_PATTERN, MAX_HOSTNAME_LENGTH

_HOSTNAME_RE = re.compile(HOSTNAME_PATTERN)
_INVALID_CHARS_RE = re.compile(r"[^a-z0-9.-]")
_DASH_RUN_RE = re.compile(r"-{2,}")
_DOT_RUN_RE = re.compile(r"\.{2,}")
_EDGE_RE = re.compile(r"^[^a-z0-9]+|[^a-z0-9]+$")


def normalize_hostname(name: str) -> str:
    """
    Turn free text into an RFC 1123 style hostname candidate.

    Lowercases, replaces every character outside ``[a-z0-9.-]`` with ``-``,
    collapses runs of ``-`` and of ``.``, and strips non-alphanumeric
    characters from both ends. The result still has to pass
    ``is_valid_hostname``; a label such as ``a.-b`` survives normalization
    but is not a valid hostname.
    """
    candidate = name.strip().lower()
    candidate = _INVALID_CHARS_RE.sub("-", candidate)
    candidate = _DASH_RUN_RE.sub("-", candidate)
    candidate = _DOT_RUN_RE.sub(".", candidate)
    return _EDGE_RE.sub("", candidate)


def is_valid_hostname(name: str) -> bool:
    """Check a normalized hostname against the pattern and length limit."""
    return 0 < len(name) <= MAX_HOSTNAME_LENGTH and _HOSTNAME_RE.match(name) is not None
