"""Shared dotfile-aware glob matching."""

from __future__ import annotations

from fnmatch import fnmatchcase as _fnmatch

_GLOB_CHARS = frozenset("*?[")


def has_glob(segment: str) -> bool:
    """Return True if *segment* contains a shell glob metacharacter."""
    return any(c in _GLOB_CHARS for c in segment)


def _glob_match(pattern: str, name: str) -> bool:
    """Match *name* against a glob *pattern* segment.

    Supports ``*``, ``?`` and ``[...]``.  Wildcards do not match a leading
    ``.`` unless the pattern itself starts with ``.`` (shell convention).
    Matching is case-sensitive on every platform.
    """
    if not pattern.startswith(".") and name.startswith("."):
        return False
    return _fnmatch(name, pattern)
