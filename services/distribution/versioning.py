"""Helpers for parsing and comparing plugin versions.

Plugin versions follow Semantic Versioning 2.0.0 strictly: ``MAJOR.MINOR.PATCH``
with optional ``-prerelease`` and ``+build`` parts.  Anything else, including
two-component versions such as ``1.2`` or a leading ``v``, is rejected with
:class:`InvalidVersionError` so malformed plugin metadata never silently
compares as equal or older.
"""

from __future__ import annotations

from semver import Version

from services.distribution.models import InvalidVersionError


__all__ = [
    "compare_versions",
    "parse_version",
]


def parse_version(version: str) -> Version:
    """Parse ``version`` into a :class:`semver.Version`."""

    if not isinstance(version, str):
        raise InvalidVersionError(f"Version must be a string, got {type(version).__name__}")
    try:
        return Version.parse(version.strip())
    except (ValueError, TypeError) as exc:
        raise InvalidVersionError(f"Invalid semantic version: {version!r}") from exc


def compare_versions(current_version: str, candidate: str) -> int:
    """Compare ``candidate`` against ``current_version``.

    Returns ``1`` when ``candidate`` is newer, ``-1`` when it is older and ``0``
    when both have the same precedence (build metadata is ignored).  Raises
    :class:`InvalidVersionError` if either string is not a valid semantic
    version.
    """

    current_parsed = parse_version(current_version)
    candidate_parsed = parse_version(candidate)
    return candidate_parsed.compare(current_parsed)
