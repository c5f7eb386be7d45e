"""Version string classification and ordering.

Product versions come in three flavours:

- orderable: ``1.2.3``, ``1.2.3-rc4``, ``1.2.3-beta4``, ``1.2.3-5-gabc123``
- non-orderable: any ``N.N.N`` with a free-form lowercase tag and/or
  ``.dirty`` marker, e.g. ``1.2.3-snapshot.dirty``
- matcher: ``N.N.N`` with trailing ``x`` wildcards, e.g. ``1.x.x``

Only orderable versions take part in min/max arithmetic. Matchers are
accepted as maximum versions and for compatibility checks.
"""

import math
import re
from enum import Enum, IntEnum

from .errors import InvalidVersionFormatError


class VersionKind(str, Enum):
    """Classification assigned to a version string."""

    ORDERABLE = "orderable"
    NON_ORDERABLE = "non-orderable"
    MATCHER = "matcher"
    INVALID = "invalid"


class Ordering(IntEnum):
    LT = -1
    EQ = 0
    GT = 1


# Numeric components are written without leading zeros
_NUMBER = r"(0|[1-9][0-9]*)"
_TRIPLET = rf"{_NUMBER}\.{_NUMBER}\.{_NUMBER}"

# Rank of each orderable form within one major.minor.patch triplet
BETA, RC, COMMIT_DISTANCE, RELEASE = range(4)

ORDERABLE_PATTERNS = [
    (re.compile(_TRIPLET), RELEASE),
    (re.compile(_TRIPLET + rf"-rc{_NUMBER}"), RC),
    (re.compile(_TRIPLET + rf"-beta{_NUMBER}"), BETA),
    (re.compile(_TRIPLET + rf"-{_NUMBER}-g([a-f0-9]+)"), COMMIT_DISTANCE),
]

NON_ORDERABLE_PATTERN = re.compile(r"[0-9]+\.[0-9]+\.[0-9]+(?:-[a-z0-9-]+)?(?:\.dirty)?")

# Once a component is a wildcard every following component must be one too
_PLAIN = r"(?:0|[1-9][0-9]*)"
MATCHER_PATTERN = re.compile(rf"{_PLAIN}\.{_PLAIN}\.(?:{_PLAIN}|x)|{_PLAIN}\.x\.x|x\.x\.x")


def _orderable_match(version: str):
    for pattern, rank in ORDERABLE_PATTERNS:
        match = pattern.fullmatch(version)
        if match:
            return match, rank
    return None, None


def is_orderable(version: str) -> bool:
    """Return True iff ``version`` is an orderable version."""
    match, _ = _orderable_match(version)
    return match is not None


def is_non_orderable(version: str) -> bool:
    """Return True iff ``version`` is a non-orderable version.

    Every orderable version is also non-orderable.
    """
    return NON_ORDERABLE_PATTERN.fullmatch(version) is not None


def is_matcher(version: str) -> bool:
    """Return True iff ``version`` is a version matcher such as ``1.x.x``."""
    return MATCHER_PATTERN.fullmatch(version) is not None


def is_valid(version: str) -> bool:
    # is_orderable implies is_non_orderable; both are checked for legibility
    return is_orderable(version) or is_non_orderable(version)


def is_valid_or_matcher(version: str) -> bool:
    return is_valid(version) or is_matcher(version)


def classify(version: str) -> frozenset[VersionKind]:
    """Classify a version string.

    Args:
        version: The version string to classify

    Returns:
        Every kind that applies, or ``{VersionKind.INVALID}`` when none does
    """
    kinds = set()
    if is_orderable(version):
        kinds.add(VersionKind.ORDERABLE)
    if is_non_orderable(version):
        kinds.add(VersionKind.NON_ORDERABLE)
    if is_matcher(version):
        kinds.add(VersionKind.MATCHER)
    return frozenset(kinds or {VersionKind.INVALID})


def orderable_key(version: str) -> tuple:
    """Sort key for an orderable version.

    Raises:
        InvalidVersionFormatError: If the version is not orderable
    """
    match, rank = _orderable_match(version)
    if match is None:
        raise InvalidVersionFormatError(version, "an orderable")

    major, minor, patch = (int(part) for part in match.groups()[:3])
    if rank == RELEASE:
        return (major, minor, patch, rank, 0, "")
    if rank == COMMIT_DISTANCE:
        return (major, minor, patch, rank, int(match.group(4)), match.group(5))
    return (major, minor, patch, rank, int(match.group(4)), "")


def _ordering(left: tuple, right: tuple) -> Ordering:
    if left < right:
        return Ordering.LT
    if left > right:
        return Ordering.GT
    return Ordering.EQ


def compare_orderable(a: str, b: str) -> Ordering:
    """Compare two orderable versions.

    Within the same major.minor.patch a plain release sorts above every
    suffixed build, and beta < rc < commit-distance build.

    Raises:
        InvalidVersionFormatError: If either version is not orderable
    """
    return _ordering(orderable_key(a), orderable_key(b))


def _maximum_key(version: str) -> tuple:
    if is_orderable(version):
        return orderable_key(version)
    if not is_matcher(version):
        raise InvalidVersionFormatError(version, "an orderable or matcher")
    parts = tuple(math.inf if part == "x" else int(part) for part in version.split("."))
    return parts + (RELEASE, 0, "")


def compare_maximum(a: str, b: str) -> Ordering:
    """Compare two upper bounds, each an orderable version or a matcher.

    A wildcard component ranks above any concrete number, so ``1.x.x`` is a
    looser bound than ``1.9.0``.
    """
    return _ordering(_maximum_key(a), _maximum_key(b))


def within_maximum(version: str, maximum: str) -> bool:
    """Return True if an orderable version does not exceed ``maximum``."""
    return orderable_key(version) <= _maximum_key(maximum)


def matches(matcher: str, version: str) -> bool:
    """Check an orderable version against a matcher.

    Only the major.minor.patch components take part: ``1.2.x`` matches
    ``1.2.7`` and ``1.2.7-rc1`` alike.
    """
    if not is_matcher(matcher):
        raise InvalidVersionFormatError(matcher, "a matcher")
    version_parts = orderable_key(version)[:3]
    return all(
        wanted == "x" or int(wanted) == actual
        for wanted, actual in zip(matcher.split("."), version_parts)
    )
