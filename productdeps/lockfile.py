"""Product dependency lockfile serialization and enforcement.

The lockfile is a plain-text, sorted snapshot of the resolved product
dependencies, committed next to the build configuration so that changes to
the dependency set show up in code review::

    # Run `productdeps resolve --write-locks` to regenerate this file
    com.example:api (1.2.0, 1.x.x, 1.4.0)
    com.example:cache ($projectVersion, 2.x.x) optional

Dependencies on products published from the same workspace whose minimum or
recommended version is the consumer's own version are written as
``$projectVersion`` so that releasing the workspace does not churn the file.
"""

import difflib
import logging
import re
from collections.abc import Iterable
from enum import Enum
from pathlib import Path

from .errors import (
    InvalidVersionFormatError,
    LockfileFormatError,
    LockfileMissingError,
    LockfileStaleError,
    StaleEmptyLockfileError,
)
from .fsutil import atomic_write_text
from .models import ProductDependency, ProductId, ResolvedReport

logger = logging.getLogger(__name__)

LOCKFILE_NAME = "product-dependencies.lock"
HEADER = "# Run `productdeps resolve --write-locks` to regenerate this file\n"
PROJECT_VERSION = "$projectVersion"

_LINE = re.compile(
    r"(?P<group>[^\s:]+):(?P<name>[^\s:]+)"
    r" \((?P<minimum>[^\s,()]+), (?P<maximum>[^\s,()]+)(?:, (?P<recommended>[^\s,()]+))?\)"
    r"(?P<optional> optional)?"
)


class LockfileOutcome(str, Enum):
    """What a lockfile sync did."""

    UNCHANGED = "unchanged"
    ABSENT = "absent"
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


def _render_version(version, dependency, in_repo_products, project_version):
    if (
        version is not None
        and project_version is not None
        and version == project_version
        and dependency.product_id in in_repo_products
    ):
        return PROJECT_VERSION
    return version


def _render_line(dependency: ProductDependency, in_repo_products, project_version) -> str:
    fields = [
        _render_version(dependency.minimum_version, dependency, in_repo_products, project_version),
        dependency.maximum_version,
    ]
    if dependency.recommended_version is not None:
        fields.append(
            _render_version(dependency.recommended_version, dependency, in_repo_products, project_version)
        )
    line = f"{dependency.product_id} ({', '.join(fields)})"
    if dependency.optional:
        line += " optional"
    return line


def serialize(
    report: ResolvedReport,
    in_repo_products: Iterable[ProductId] = (),
    project_version: str | None = None,
) -> str | None:
    """Render the lockfile contents for a resolved report.

    Args:
        report: Resolved product dependencies
        in_repo_products: Products published from the same workspace
        project_version: Version of the consuming product

    Returns:
        The file contents, or None if the report is empty and no lockfile
        should exist
    """
    if len(report) == 0:
        return None
    in_repo_products = frozenset(in_repo_products)
    lines = [
        _render_line(dependency, in_repo_products, project_version)
        for dependency in sorted(report, key=lambda dep: dep.product_id)
    ]
    return HEADER + "".join(line + "\n" for line in lines)


def _parse_version(value, project_version, path, line_number, line):
    if value != PROJECT_VERSION:
        return value
    if project_version is None:
        raise LockfileFormatError(path, line_number, line)
    return project_version


def parse(
    content: str | None,
    project_version: str | None = None,
    path: Path | None = None,
) -> ResolvedReport:
    """Parse lockfile contents back into a resolved report.

    Args:
        content: The lockfile contents, or None for an absent lockfile
        project_version: Substituted for ``$projectVersion`` placeholders
        path: Lockfile location, used in error messages

    Returns:
        The resolved report the lockfile describes

    Raises:
        LockfileFormatError: If a line cannot be parsed
    """
    if content is None:
        return ResolvedReport()

    dependencies = []
    for line_number, line in enumerate(content.splitlines(), start=1):
        if not line.strip() or line.startswith("#"):
            continue
        match = _LINE.fullmatch(line)
        if not match:
            raise LockfileFormatError(path, line_number, line)
        recommended = match.group("recommended")
        try:
            dependencies.append(
                ProductDependency(
                    product_group=match.group("group"),
                    product_name=match.group("name"),
                    minimum_version=_parse_version(
                        match.group("minimum"), project_version, path, line_number, line
                    ),
                    maximum_version=match.group("maximum"),
                    recommended_version=(
                        _parse_version(recommended, project_version, path, line_number, line)
                        if recommended is not None
                        else None
                    ),
                    optional=match.group("optional") is not None,
                )
            )
        except InvalidVersionFormatError as e:
            raise LockfileFormatError(path, line_number, line) from e

    return ResolvedReport.of(dependencies)


def render_diff(old: str | None, new: str | None, path: Path | str) -> str:
    """Unified diff between the lockfile on disk and the up-to-date contents."""
    diff = difflib.unified_diff(
        (old or "").splitlines(keepends=True),
        (new or "").splitlines(keepends=True),
        fromfile=f"{path} (on disk)",
        tofile=f"{path} (resolved)",
    )
    # Drop the file header lines, the message already names the file
    lines = list(diff)[2:]
    return "".join(line if line.endswith("\n") else line + "\n" for line in lines).rstrip("\n")


class LockfileCodec:
    """Checks or rewrites the product dependency lockfile."""

    def __init__(self, path: Path, write_locks: bool = False):
        """Initialize the codec.

        Args:
            path: Location of the lockfile
            write_locks: Rewrite the lockfile instead of checking it
        """
        self.path = Path(path)
        self.write_locks = write_locks

    def read(self) -> str | None:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def load(self, project_version: str | None = None) -> ResolvedReport:
        return parse(self.read(), project_version=project_version, path=self.path)

    def sync(
        self,
        report: ResolvedReport,
        in_repo_products: Iterable[ProductId] = (),
        project_version: str | None = None,
    ) -> LockfileOutcome:
        """Check the lockfile against a report, or rewrite it in write mode.

        Returns:
            What happened to the lockfile

        Raises:
            LockfileMissingError: Check mode, dependencies exist but no lockfile does
            LockfileStaleError: Check mode, lockfile contents differ
            StaleEmptyLockfileError: Check mode, no dependencies but a lockfile exists
        """
        expected = serialize(report, in_repo_products, project_version)
        existing = self.read()

        if expected is None:
            return self._require_absent(existing)
        if existing == expected:
            return LockfileOutcome.UNCHANGED

        if not self.write_locks:
            diff = render_diff(existing, expected, self.path)
            if existing is None:
                raise LockfileMissingError(self.path, diff)
            raise LockfileStaleError(self.path, diff)

        atomic_write_text(self.path, expected)
        if existing is None:
            logger.info("Created %s\n\t%s", self.path, expected.rstrip("\n").replace("\n", "\n\t"))
            return LockfileOutcome.CREATED
        logger.info("Updated %s", self.path)
        return LockfileOutcome.UPDATED

    def _require_absent(self, existing: str | None) -> LockfileOutcome:
        if existing is None:
            return LockfileOutcome.ABSENT
        if not self.write_locks:
            raise StaleEmptyLockfileError(self.path, render_diff(existing, None, self.path))
        self.path.unlink()
        logger.info("Deleted %s", self.path)
        return LockfileOutcome.DELETED
