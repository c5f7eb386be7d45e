"""Errors raised while resolving and persisting product dependencies."""

from pathlib import Path


class ProductDependencyError(Exception):
    """Base class for all productdeps failures."""


class ConfigError(ProductDependencyError):
    """The build configuration file could not be loaded."""


class InvalidVersionFormatError(ProductDependencyError, ValueError):
    """A version string does not follow the required grammar."""

    def __init__(self, version: str, expected: str, context: str | None = None):
        self.version = version
        self.expected = expected
        self.context = context
        message = f"Expected {expected} version but got {version!r}"
        if context:
            message += f" ({context})"
        super().__init__(message)


class InvalidProductIdError(ProductDependencyError, ValueError):
    """A product group or name cannot be written as part of a product id."""

    def __init__(self, value: str, field: str):
        self.value = value
        self.field = field
        super().__init__(f"Invalid {field} {value!r}: must be non-empty without whitespace or any of ':(),'")


class ConfigurationError(ProductDependencyError):
    """A declared product dependency contradicts the rest of the configuration."""

    def __init__(self, message: str, product_id, dependency=None):
        self.product_id = product_id
        self.dependency = dependency
        super().__init__(message)


class SelfDependencyError(ConfigurationError):
    def __init__(self, dependency):
        super().__init__(
            f"Invalid for product to declare an explicit dependency on itself, please remove: {dependency}",
            dependency.product_id,
            dependency,
        )


class DuplicateDeclarationError(ConfigurationError):
    def __init__(self, first, second):
        self.first = first
        self.second = second
        super().__init__(
            f"Encountered duplicate declared product dependencies for '{first.product_id}':\n"
            f"\t{first}\n\t{second}",
            first.product_id,
            second,
        )


class IgnoredConflictError(ConfigurationError):
    def __init__(self, dependency):
        super().__init__(
            f"Encountered product dependency declaration that was also ignored for "
            f"'{dependency.product_id}', either remove the dependency or ignore",
            dependency.product_id,
            dependency,
        )


class OptionalConflictError(ConfigurationError):
    def __init__(self, dependency):
        super().__init__(
            f"Encountered product dependency declaration that was also declared as optional for "
            f"'{dependency.product_id}', either remove the dependency or optional declaration",
            dependency.product_id,
            dependency,
        )


class VersionRangeConflictError(ProductDependencyError):
    """Merging two records left no version satisfying both."""

    def __init__(self, first, second, minimum_version: str, maximum_version: str):
        self.product_id = first.product_id
        self.first = first
        self.second = second
        self.minimum_version = minimum_version
        self.maximum_version = maximum_version
        super().__init__(
            f"Could not merge product dependencies for '{first.product_id}': "
            f"minimum version {minimum_version} is greater than maximum version {maximum_version}\n"
            f"\t{first}\n\t{second}"
        )


class ManifestExtensionError(ProductDependencyError):
    """Manifest extensions tried to define a key the manifest owns."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(
            f"Manifest extensions must not define '{key}'"
            + (", use the product-dependencies configuration instead" if key == "product-dependencies" else "")
        )


class LockfileError(ProductDependencyError):
    """Base class for lockfile check failures."""

    def __init__(self, message: str, path: Path, diff: str | None = None):
        self.path = path
        self.diff = diff
        if diff:
            message += f":\n{diff}"
        super().__init__(message)


class LockfileMissingError(LockfileError):
    def __init__(self, path: Path, diff: str | None = None):
        super().__init__(
            f"{path} does not exist, please run `productdeps resolve --write-locks` and commit the resultant file",
            path,
            diff,
        )


class LockfileStaleError(LockfileError):
    def __init__(self, path: Path, diff: str | None = None):
        super().__init__(
            f"{path} is out of date, please run `productdeps resolve --write-locks` to update it",
            path,
            diff,
        )


class StaleEmptyLockfileError(LockfileError):
    def __init__(self, path: Path, diff: str | None = None):
        super().__init__(
            f"{path} must not exist, please run `productdeps resolve --write-locks` to delete it",
            path,
            diff,
        )


class LockfileFormatError(LockfileError):
    def __init__(self, path: Path | None, line_number: int, line: str):
        self.line_number = line_number
        self.line = line
        super().__init__(f"Malformed lockfile line {line_number}: {line!r}", path)
