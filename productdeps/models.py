"""Core data models for productdeps."""

import re
from dataclasses import dataclass, field, replace
from enum import Enum

from .errors import InvalidProductIdError, InvalidVersionFormatError
from .versions import is_valid, is_valid_or_matcher

# A group or name must survive the "group:name (min, max)" lockfile syntax
PRODUCT_ID_PART = re.compile(r"[^\s:(),]+")


def _check_product_id(product_group: str, product_name: str) -> None:
    if not PRODUCT_ID_PART.fullmatch(product_group):
        raise InvalidProductIdError(product_group, "product group")
    if not PRODUCT_ID_PART.fullmatch(product_name):
        raise InvalidProductIdError(product_name, "product name")


class ProductType(str, Enum):
    """Kinds of deployable product a manifest can describe."""

    SERVICE = "service.v1"
    DAEMON = "daemon.v1"
    ASSET = "asset.v1"


@dataclass(frozen=True, order=True)
class ProductId:
    """The (group, name) identity of a product."""

    product_group: str
    product_name: str

    def __post_init__(self):
        _check_product_id(self.product_group, self.product_name)

    @classmethod
    def parse(cls, value: str) -> "ProductId":
        """Parse a ``group:name`` string."""
        parts = value.split(":")
        if len(parts) != 2 or not all(part.strip() for part in parts):
            raise ValueError(f"Expected a product id of the form 'group:name' but got {value!r}")
        return cls(parts[0].strip(), parts[1].strip())

    def __str__(self) -> str:
        return f"{self.product_group}:{self.product_name}"


@dataclass(frozen=True)
class ProductDependency:
    """A single product dependency constraint."""

    product_group: str
    product_name: str
    minimum_version: str
    maximum_version: str
    recommended_version: str | None = None
    optional: bool = False

    def __post_init__(self):
        _check_product_id(self.product_group, self.product_name)
        context = f"product dependency on '{self.product_id}'"
        if not is_valid(self.minimum_version):
            raise InvalidVersionFormatError(self.minimum_version, "a valid minimum", context)
        if not is_valid_or_matcher(self.maximum_version):
            raise InvalidVersionFormatError(self.maximum_version, "a valid maximum", context)
        if self.recommended_version is not None and not is_valid(self.recommended_version):
            raise InvalidVersionFormatError(self.recommended_version, "a valid recommended", context)

    @property
    def product_id(self) -> ProductId:
        return ProductId(self.product_group, self.product_name)

    def as_optional(self) -> "ProductDependency":
        return replace(self, optional=True)

    def __str__(self) -> str:
        text = f"{self.product_id} ({self.minimum_version}, {self.maximum_version}"
        if self.recommended_version is not None:
            text += f", recommended {self.recommended_version}"
        text += ")"
        if self.optional:
            text += " optional"
        return text


@dataclass(frozen=True)
class ResolvedReport:
    """The resolved product dependencies, sorted by product id."""

    dependencies: tuple[ProductDependency, ...] = ()

    @classmethod
    def of(cls, dependencies) -> "ResolvedReport":
        return cls(tuple(sorted(dependencies, key=lambda dep: dep.product_id)))

    def __iter__(self):
        return iter(self.dependencies)

    def __len__(self) -> int:
        return len(self.dependencies)

    @property
    def product_ids(self) -> list[ProductId]:
        return [dep.product_id for dep in self.dependencies]


class AdvisoryKind(str, Enum):
    REDUNDANT_DECLARATION = "redundant-declaration"
    REDUNDANT_RECOMMENDATION = "redundant-recommendation"


@dataclass(frozen=True)
class Advisory:
    """A non-fatal hint about a declared dependency that could be simplified."""

    product_id: ProductId
    kind: AdvisoryKind
    declared: ProductDependency
    discovered: ProductDependency

    @property
    def message(self) -> str:
        if self.kind is AdvisoryKind.REDUNDANT_DECLARATION:
            return (
                f"Please remove your declared product dependency on '{self.product_id}' because it is"
                f" already provided by an upstream artifact:\n\n"
                f"\tProvided:     {self.discovered}\n"
                f"\tYou declared: {self.declared}"
            )
        return (
            f"The recommended version {self.declared.recommended_version} declared for "
            f"'{self.product_id}' is already recommended by an upstream artifact and can be removed:\n\n"
            f"\tProvided:     {self.discovered}\n"
            f"\tYou declared: {self.declared}"
        )


@dataclass
class ResolutionResult:
    """Result of resolving declared and discovered product dependencies."""

    report: ResolvedReport
    advisories: list[Advisory] = field(default_factory=list)
