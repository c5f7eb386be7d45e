"""Resolution of declared and discovered product dependencies."""

from collections.abc import Iterable
from enum import Enum

from .errors import (
    DuplicateDeclarationError,
    IgnoredConflictError,
    InvalidVersionFormatError,
    OptionalConflictError,
    SelfDependencyError,
    VersionRangeConflictError,
)
from .merge import merge
from .models import (
    Advisory,
    AdvisoryKind,
    ProductDependency,
    ProductId,
    ResolutionResult,
    ResolvedReport,
)
from .versions import is_matcher, is_orderable, within_maximum


class OptionalConflictPolicy(str, Enum):
    """What to do when a non-optional declaration is also listed as optional."""

    REJECT = "reject"
    PREFER_OPTIONAL = "prefer-optional"


class ResolutionEngine:
    """Merges declared and discovered product dependencies for one product."""

    def __init__(
        self,
        product_id: ProductId,
        ignored: Iterable[ProductId] = (),
        optional: Iterable[ProductId] = (),
        optional_conflict_policy: OptionalConflictPolicy = OptionalConflictPolicy.REJECT,
    ):
        """Initialize the engine.

        Args:
            product_id: Identity of the product whose dependencies are resolved
            ignored: Products whose discovered recommendations are dropped
            optional: Products that are always marked optional in the output
            optional_conflict_policy: Handling of declarations that are
                non-optional but also listed in ``optional``
        """
        self.product_id = product_id
        self.ignored = frozenset(ignored)
        self.optional = frozenset(optional)
        self.optional_conflict_policy = OptionalConflictPolicy(optional_conflict_policy)

    def resolve(
        self,
        declared: Iterable[ProductDependency],
        discovered: Iterable[ProductDependency],
    ) -> ResolutionResult:
        """Resolve the final set of product dependencies.

        Args:
            declared: Dependencies from the product's own configuration
            discovered: Recommendations found in upstream artifacts

        Returns:
            The sorted report and any advisories for the caller to surface
        """
        resolved, optional_ids = self._validate_declared(declared)
        advisories = []

        for product_id, dependency in self._dedup_discovered(discovered).items():
            if product_id in self.ignored:
                continue
            existing = resolved.get(product_id)
            if existing is None:
                resolved[product_id] = dependency
                continue
            merged = merge(existing, dependency)
            advisory = self._advisory_for(existing, dependency, merged)
            if advisory is not None:
                advisories.append(advisory)
            resolved[product_id] = merged

        for product_id in optional_ids:
            if product_id in resolved:
                resolved[product_id] = resolved[product_id].as_optional()

        return ResolutionResult(report=ResolvedReport.of(resolved.values()), advisories=advisories)

    def _validate_declared(self, declared):
        resolved: dict[ProductId, ProductDependency] = {}
        optional_ids = set(self.optional)

        for dependency in declared:
            product_id = dependency.product_id
            if product_id == self.product_id:
                raise SelfDependencyError(dependency)
            if product_id in resolved:
                raise DuplicateDeclarationError(resolved[product_id], dependency)
            if product_id in self.ignored:
                raise IgnoredConflictError(dependency)
            if (
                product_id in self.optional
                and not dependency.optional
                and self.optional_conflict_policy is OptionalConflictPolicy.REJECT
            ):
                raise OptionalConflictError(dependency)
            _check_mergeable(dependency)

            resolved[product_id] = dependency
            if dependency.optional:
                optional_ids.add(product_id)

        return resolved, optional_ids

    def _dedup_discovered(self, discovered) -> dict[ProductId, ProductDependency]:
        # Merging duplicates first keeps advisories to one per product
        deduped: dict[ProductId, ProductDependency] = {}
        for dependency in discovered:
            product_id = dependency.product_id
            if product_id == self.product_id:
                continue
            if product_id in deduped:
                deduped[product_id] = merge(deduped[product_id], dependency)
            else:
                deduped[product_id] = dependency
        return deduped

    @staticmethod
    def _advisory_for(declared, discovered, merged) -> Advisory | None:
        if merged == discovered:
            kind = AdvisoryKind.REDUNDANT_DECLARATION
        elif (
            declared.recommended_version is not None
            and declared.recommended_version == discovered.recommended_version
            and merged.recommended_version == declared.recommended_version
        ):
            kind = AdvisoryKind.REDUNDANT_RECOMMENDATION
        else:
            return None
        return Advisory(
            product_id=declared.product_id,
            kind=kind,
            declared=declared,
            discovered=discovered,
        )


def _check_mergeable(dependency: ProductDependency) -> None:
    context = f"declared product dependency on '{dependency.product_id}'"
    if not is_orderable(dependency.minimum_version):
        raise InvalidVersionFormatError(dependency.minimum_version, "an orderable minimum", context)
    if not (is_orderable(dependency.maximum_version) or is_matcher(dependency.maximum_version)):
        raise InvalidVersionFormatError(dependency.maximum_version, "an orderable or matcher maximum", context)
    if dependency.recommended_version is not None and not is_orderable(dependency.recommended_version):
        raise InvalidVersionFormatError(dependency.recommended_version, "an orderable recommended", context)
    if not within_maximum(dependency.minimum_version, dependency.maximum_version):
        raise VersionRangeConflictError(
            dependency, dependency, dependency.minimum_version, dependency.maximum_version
        )


def resolve_product_dependencies(
    product_id: ProductId,
    declared: Iterable[ProductDependency],
    discovered: Iterable[ProductDependency] = (),
    ignored: Iterable[ProductId] = (),
    optional: Iterable[ProductId] = (),
    optional_conflict_policy: OptionalConflictPolicy = OptionalConflictPolicy.REJECT,
) -> ResolutionResult:
    """Resolve product dependencies in a single pass.

    Args:
        product_id: Identity of the consuming product
        declared: Explicitly declared dependencies
        discovered: Dependencies recommended by upstream artifacts
        ignored: Product ids whose recommendations are dropped
        optional: Product ids forced optional in the output
        optional_conflict_policy: See ``OptionalConflictPolicy``

    Returns:
        ResolutionResult with the sorted report and advisories
    """
    engine = ResolutionEngine(
        product_id,
        ignored=ignored,
        optional=optional,
        optional_conflict_policy=optional_conflict_policy,
    )
    return engine.resolve(declared, discovered)
