"""Pairwise merging of product dependency constraints."""

from .errors import VersionRangeConflictError
from .models import ProductDependency
from .versions import Ordering, compare_maximum, compare_orderable, within_maximum


def _greater_minimum(a: str, b: str) -> str:
    if a == b:
        return a
    return b if compare_orderable(b, a) is Ordering.GT else a


def _lesser_maximum(a: str, b: str) -> str:
    if a == b:
        return a
    return b if compare_maximum(b, a) is Ordering.LT else a


def _in_window(version: str, minimum: str, maximum: str) -> bool:
    return compare_orderable(version, minimum) is not Ordering.LT and within_maximum(version, maximum)


def merge(a: ProductDependency, b: ProductDependency) -> ProductDependency:
    """Merge two constraints on the same product into the tightest one.

    The result takes the greater minimum, the lesser maximum and the
    greatest recommendation that still fits between them (dropping the
    recommendation if neither does). The merged dependency is optional only
    if both inputs are.

    Args:
        a: First dependency
        b: Second dependency on the same product

    Returns:
        The merged dependency

    Raises:
        ValueError: If the two dependencies are on different products
        VersionRangeConflictError: If the merged minimum exceeds the merged maximum
    """
    if a.product_id != b.product_id:
        raise ValueError(f"Cannot merge product dependencies on '{a.product_id}' and '{b.product_id}'")
    if a == b:
        return a

    minimum = _greater_minimum(a.minimum_version, b.minimum_version)
    maximum = _lesser_maximum(a.maximum_version, b.maximum_version)
    if not within_maximum(minimum, maximum):
        raise VersionRangeConflictError(a, b, minimum, maximum)

    recommended = None
    for candidate in (a.recommended_version, b.recommended_version):
        if candidate is None or not _in_window(candidate, minimum, maximum):
            continue
        if recommended is None or compare_orderable(candidate, recommended) is Ordering.GT:
            recommended = candidate

    return ProductDependency(
        product_group=a.product_group,
        product_name=a.product_name,
        minimum_version=minimum,
        maximum_version=maximum,
        recommended_version=recommended,
        optional=a.optional and b.optional,
    )
