"""Deployment manifest generation."""

import json
import logging
from pathlib import Path
from typing import Any

from .errors import InvalidVersionFormatError, ManifestExtensionError
from .fsutil import atomic_write_text
from .models import ProductDependency, ProductId, ProductType, ResolvedReport
from .versions import is_orderable, is_valid

logger = logging.getLogger(__name__)

MANIFEST_VERSION = "1.0"
PRODUCT_DEPENDENCIES_KEY = "product-dependencies"
RESERVED_KEYS = (
    "manifest-version",
    "product-type",
    "product-group",
    "product-name",
    "product-version",
    PRODUCT_DEPENDENCIES_KEY,
)


def dependency_to_dict(dependency: ProductDependency) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "product-group": dependency.product_group,
        "product-name": dependency.product_name,
        "minimum-version": dependency.minimum_version,
        "maximum-version": dependency.maximum_version,
    }
    if dependency.recommended_version is not None:
        entry["recommended-version"] = dependency.recommended_version
    entry["optional"] = dependency.optional
    return entry


def build_manifest(
    product_id: ProductId,
    product_type: ProductType | str,
    product_version: str,
    report: ResolvedReport,
    extensions: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the manifest document for a product.

    Args:
        product_id: Identity of the product being packaged
        product_type: Kind of product, e.g. ``service.v1``
        product_version: Version of the product being packaged
        report: Resolved product dependencies
        extensions: Extra top-level keys supplied by the build configuration

    Returns:
        The manifest as an ordered dict ready for JSON serialization

    Raises:
        ManifestExtensionError: If an extension redefines a manifest key
        InvalidVersionFormatError: If the product version is not a valid version
    """
    extensions = extensions or {}
    for key in RESERVED_KEYS:
        if key in extensions:
            raise ManifestExtensionError(key)

    if not is_valid(product_version):
        raise InvalidVersionFormatError(product_version, "a valid product", f"product '{product_id}'")
    if not is_orderable(product_version):
        logger.warning(
            "Version string of product '%s' is not orderable: %s", product_id, product_version
        )

    manifest: dict[str, Any] = {
        "manifest-version": MANIFEST_VERSION,
        "product-type": ProductType(product_type).value,
        "product-group": product_id.product_group,
        "product-name": product_id.product_name,
        "product-version": product_version,
        PRODUCT_DEPENDENCIES_KEY: [dependency_to_dict(dep) for dep in report],
    }
    for key in sorted(extensions):
        if extensions[key] is not None:
            manifest[key] = extensions[key]
    return manifest


def render_manifest(manifest: dict[str, Any]) -> str:
    return json.dumps(manifest, indent=2) + "\n"


def write_manifest(path: Path, manifest: dict[str, Any]) -> None:
    """Write the manifest document to ``path``."""
    atomic_write_text(Path(path), render_manifest(manifest))
    logger.debug("Wrote manifest to %s", path)


def render_report(report: ResolvedReport) -> str:
    """Render a resolved report for tools that only need the dependency list."""
    document = {PRODUCT_DEPENDENCIES_KEY: [dependency_to_dict(dep) for dep in report]}
    return json.dumps(document, indent=2) + "\n"
