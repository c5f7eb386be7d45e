"""Parsing of product dependency recommendations embedded in artifacts.

Producing products embed a JSON blob in their published artifacts::

    {"recommended-product-dependencies": [
        {"product-group": "com.example", "product-name": "api",
         "minimum-version": "1.2.0", "maximum-version": "1.x.x",
         "recommended-version": "1.4.0"}
    ]}

Extracting the blob from an archive happens elsewhere; this module turns
blobs into ProductDependency records. A blob that cannot be used is skipped
with a log message so one bad artifact never blocks resolution.
"""

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models import PRODUCT_ID_PART, ProductDependency
from .versions import is_matcher, is_orderable

logger = logging.getLogger(__name__)

RECOMMENDED_PRODUCT_DEPENDENCIES_KEY = "recommended-product-dependencies"


class RecommendedDependency(BaseModel):
    """One entry of a recommendation blob."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product_group: str = Field(alias="product-group", min_length=1)
    product_name: str = Field(alias="product-name", min_length=1)
    minimum_version: str = Field(alias="minimum-version")
    maximum_version: str = Field(alias="maximum-version")
    recommended_version: str | None = Field(default=None, alias="recommended-version")
    optional: bool = False

    @field_validator("product_group", "product_name")
    @classmethod
    def validate_id_part(cls, v: str) -> str:
        if not PRODUCT_ID_PART.fullmatch(v):
            raise ValueError(f"must not contain whitespace or any of ':(),': {v!r}")
        return v

    @field_validator("minimum_version")
    @classmethod
    def validate_minimum(cls, v: str) -> str:
        if not is_orderable(v):
            raise ValueError(f"minimum version must be orderable: {v!r}")
        return v

    @field_validator("maximum_version")
    @classmethod
    def validate_maximum(cls, v: str) -> str:
        if not (is_orderable(v) or is_matcher(v)):
            raise ValueError(f"maximum version must be orderable or a matcher: {v!r}")
        return v

    @field_validator("recommended_version")
    @classmethod
    def validate_recommended(cls, v: str | None) -> str | None:
        if v is not None and not is_orderable(v):
            raise ValueError(f"recommended version must be orderable: {v!r}")
        return v

    def to_dependency(self) -> ProductDependency:
        return ProductDependency(
            product_group=self.product_group,
            product_name=self.product_name,
            minimum_version=self.minimum_version,
            maximum_version=self.maximum_version,
            recommended_version=self.recommended_version,
            optional=self.optional,
        )


class RecommendationBlob(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    recommended_product_dependencies: list[RecommendedDependency] = Field(
        alias=RECOMMENDED_PRODUCT_DEPENDENCIES_KEY
    )


def parse_recommendations(blob: str, source: str | None = None) -> list[ProductDependency]:
    """Parse a recommendation blob.

    Args:
        blob: JSON text embedded in an artifact
        source: Artifact the blob came from, for log messages

    Returns:
        The recommended dependencies, or an empty list if the blob is unusable
    """
    try:
        parsed = RecommendationBlob.model_validate(json.loads(blob))
    except (json.JSONDecodeError, ValidationError, TypeError) as e:
        logger.debug("Failed to load product dependencies for artifact '%s': %s", source, e)
        return []

    dependencies = []
    for recommended in parsed.recommended_product_dependencies:
        dependency = recommended.to_dependency()
        logger.info(
            "Product dependency recommendation made by artifact '%s': %s", source, dependency
        )
        dependencies.append(dependency)
    return dependencies


def discover(blobs: Iterable[tuple[str, str | None]]) -> list[ProductDependency]:
    """Collect recommendations from already-extracted artifact blobs.

    Args:
        blobs: (artifact name, blob or None) pairs, None meaning the
            artifact carried no recommendation

    Returns:
        All recommended dependencies, in artifact order
    """
    dependencies = []
    for source, blob in blobs:
        if blob is None:
            logger.debug("No product dependency found for artifact '%s'", source)
            continue
        dependencies.extend(parse_recommendations(blob, source))
    return dependencies


def load_blob_files(paths: Iterable[Path]) -> list[tuple[str, str | None]]:
    """Read recommendation blobs that a scanner wrote to disk."""
    blobs = []
    for path in paths:
        path = Path(path)
        try:
            blobs.append((str(path), path.read_text(encoding="utf-8")))
        except OSError as e:
            logger.warning("Could not read product dependency blob '%s': %s", path, e)
    return blobs


def recommendation_blob(dependencies: Iterable[ProductDependency]) -> str:
    """Render the blob a producing product embeds in its artifacts."""
    entries = []
    for dependency in dependencies:
        entry = {
            "product-group": dependency.product_group,
            "product-name": dependency.product_name,
            "minimum-version": dependency.minimum_version,
            "maximum-version": dependency.maximum_version,
        }
        if dependency.recommended_version is not None:
            entry["recommended-version"] = dependency.recommended_version
        if dependency.optional:
            entry["optional"] = True
        entries.append(entry)
    return json.dumps({RECOMMENDED_PRODUCT_DEPENDENCIES_KEY: entries}, sort_keys=True)
