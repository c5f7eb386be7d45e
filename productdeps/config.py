"""Build configuration for a packaged product.

The configuration lives in a YAML file next to the product's sources::

    product-group: com.example
    product-name: orders
    product-version: 1.4.0
    product-type: service.v1
    product-dependencies:
      - product-group: com.example
        product-name: api
        minimum-version: 1.2.0
        maximum-version: 1.x.x
    ignored-product-dependencies: ["com.example:legacy"]
    optional-product-dependencies: ["com.example:cache"]
    in-repo-products: ["com.example:cache"]
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError
from .lockfile import LOCKFILE_NAME
from .models import ProductDependency, ProductId, ProductType
from .resolve import OptionalConflictPolicy

DEFAULT_MANIFEST_PATH = "build/deployment/manifest.yml"


class DependencyConfig(BaseModel):
    """A product dependency as written in the configuration file."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    product_group: str = Field(alias="product-group", min_length=1)
    product_name: str = Field(alias="product-name", min_length=1)
    minimum_version: str = Field(alias="minimum-version")
    maximum_version: str = Field(alias="maximum-version")
    recommended_version: str | None = Field(default=None, alias="recommended-version")
    optional: bool = False

    def to_dependency(self) -> ProductDependency:
        return ProductDependency(
            product_group=self.product_group,
            product_name=self.product_name,
            minimum_version=self.minimum_version,
            maximum_version=self.maximum_version,
            recommended_version=self.recommended_version,
            optional=self.optional,
        )


class ProductConfig(BaseModel):
    """Everything needed to resolve dependencies and write the manifest."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    product_group: str = Field(alias="product-group", min_length=1)
    product_name: str = Field(alias="product-name", min_length=1)
    product_version: str = Field(alias="product-version")
    product_type: ProductType = Field(default=ProductType.SERVICE, alias="product-type")
    product_dependencies: list[DependencyConfig] = Field(default_factory=list, alias="product-dependencies")
    ignored_product_dependencies: list[ProductId] = Field(
        default_factory=list, alias="ignored-product-dependencies"
    )
    optional_product_dependencies: list[ProductId] = Field(
        default_factory=list, alias="optional-product-dependencies"
    )
    in_repo_products: list[ProductId] = Field(default_factory=list, alias="in-repo-products")
    optional_conflict_policy: OptionalConflictPolicy = Field(
        default=OptionalConflictPolicy.REJECT, alias="optional-conflict-policy"
    )
    manifest_extensions: dict[str, Any] = Field(default_factory=dict, alias="manifest-extensions")
    lockfile: Path = Path(LOCKFILE_NAME)
    manifest: Path = Path(DEFAULT_MANIFEST_PATH)

    @field_validator(
        "ignored_product_dependencies",
        "optional_product_dependencies",
        "in_repo_products",
        mode="before",
    )
    @classmethod
    def parse_product_ids(cls, v):
        if not isinstance(v, list):
            raise ValueError("Expected a list of 'group:name' product ids")
        ids = []
        for item in v:
            if isinstance(item, ProductId):
                ids.append(item)
            elif isinstance(item, dict):
                ids.append(ProductId(item.get("product-group", ""), item.get("product-name", "")))
            else:
                ids.append(ProductId.parse(str(item)))
        return ids

    @property
    def product_id(self) -> ProductId:
        return ProductId(self.product_group, self.product_name)

    def declared_dependencies(self) -> list[ProductDependency]:
        return [dep.to_dependency() for dep in self.product_dependencies]


def load_config(path: Path) -> ProductConfig:
    """Load and validate a product configuration file.

    Args:
        path: Path to the YAML configuration

    Returns:
        The validated configuration, with lockfile and manifest paths made
        relative to the configuration file's directory

    Raises:
        ConfigError: If the file is missing, not YAML, or fails validation
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file {path} not found") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")

    try:
        config = ProductConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}:\n{e}") from e

    base = path.parent
    if not config.lockfile.is_absolute():
        config.lockfile = base / config.lockfile
    if not config.manifest.is_absolute():
        config.manifest = base / config.manifest
    return config
