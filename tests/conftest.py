"""Pytest configuration and fixtures."""


import pytest

from productdeps.models import ProductDependency, ProductId


@pytest.fixture
def own_id():
    """Identity of the product whose dependencies are being resolved."""
    return ProductId("com.example", "orders")


@pytest.fixture
def make_dependency():
    """Factory for product dependencies on com.example products."""

    def _make(
        name="api",
        minimum="1.0.0",
        maximum="1.x.x",
        recommended=None,
        optional=False,
        group="com.example",
    ):
        return ProductDependency(
            product_group=group,
            product_name=name,
            minimum_version=minimum,
            maximum_version=maximum,
            recommended_version=recommended,
            optional=optional,
        )

    return _make


@pytest.fixture
def sample_config():
    """Sample product.yml content for testing."""
    return """\
product-group: com.example
product-name: orders
product-version: 1.4.0
product-type: service.v1
product-dependencies:
  - product-group: com.example
    product-name: api
    minimum-version: 1.2.0
    maximum-version: 1.x.x
    recommended-version: 1.4.0
ignored-product-dependencies: ["com.example:legacy"]
optional-product-dependencies: ["com.example:cache"]
in-repo-products: ["com.example:cache"]
manifest-extensions:
  team: payments
"""


@pytest.fixture
def sample_blob():
    """A recommendation blob as embedded in an upstream artifact."""
    return """{
  "recommended-product-dependencies": [
    {
      "product-group": "com.example",
      "product-name": "cache",
      "minimum-version": "1.4.0",
      "maximum-version": "1.x.x",
      "recommended-version": "1.4.0"
    }
  ]
}"""


@pytest.fixture
def config_file(tmp_path, sample_config):
    """Write the sample configuration to a temporary product.yml."""
    path = tmp_path / "product.yml"
    path.write_text(sample_config)
    return path
