"""Tests for product dependency resolution."""

import json

import pytest

from productdeps.discover import discover
from productdeps.errors import (
    DuplicateDeclarationError,
    IgnoredConflictError,
    InvalidVersionFormatError,
    OptionalConflictError,
    SelfDependencyError,
    VersionRangeConflictError,
)
from productdeps.models import AdvisoryKind, ProductId
from productdeps.resolve import (
    OptionalConflictPolicy,
    ResolutionEngine,
    resolve_product_dependencies,
)


class TestDeclaredValidation:
    """Test validation of declared dependencies."""

    def test_self_dependency(self, own_id, make_dependency):
        """Should reject a declared dependency on the product itself."""
        engine = ResolutionEngine(own_id)

        with pytest.raises(SelfDependencyError) as exc_info:
            engine.resolve([make_dependency(name="orders")], [])
        assert exc_info.value.product_id == own_id

    def test_duplicate_declaration(self, own_id, make_dependency):
        """Should reject two declarations for the same product."""
        first = make_dependency(minimum="1.0.0")
        second = make_dependency(minimum="1.1.0")

        with pytest.raises(DuplicateDeclarationError) as exc_info:
            ResolutionEngine(own_id).resolve([first, second], [])
        assert exc_info.value.first == first
        assert exc_info.value.second == second

    def test_declared_and_ignored(self, own_id, make_dependency):
        """Should reject a product that is both declared and ignored."""
        dep = make_dependency()
        engine = ResolutionEngine(own_id, ignored=[dep.product_id])

        with pytest.raises(IgnoredConflictError):
            engine.resolve([dep], [])

    def test_non_optional_declared_and_optional(self, own_id, make_dependency):
        """Should reject a non-optional declaration also listed as optional."""
        dep = make_dependency(optional=False)
        engine = ResolutionEngine(own_id, optional=[dep.product_id])

        with pytest.raises(OptionalConflictError):
            engine.resolve([dep], [])

    def test_optional_declared_and_optional(self, own_id, make_dependency):
        """An optional declaration listed as optional does not conflict."""
        dep = make_dependency(optional=True)
        result = ResolutionEngine(own_id, optional=[dep.product_id]).resolve([dep], [])

        assert list(result.report) == [dep]

    def test_prefer_optional_policy(self, own_id, make_dependency):
        """Should let the optional list win when configured to."""
        dep = make_dependency(optional=False)
        engine = ResolutionEngine(
            own_id,
            optional=[dep.product_id],
            optional_conflict_policy=OptionalConflictPolicy.PREFER_OPTIONAL,
        )

        result = engine.resolve([dep], [])

        assert list(result.report) == [dep.as_optional()]

    def test_declared_minimum_must_be_orderable(self, own_id, make_dependency):
        """Should reject declared versions that cannot be compared."""
        with pytest.raises(InvalidVersionFormatError):
            ResolutionEngine(own_id).resolve([make_dependency(minimum="1.0.0-snapshot")], [])

    def test_declared_maximum_must_be_orderable_or_matcher(self, own_id, make_dependency):
        """Should reject a declared maximum that cannot bound a range."""
        with pytest.raises(InvalidVersionFormatError):
            ResolutionEngine(own_id).resolve([make_dependency(maximum="2.0.0-snapshot")], [])

    def test_declared_range_conflict(self, own_id, make_dependency):
        """Should reject a declaration whose minimum exceeds its maximum."""
        with pytest.raises(VersionRangeConflictError):
            ResolutionEngine(own_id).resolve([make_dependency(minimum="2.0.0", maximum="1.0.0")], [])


class TestDiscoveredMerging:
    """Test folding discovered dependencies into the declared ones."""

    def test_declared_only(self, own_id, make_dependency):
        """Should pass declared dependencies through."""
        dep = make_dependency(recommended="1.2.0")
        result = ResolutionEngine(own_id).resolve([dep], [])

        assert list(result.report) == [dep]
        assert result.advisories == []

    def test_discovered_only(self, own_id, make_dependency):
        """Should add discovered dependencies that were not declared."""
        dep = make_dependency(name="cache")
        result = ResolutionEngine(own_id).resolve([], [dep])

        assert list(result.report) == [dep]

    def test_tighter_declared_minimum(self, own_id, make_dependency):
        """Should merge and flag the recommendation the declaration repeats."""
        discovered = make_dependency(minimum="1.0.0", maximum="2.0.0", recommended="1.5.0")
        declared = make_dependency(minimum="1.2.0", maximum="2.0.0", recommended="1.5.0")

        result = ResolutionEngine(own_id).resolve([declared], [discovered])

        assert list(result.report) == [make_dependency(minimum="1.2.0", maximum="2.0.0", recommended="1.5.0")]
        assert len(result.advisories) == 1
        assert result.advisories[0].kind is AdvisoryKind.REDUNDANT_RECOMMENDATION
        assert result.advisories[0].product_id == declared.product_id

    def test_redundant_declaration(self, own_id, make_dependency):
        """Should advise removing a declaration the discovered one already covers."""
        declared = make_dependency(minimum="1.0.0", maximum="2.x.x")
        discovered = make_dependency(minimum="1.2.0", maximum="1.x.x", recommended="1.3.0")

        result = ResolutionEngine(own_id).resolve([declared], [discovered])

        assert list(result.report) == [discovered]
        assert [a.kind for a in result.advisories] == [AdvisoryKind.REDUNDANT_DECLARATION]
        assert result.advisories[0].declared == declared
        assert result.advisories[0].discovered == discovered

    def test_no_advisory_for_useful_declaration(self, own_id, make_dependency):
        """A declaration that narrows the range and recommends differently stays silent."""
        declared = make_dependency(minimum="1.2.0", maximum="1.x.x", recommended="1.4.0")
        discovered = make_dependency(minimum="1.0.0", maximum="2.x.x", recommended="1.3.0")

        result = ResolutionEngine(own_id).resolve([declared], [discovered])

        assert result.report.dependencies[0].recommended_version == "1.4.0"
        assert result.advisories == []

    def test_declared_and_discovered_conflict(self, own_id, make_dependency):
        """Should fail when declared and discovered ranges do not overlap."""
        declared = make_dependency(minimum="2.0.0", maximum="2.x.x")
        discovered = make_dependency(minimum="1.0.0", maximum="1.x.x")

        with pytest.raises(VersionRangeConflictError):
            ResolutionEngine(own_id).resolve([declared], [discovered])

    def test_discovered_self_dependency_dropped(self, own_id, make_dependency):
        """Should silently drop discovered dependencies on the product itself."""
        result = ResolutionEngine(own_id).resolve([], [make_dependency(name="orders")])

        assert len(result.report) == 0

    def test_discovered_duplicates_deduped(self, own_id, make_dependency):
        """Should merge discovered duplicates before folding, advising once."""
        first = make_dependency(minimum="1.0.0", maximum="1.x.x")
        second = make_dependency(minimum="1.2.0", maximum="1.x.x", recommended="1.3.0")
        declared = make_dependency(minimum="1.0.0", maximum="2.x.x")

        result = ResolutionEngine(own_id).resolve([declared], [first, second, first])

        assert list(result.report) == [second]
        assert len(result.advisories) == 1

    def test_ignored_discovered_dropped(self, own_id, make_dependency):
        """Should drop discovered dependencies on ignored products."""
        dep = make_dependency(name="legacy")
        result = ResolutionEngine(own_id, ignored=[dep.product_id]).resolve([], [dep])

        assert len(result.report) == 0

    def test_optional_set_forces_optional(self, own_id, make_dependency):
        """Optional-set membership wins over the merged flag."""
        dep = make_dependency(name="cache", optional=False)
        engine = ResolutionEngine(own_id, optional=[dep.product_id, ProductId("com.example", "absent")])

        result = engine.resolve([], [dep])

        assert list(result.report) == [dep.as_optional()]

    def test_declared_optional_stays_optional(self, own_id, make_dependency):
        """A product declared optional stays optional after merging."""
        declared = make_dependency(minimum="1.0.0", optional=True)
        discovered = make_dependency(minimum="1.1.0", optional=False)

        result = ResolutionEngine(own_id).resolve([declared], [discovered])

        assert result.report.dependencies[0].optional is True

    def test_output_sorted(self, own_id, make_dependency):
        """Should sort the report by product id."""
        result = ResolutionEngine(own_id).resolve(
            [make_dependency(name="zeta")],
            [make_dependency(name="alpha"), make_dependency(name="beta", group="aaa")],
        )

        assert [str(product_id) for product_id in result.report.product_ids] == [
            "aaa:beta",
            "com.example:alpha",
            "com.example:zeta",
        ]

    def test_inputs_not_mutated(self, own_id, make_dependency):
        """Should leave the caller's collections untouched."""
        declared = [make_dependency(minimum="1.0.0")]
        discovered = [make_dependency(minimum="1.1.0"), make_dependency(name="cache")]
        declared_copy, discovered_copy = list(declared), list(discovered)

        ResolutionEngine(own_id, optional=[ProductId("com.example", "cache")]).resolve(declared, discovered)

        assert declared == declared_copy
        assert discovered == discovered_copy

    def test_convenience_function(self, own_id, make_dependency):
        """Should resolve in one call."""
        result = resolve_product_dependencies(
            own_id,
            declared=[make_dependency()],
            discovered=[make_dependency(name="cache")],
            ignored=[ProductId("com.example", "legacy")],
        )

        assert [dep.product_name for dep in result.report] == ["api", "cache"]

    def test_unorderable_discovered_maximum_filtered(self, own_id, make_dependency):
        """Should resolve when an artifact recommends a maximum that cannot be ordered."""
        blob = json.dumps({
            "recommended-product-dependencies": [{
                "product-group": "com.example",
                "product-name": "api",
                "minimum-version": "1.0.0",
                "maximum-version": "2.0.0-snapshot",
            }]
        })
        declared = make_dependency(maximum="2.x.x")

        result = ResolutionEngine(own_id).resolve([declared], discover([("api.jar", blob)]))

        assert list(result.report) == [declared]
        assert result.advisories == []
