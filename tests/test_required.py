"""Tests for required-dependency enforcement."""

import pytest

from addonval.catalog.models import CatalogDependency
from addonval.dependency.models import AddonConfig
from addonval.dependency.required import (
    declared_dependencies,
    enforce_required_dependencies,
    is_dependency_required,
)


class TestIsDependencyRequired:
    """Required status from catalog flags."""

    def test_explicit_optional_false(self):
        assert is_dependency_required(CatalogDependency(name="a", optional=False))

    def test_explicit_optional_true(self):
        assert not is_dependency_required(CatalogDependency(name="a", optional=True, on_by_default=True))

    def test_missing_flag_defaults_to_optional(self):
        dep = CatalogDependency(name="a", on_by_default=True)
        assert not is_dependency_required(dep, fallback_to_on_by_default=False)

    def test_missing_flag_with_fallback(self):
        assert is_dependency_required(
            CatalogDependency(name="a", on_by_default=True), fallback_to_on_by_default=True
        )
        assert not is_dependency_required(
            CatalogDependency(name="a", on_by_default=False), fallback_to_on_by_default=True
        )

    def test_fallback_without_on_by_default(self):
        assert not is_dependency_required(CatalogDependency(name="a"), fallback_to_on_by_default=True)


@pytest.fixture
def root():
    return AddonConfig(
        offering_name="root",
        dependencies=[
            AddonConfig("kms", enabled=False),
            AddonConfig("cos", enabled=False),
            AddonConfig("logs", enabled=True),
        ],
    )


@pytest.fixture
def declared():
    return [
        CatalogDependency(name="kms", optional=False),
        CatalogDependency(name="cos", optional=True),
        CatalogDependency(name="logs", optional=False),
    ]


class TestEnforceRequiredDependencies:
    """Force-enabling disabled required dependencies."""

    def test_required_disabled_is_forced(self, root, declared):
        result = enforce_required_dependencies(root, declared, strict=True)

        kms = result.config.find_dependency("kms")
        assert kms.is_enabled
        assert kms.is_required
        assert kms.required_by == ["root"]
        assert result.forced == ["kms"]

    def test_optional_disabled_untouched(self, root, declared):
        result = enforce_required_dependencies(root, declared, strict=True)
        assert result.config.find_dependency("cos").is_disabled

    def test_input_not_modified(self, root, declared):
        enforce_required_dependencies(root, declared, strict=True)
        assert root.find_dependency("kms").is_disabled
        assert not root.find_dependency("kms").is_required

    def test_strict_records_error(self, root, declared):
        result = enforce_required_dependencies(root, declared, strict=True)

        assert not result.validation.is_valid
        assert result.validation.messages == [
            "Required dependency kms was force-enabled despite being disabled (required by root)"
        ]

    def test_permissive_records_warning(self, root, declared):
        result = enforce_required_dependencies(root, declared, strict=False)

        assert result.validation.is_valid
        assert result.validation.warnings == [
            "Required dependency kms was force-enabled despite being disabled (required by root)"
        ]

    def test_nothing_to_force(self, declared):
        root = AddonConfig("root", dependencies=[AddonConfig("kms", enabled=True)])
        result = enforce_required_dependencies(root, declared, strict=True)

        assert result.forced == []
        assert result.validation.is_valid


class TestDeclaredDependencies:
    """Tests for declared_dependencies()."""

    def test_reads_root_version(self, catalog, dep):
        locator = catalog.add("root", dependencies=[dep("kms"), dep("cos")])
        root = AddonConfig("root", catalog_id="cat-1", offering_id="root-id", version_locator=locator)

        assert [d.name for d in declared_dependencies(catalog, root)] == ["kms", "cos"]


class TestNestedRequiredDependencies:
    """Enforcement below the root's direct dependencies."""

    @pytest.fixture
    def nested_root(self, catalog, dep):
        locator = catalog.add("event-notifications", dependencies=[dep("kms", optional=False)])
        return AddonConfig(
            offering_name="root",
            dependencies=[
                AddonConfig(
                    offering_name="event-notifications",
                    enabled=True,
                    catalog_id="cat-1",
                    offering_id="event-notifications-id",
                    version_locator=locator,
                    dependencies=[AddonConfig("kms", enabled=False)],
                ),
            ],
        )

    def test_nested_required_dependency_is_forced(self, catalog, nested_root):
        """A disabled grandchild required by its own parent is force-enabled."""
        result = enforce_required_dependencies(
            nested_root, [], strict=False,
            lookup=lambda parent: declared_dependencies(catalog, parent),
        )

        kms = result.config.find_dependency("event-notifications").find_dependency("kms")
        assert kms.is_enabled
        assert kms.is_required
        assert kms.required_by == ["event-notifications"]
        assert result.forced == ["kms"]
        assert result.validation.warnings == [
            "Required dependency kms was force-enabled despite being disabled "
            "(required by event-notifications)"
        ]

    def test_nested_input_not_modified(self, catalog, nested_root):
        enforce_required_dependencies(
            nested_root, [], strict=True,
            lookup=lambda parent: declared_dependencies(catalog, parent),
        )
        assert nested_root.find_dependency("event-notifications").find_dependency("kms").is_disabled

    def test_without_lookup_only_direct_dependencies_checked(self, nested_root):
        result = enforce_required_dependencies(nested_root, [], strict=True)

        kms = result.config.find_dependency("event-notifications").find_dependency("kms")
        assert kms.is_disabled
        assert result.forced == []

    def test_lookup_failure_leaves_subtree_and_warns(self, catalog, nested_root, caplog):
        """Unreadable metadata for a nested parent is logged, not raised."""
        catalog.failing.add("event-notifications-id")

        with caplog.at_level("WARNING", logger="addonval.dependency.required"):
            result = enforce_required_dependencies(
                nested_root, [], strict=True,
                lookup=lambda parent: declared_dependencies(catalog, parent),
            )

        kms = result.config.find_dependency("event-notifications").find_dependency("kms")
        assert kms.is_disabled
        assert result.validation.is_valid
        assert "Could not check required dependencies of event-notifications" in caplog.text

    def test_config_without_catalog_identity_not_looked_up(self, catalog):
        calls = []
        root = AddonConfig(
            offering_name="root",
            dependencies=[
                AddonConfig("event-notifications", enabled=True, dependencies=[AddonConfig("kms", enabled=False)]),
            ],
        )

        enforce_required_dependencies(root, [], strict=True, lookup=lambda parent: calls.append(parent) or [])

        assert calls == []
