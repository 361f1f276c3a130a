"""Tests for the local catalog manifest reader."""

import json

import pytest

from addonval.api_models import ErrorCode
from addonval.dependency.models import SkipEntry
from addonval.exceptions import ManifestError, PermutationInputError
from addonval.permutations import generate_for_manifest
from addonval.permutations.manifest import load_manifest

OFFERING = "deploy-arch-ibm-event-notifications"


@pytest.fixture
def manifest_file(tmp_path):
    data = {
        "products": [
            {
                "name": "deploy-arch-ibm-event-notifications",
                "label": "Event Notifications",
                "flavors": [
                    {
                        "name": "fully-configurable",
                        "install_type": "fullstack",
                        "dependencies": [
                            {
                                "name": "deploy-arch-ibm-kms",
                                "catalog_id": "cat-1",
                                "id": "kms-id",
                                "version": "^v5.0.0",
                                "flavors": ["fully-configurable", "instance"],
                                "optional": True,
                                "on_by_default": True,
                            },
                            {
                                "name": "deploy-arch-ibm-cos",
                                "catalog_id": "cat-1",
                                "id": "cos-id",
                                "version": "^v8.0.0",
                                "optional": True,
                            },
                        ],
                        "unknown_field": "ignored",
                    }
                ],
            }
        ]
    }
    path = tmp_path / "ibm_catalog.json"
    path.write_text(json.dumps(data))
    return path


class TestLoadManifest:
    """Tests for load_manifest()."""

    def test_load(self, manifest_file):
        manifest = load_manifest(manifest_file)
        flavor = manifest.find_flavor("deploy-arch-ibm-event-notifications", "fully-configurable")
        assert [d.name for d in flavor.dependencies] == ["deploy-arch-ibm-kms", "deploy-arch-ibm-cos"]
        assert flavor.dependencies[0].flavors == ["fully-configurable", "instance"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ManifestError) as exc:
            load_manifest(tmp_path / "nope.json")
        assert exc.value.code == ErrorCode.MANIFEST_NOT_FOUND

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "ibm_catalog.json"
        path.write_text("{not json")
        with pytest.raises(ManifestError) as exc:
            load_manifest(path)
        assert exc.value.code == ErrorCode.MANIFEST_INVALID

    def test_schema_violation(self, tmp_path):
        path = tmp_path / "ibm_catalog.json"
        path.write_text(json.dumps({"products": [{"label": "no name"}]}))
        with pytest.raises(ManifestError) as exc:
            load_manifest(path)
        assert exc.value.code == ErrorCode.MANIFEST_INVALID


class TestFindFlavor:
    """Lookup failures are fatal input errors."""

    def test_missing_offering(self, manifest_file):
        manifest = load_manifest(manifest_file)
        with pytest.raises(ManifestError) as exc:
            manifest.find_flavor("deploy-arch-ibm-unknown", "fully-configurable")
        assert exc.value.code == ErrorCode.OFFERING_NOT_FOUND

    def test_missing_flavor(self, manifest_file):
        manifest = load_manifest(manifest_file)
        with pytest.raises(ManifestError) as exc:
            manifest.find_flavor("deploy-arch-ibm-event-notifications", "instance")
        assert exc.value.code == ErrorCode.FLAVOR_NOT_FOUND


class TestDependencySelection:
    """Tests for dependencies_with_flavors() and select()."""

    def test_dependencies_with_flavors(self, manifest_file):
        flavor = load_manifest(manifest_file).find_flavor(
            "deploy-arch-ibm-event-notifications", "fully-configurable"
        )
        deps = flavor.dependencies_with_flavors()
        assert deps[0].flavors == ["fully-configurable", "instance"]
        assert deps[1].flavors == []

    def test_select_keeps_declaration_order(self, manifest_file):
        flavor = load_manifest(manifest_file).find_flavor(
            "deploy-arch-ibm-event-notifications", "fully-configurable"
        )
        selected = flavor.select(
            ["deploy-arch-ibm-cos", "deploy-arch-ibm-kms"], "deploy-arch-ibm-event-notifications"
        )
        assert [d.name for d in selected] == ["deploy-arch-ibm-kms", "deploy-arch-ibm-cos"]

    def test_select_undeclared_name(self, manifest_file):
        flavor = load_manifest(manifest_file).find_flavor(
            "deploy-arch-ibm-event-notifications", "fully-configurable"
        )
        with pytest.raises(PermutationInputError) as exc:
            flavor.select(["deploy-arch-ibm-secrets-manager"], "deploy-arch-ibm-event-notifications")
        assert exc.value.code == ErrorCode.DEPENDENCY_NOT_DECLARED


class TestGenerateForManifest:
    """Manifest flavor to permutation test cases in one call."""

    def test_all_declared_dependencies(self, manifest_file):
        cases = generate_for_manifest(
            manifest_file, OFFERING, "fully-configurable", "addonperm", random_tag="abc123"
        )

        # none enabled: 1, kms (two flavors): 2, cos: 1
        assert len(cases) == 4
        assert all(c.name.startswith("abc123-dai-e-n-") for c in cases)
        assert {d.offering_name for d in cases[0].dependencies} == {"deploy-arch-ibm-kms", "deploy-arch-ibm-cos"}

    def test_selected_dependencies_only(self, manifest_file):
        cases = generate_for_manifest(
            manifest_file, OFFERING, "fully-configurable", "addonperm",
            dependency_names=["deploy-arch-ibm-cos"], random_tag="abc123",
        )

        assert len(cases) == 1
        assert [d.offering_name for d in cases[0].disabled_dependencies] == ["deploy-arch-ibm-cos"]

    def test_skip_permutations_applied(self, manifest_file):
        cases = generate_for_manifest(
            manifest_file, OFFERING, "fully-configurable", "addonperm",
            skip_permutations=[[SkipEntry("deploy-arch-ibm-kms", "instance")]],
            random_tag="abc123",
        )

        assert len(cases) == 3
        for case in cases:
            assert [(d.offering_name, d.offering_flavor) for d in case.enabled_dependencies] != [
                ("deploy-arch-ibm-kms", "instance")
            ]

    def test_undeclared_dependency(self, manifest_file):
        with pytest.raises(PermutationInputError):
            generate_for_manifest(
                manifest_file, OFFERING, "fully-configurable", "addonperm",
                dependency_names=["deploy-arch-ibm-secrets-manager"],
            )

    def test_unknown_flavor(self, manifest_file):
        with pytest.raises(ManifestError) as exc_info:
            generate_for_manifest(manifest_file, OFFERING, "quickstart", "addonperm")
        assert exc_info.value.code == ErrorCode.FLAVOR_NOT_FOUND
