"""Tests for result models, addon models and error codes."""

import pytest

from addonval.api_models import (
    ERROR_RECOVERABILITY,
    DependencyError,
    ErrorCode,
    OfferingReferenceDetail,
    ValidationResult,
    make_addon_key,
    parse_addon_key,
)
from addonval.catalog.models import CatalogDependency
from addonval.circular.detector import ConfigDependencyInfo, detect_circular_dependencies, raise_for_cycles
from addonval.dependency.models import AddonConfig, AddonTestCase
from addonval.exceptions import CircularDependencyError, ReferenceResolutionError


class TestOfferingReferenceDetail:
    """Identity and partial matching."""

    def test_key_round_trip(self):
        detail = OfferingReferenceDetail(name="kms", version="v1.0.0", flavor="instance")
        assert detail.key == "kms:v1.0.0:instance"
        assert parse_addon_key(detail.key) == detail

    def test_malformed_key(self):
        assert parse_addon_key("kms:v1.0.0") is None
        assert make_addon_key("a", "", "") == "a::"

    def test_partial(self):
        assert OfferingReferenceDetail(name="kms").is_partial
        assert not OfferingReferenceDetail(name="kms", version="v1", flavor="fc").is_partial

    def test_matches_partially(self):
        full = OfferingReferenceDetail(name="kms", version="v1.0.0", flavor="instance")
        assert full.matches_partially(OfferingReferenceDetail(name="kms", flavor="instance"))
        assert not full.matches_partially(OfferingReferenceDetail(name="kms", flavor="fc"))
        assert not full.matches_partially(OfferingReferenceDetail(name="cos"))

    def test_describe(self):
        assert OfferingReferenceDetail(name="kms", version="1.2.0", flavor="fc").describe() == "kms v1.2.0 (fc)"
        assert OfferingReferenceDetail(name="kms").describe() == "kms"


class TestValidationResult:
    """Verdict helpers."""

    def test_add_error_invalidates(self):
        result = ValidationResult()
        result.add_error("boom")
        assert not result.is_valid
        assert result.messages == ["boom"]

    def test_warning_keeps_valid(self):
        result = ValidationResult()
        result.add_warning("careful")
        assert result.is_valid

    def test_merge_is_conjunction(self):
        first = ValidationResult()
        second = ValidationResult()
        second.add_error("bad")
        second.missing_configs.append(OfferingReferenceDetail(name="kms"))

        first.merge(second)

        assert not first.is_valid
        assert first.messages == ["bad"]
        assert len(first.missing_configs) == 1

    def test_summary(self):
        assert ValidationResult().summary() == "valid"
        result = ValidationResult(is_valid=False)
        result.dependency_errors.append(DependencyError(
            addon=OfferingReferenceDetail(name="root"),
            dependency_required=OfferingReferenceDetail(name="kms"),
        ))
        assert result.summary() == "invalid: dependency_errors=1 missing=0 unexpected=0 warnings=0"


class TestAddonModels:
    """AddonConfig and AddonTestCase."""

    def test_tri_state_enabled(self):
        assert AddonConfig("a", enabled=True).is_enabled
        assert AddonConfig("a", enabled=False).is_disabled
        unset = AddonConfig("a")
        assert not unset.is_enabled and not unset.is_disabled

    def test_find_dependency_by_flavor(self):
        root = AddonConfig("root", dependencies=[AddonConfig("kms", "instance"), AddonConfig("kms", "fc")])
        assert root.find_dependency("kms", "fc").offering_flavor == "fc"
        assert root.find_dependency("kms").offering_flavor == "instance"
        assert root.find_dependency("cos") is None

    def test_test_case_is_frozen(self):
        case = AddonTestCase("n", "p", (AddonConfig("kms", enabled=True), AddonConfig("cos", enabled=False)))
        assert [d.offering_name for d in case.enabled_dependencies] == ["kms"]
        assert [d.offering_name for d in case.disabled_dependencies] == ["cos"]
        with pytest.raises(AttributeError):
            case.name = "other"

    def test_chosen_flavor(self):
        assert CatalogDependency(name="a", flavors=["x", "y"], default_flavor="y").chosen_flavor == "y"
        assert CatalogDependency(name="a", flavors=["x", "y"]).chosen_flavor == "x"
        assert CatalogDependency(name="a").chosen_flavor == "fully-configurable"


class TestErrorCodes:
    """Error registry and exceptions."""

    def test_every_code_has_recoverability(self):
        codes = [v for k, v in vars(ErrorCode).items() if k.isupper()]
        assert set(codes) == set(ERROR_RECOVERABILITY)

    def test_resolution_error_code(self):
        assert ReferenceResolutionError().code == ErrorCode.REFERENCE_RESOLUTION_FAILED

    def test_raise_for_cycles(self):
        waiting = [
            ConfigDependencyInfo("a", "A", {"x": "ref:/configs/b/outputs/x"}),
            ConfigDependencyInfo("b", "B", {"x": "ref:/configs/a/outputs/x"}),
        ]
        with pytest.raises(CircularDependencyError) as exc:
            raise_for_cycles(detect_circular_dependencies(waiting))
        assert exc.value.code == ErrorCode.CIRCULAR_DEPENDENCY
        assert len(exc.value.cycles) == 1

    def test_raise_for_cycles_noop(self):
        raise_for_cycles([])
