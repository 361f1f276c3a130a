"""Tests for data-driven error classification."""

import re

import pytest

from addonval.orchestration.classification import (
    PATTERNS,
    ErrorPattern,
    ErrorType,
    classify_error,
    match_pattern,
)


class TestClassifyError:
    """Pattern table evaluation."""

    @pytest.mark.parametrize("message,error_type,subtype", [
        ("missing required inputs: region", ErrorType.VALIDATION, "missing_inputs"),
        ("dependency validation failed: kms requires cos", ErrorType.VALIDATION, "dependency_validation"),
        ("found 2 unexpected configs", ErrorType.VALIDATION, "unexpected_configs"),
        ("unexpected config: cos should not be deployed", ErrorType.VALIDATION, "unexpected_deployment"),
        ("configuration validation error on input x", ErrorType.VALIDATION, "configuration"),
        ("TriggerDeployAndWait: deadline exceeded", ErrorType.TRANSIENT, "deployment_timeout"),
        ("TriggerUnDeployAndWait failed", ErrorType.TRANSIENT, "undeploy_timeout"),
        ("received 503 Service Unavailable error", ErrorType.TRANSIENT, "server_error"),
        ("request timeout after 30s", ErrorType.TRANSIENT, "general_timeout"),
        ("rate limit exceeded", ErrorType.TRANSIENT, "rate_limit"),
        ("connection reset by peer", ErrorType.TRANSIENT, "network_error"),
        ("panic: index out of range", ErrorType.RUNTIME, "panic"),
        ("runtime error: KeyError: 'x'", ErrorType.RUNTIME, "panic"),
        ("nil pointer dereference", ErrorType.RUNTIME, "nil_pointer"),
    ])
    def test_table(self, message, error_type, subtype):
        classification = classify_error(message)
        assert classification.error_type == error_type
        assert classification.subtype == subtype

    def test_case_insensitive(self):
        assert classify_error("RATE LIMIT hit").subtype == "rate_limit"

    def test_unknown_is_transient(self):
        classification = classify_error("something odd happened")
        assert classification.error_type == ErrorType.TRANSIENT
        assert classification.subtype == "unknown"
        assert classification.confidence == 0.0

    def test_highest_confidence_wins(self):
        """deployment timeout (0.95) beats the generic timeout (0.80)."""
        assert classify_error("deployment timeout reached").subtype == "deployment_timeout"

    def test_tie_keeps_table_order(self):
        """Both at 0.90: dependency validation is listed first."""
        message = "dependency validation failed and unexpected configs found"
        assert classify_error(message).subtype == "dependency_validation"

    def test_custom_table(self):
        patterns = [ErrorPattern(re.compile("quota"), ErrorType.TRANSIENT, "quota", 0.5)]
        assert classify_error("quota exceeded", patterns).subtype == "quota"
        assert match_pattern("panic: x", patterns) is None

    def test_table_is_compiled(self):
        assert all(hasattr(p.pattern, "search") for p in PATTERNS)
