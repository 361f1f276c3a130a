"""Permutation test results and the aggregate report."""

import logging
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from addonval.api_models import ErrorDetail, ValidationResult
from addonval.core import config as cfg
from addonval.exceptions import AddonValidationError
from addonval.validator import to_error_detail

from .classification import ErrorType, classify_error

logger = logging.getLogger("addonval.orchestration.report")


class PermutationTestResult(BaseModel):
    """Outcome of one permutation test case."""
    name: str
    prefix: str
    passed: bool
    validation_result: Optional[ValidationResult] = None
    transient_errors: List[str] = Field(default_factory=list)
    runtime_errors: List[str] = Field(default_factory=list)
    strict_mode_warnings: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    error_detail: Optional[ErrorDetail] = None

    @property
    def has_validation_errors(self) -> bool:
        v = self.validation_result
        if v is None:
            return False
        return bool(
            v.dependency_errors or v.missing_configs or v.unexpected_configs
            or v.missing_inputs or v.configuration_errors or not v.is_valid
        )

    def categories(self) -> List[ErrorType]:
        found = []
        if self.has_validation_errors:
            found.append(ErrorType.VALIDATION)
        if self.transient_errors:
            found.append(ErrorType.TRANSIENT)
        if self.runtime_errors:
            found.append(ErrorType.RUNTIME)
        return found


def _has_detailed_errors(validation: Optional[ValidationResult]) -> bool:
    if validation is None:
        return False
    return bool(
        validation.dependency_errors or validation.missing_configs
        or validation.unexpected_configs or validation.missing_inputs
        or validation.configuration_errors
    )


def _validation_of(result: PermutationTestResult) -> ValidationResult:
    if result.validation_result is None:
        result.validation_result = ValidationResult()
    result.validation_result.is_valid = False
    return result.validation_result


def categorize_error(message: str, result: PermutationTestResult) -> None:
    """File an error message into the result bucket its classification names."""
    classification = classify_error(message)
    if classification.error_type == ErrorType.VALIDATION:
        v = _validation_of(result)
        if classification.subtype == "missing_inputs":
            v.missing_inputs.append(message)
        elif classification.subtype == "configuration":
            v.configuration_errors.append(message)
        else:
            v.messages.append(message)
    elif classification.error_type == ErrorType.RUNTIME:
        result.runtime_errors.append(message)
    else:
        result.transient_errors.append(message)


def collect_result(
    name: str,
    prefix: str,
    validation: Optional[ValidationResult] = None,
    error: Union[None, str, BaseException] = None,
    strict: Optional[bool] = None,
) -> PermutationTestResult:
    """Build the result for one test case.

    A raw error is classified only when the validation result carries no
    detailed findings of its own; otherwise the detailed findings already
    describe the failure. Validator exceptions are classified by their error
    code: recoverable codes are transient, the rest are validation failures.
    Other errors are classified by message.
    """
    if strict is None:
        strict = cfg.STRICT_MODE
    message = str(error) if error is not None else None

    result = PermutationTestResult(
        name=name,
        prefix=prefix,
        passed=message is None and (validation is None or validation.is_valid),
        validation_result=validation,
        error=message,
    )
    if isinstance(error, Exception):
        result.error_detail = to_error_detail(error)
    if validation is not None and not strict:
        result.strict_mode_warnings = list(validation.warnings)

    if message is None or _has_detailed_errors(validation):
        return result
    if isinstance(error, AddonValidationError):
        if result.error_detail.recoverable:
            result.transient_errors.append(message)
        else:
            _validation_of(result).messages.append(message)
    else:
        categorize_error(message, result)
    return result


class PermutationReport(BaseModel):
    """Aggregate of every permutation result in one run."""
    offering_name: str = ""
    results: List[PermutationTestResult] = Field(default_factory=list)
    expected_total: int = 0
    timed_out: bool = False

    def add(self, result: PermutationTestResult) -> None:
        self.results.append(result)

    @property
    def total_tests(self) -> int:
        return len(self.results)

    @property
    def passed_tests(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed_tests(self) -> int:
        return self.total_tests - self.passed_tests

    @property
    def pass_rate(self) -> float:
        return self.passed_tests / self.total_tests * 100 if self.total_tests else 0.0

    @property
    def fail_rate(self) -> float:
        return self.failed_tests / self.total_tests * 100 if self.total_tests else 0.0

    def error_distribution(self) -> Dict[str, int]:
        """Count failed cases per error category. A case may count in several."""
        counts = {t.value: 0 for t in ErrorType}
        for r in self.results:
            if r.passed:
                continue
            for category in r.categories():
                counts[category.value] += 1
        return counts

    def render(self) -> str:
        lines = [
            f"Permutation test report: {self.offering_name}".rstrip(": "),
            f"Total: {self.total_tests}  Passed: {self.passed_tests}  Failed: {self.failed_tests}",
            f"Pass rate: {self.pass_rate:.1f}%  Fail rate: {self.fail_rate:.1f}%",
        ]
        if self.timed_out:
            lines.append(
                f"Timed out: {self.total_tests} of {self.expected_total} results collected"
            )
        dist = self.error_distribution()
        if any(dist.values()):
            lines.append("Error distribution: " + ", ".join(f"{k}={v}" for k, v in dist.items()))
        for r in self.results:
            if r.passed:
                continue
            summary = r.validation_result.summary() if r.validation_result else (r.error or "failed")
            lines.append(f"  FAIL {r.name} [{r.prefix}]: {summary}")
            for msg in r.transient_errors + r.runtime_errors:
                lines.append(f"    - {msg}")
        return "\n".join(lines)
