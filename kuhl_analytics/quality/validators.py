"""
Import Validation

Rule-based checks over a parsed batch before it is written. Checks never
block an import: failures surface as warnings in the import response so an
operator can see degraded seasons, duplicate keys or negative amounts.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

import polars as pl
import structlog

from kuhl_analytics.ingestion.records import RecordType, record_to_dict

logger = structlog.get_logger(__name__)

CANONICAL_SEASON_PATTERN = r"^\d{2}(FA|SP)$"


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    def warnings(self) -> List[str]:
        """Messages of every failed check."""
        return [check.message for check in self.checks if not check.passed]


def _missing(name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
    return ValidationCheck(
        name=name,
        passed=False,
        severity=severity,
        message=f"Column '{column}' not found",
    )


class DataValidator:
    """
    Chainable set of checks run against a polars DataFrame.

    Example:
        validator = (
            DataValidator()
            .add_not_empty_check("style_number")
            .add_pattern_check("season", CANONICAL_SEASON_PATTERN)
        )
        result = validator.validate(df)
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    def add_not_empty_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that a column has no null or blank values"""
        name = f"not_empty_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing(name, column, severity)

            expr = pl.col(column).is_null()
            if df.schema[column] == pl.Utf8:
                expr = expr | (pl.col(column).str.strip_chars() == "")
            empty = df.filter(expr).height
            return ValidationCheck(
                name=name,
                passed=empty == 0,
                severity=severity,
                message=f"Column '{column}' has {empty} empty values" if empty else f"Column '{column}' has no empty values",
                details={"empty_count": empty},
                failed_rows=empty,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        columns: Sequence[str],
        severity: ValidationSeverity = ValidationSeverity.WARNING,
    ) -> "DataValidator":
        """Add check that a (composite) key is unique"""
        columns = list(columns)
        name = f"unique_{'_'.join(columns)}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            for column in columns:
                if column not in df.columns:
                    return _missing(name, column, severity)

            duplicates = df.height - df.select(columns).unique().height
            return ValidationCheck(
                name=name,
                passed=duplicates == 0,
                severity=severity,
                message=f"{duplicates} duplicate rows on ({', '.join(columns)})" if duplicates else f"({', '.join(columns)}) is unique",
                details={"duplicate_count": duplicates},
                failed_rows=duplicates,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.WARNING,
    ) -> "DataValidator":
        """Add check for values within specified range"""
        name = f"range_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing(name, column, severity)

            conditions = []
            if min_value is not None:
                conditions.append(pl.col(column) < min_value)
            if max_value is not None:
                conditions.append(pl.col(column) > max_value)
            if not conditions:
                return ValidationCheck(name=name, passed=True, severity=severity, message="No range specified")

            combined = conditions[0]
            for cond in conditions[1:]:
                combined = combined | cond

            out_of_range = df.filter(combined).height
            return ValidationCheck(
                name=name,
                passed=out_of_range == 0,
                severity=severity,
                message=(
                    f"Column '{column}' has {out_of_range} values outside [{min_value}, {max_value}]"
                    if out_of_range else f"All '{column}' values in range"
                ),
                details={"min": min_value, "max": max_value, "out_of_range_count": out_of_range},
                failed_rows=out_of_range,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def add_pattern_check(
        self,
        column: str,
        pattern: str,
        severity: ValidationSeverity = ValidationSeverity.WARNING,
    ) -> "DataValidator":
        """Add regex check over the non-blank values of a column"""
        name = f"pattern_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing(name, column, severity)

            present = df.filter(pl.col(column).is_not_null() & (pl.col(column) != ""))
            failing = present.filter(~pl.col(column).str.contains(pattern))
            values = sorted(failing[column].unique().to_list())[:10]
            return ValidationCheck(
                name=name,
                passed=failing.height == 0,
                severity=severity,
                message=(
                    f"Column '{column}' has {failing.height} values not matching {pattern}: {values}"
                    if failing.height else f"All '{column}' values match pattern"
                ),
                details={"pattern": pattern, "non_matching_count": failing.height, "examples": values},
                failed_rows=failing.height,
                total_rows=present.height,
            )

        self._checks.append(check)
        return self

    def add_enum_check(
        self,
        column: str,
        allowed_values: List[Any],
        severity: ValidationSeverity = ValidationSeverity.WARNING,
    ) -> "DataValidator":
        """Add check for values in allowed set"""
        name = f"enum_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing(name, column, severity)

            invalid = df.filter(~pl.col(column).is_in(allowed_values) & pl.col(column).is_not_null()).height
            return ValidationCheck(
                name=name,
                passed=invalid == 0,
                severity=severity,
                message=f"Column '{column}' has {invalid} invalid values" if invalid else "All values are valid",
                details={"allowed_values": allowed_values, "invalid_count": invalid},
                failed_rows=invalid,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.now(timezone.utc)
        results = [check(df) for check in self._checks]

        for result in results:
            if not result.passed:
                logger.warning(
                    "Validation check failed",
                    check=result.name,
                    message=result.message,
                    severity=result.severity.value,
                )

        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        if failed_checks > 0:
            status = ValidationStatus.FAILED
        elif warning_count > 0 and self.strict_mode:
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        logger.info(
            "Validation complete",
            status=status.value,
            rows=df.height,
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )

        return ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
        )


# Pre-built validators per record type
def create_products_validator() -> DataValidator:
    return (
        DataValidator()
        .add_not_empty_check("style_number")
        .add_pattern_check("season", CANONICAL_SEASON_PATTERN)
        .add_unique_check(["style_number", "color", "season"])
        .add_range_check("price", min_value=0)
        .add_range_check("msrp", min_value=0)
        .add_range_check("cost", min_value=0)
    )


def create_sales_validator() -> DataValidator:
    return (
        DataValidator()
        .add_not_empty_check("style_number")
        .add_not_empty_check("season", severity=ValidationSeverity.WARNING)
        .add_pattern_check("season", CANONICAL_SEASON_PATTERN)
        .add_not_empty_check("customer_type", severity=ValidationSeverity.INFO)
    )


def create_pricing_validator() -> DataValidator:
    return (
        DataValidator()
        .add_not_empty_check("style_number")
        .add_pattern_check("season", CANONICAL_SEASON_PATTERN)
        .add_range_check("price", min_value=0)
        .add_range_check("msrp", min_value=0)
    )


def create_costs_validator() -> DataValidator:
    return (
        DataValidator()
        .add_not_empty_check("style_number")
        .add_pattern_check("season", CANONICAL_SEASON_PATTERN)
        .add_unique_check(["style_number", "season", "cost_source"])
        .add_range_check("landed", min_value=0)
        .add_range_check("fob", min_value=0)
        .add_enum_check("cost_source", ["landed_cost", "standard_cost"], severity=ValidationSeverity.ERROR)
    )


def create_inventory_validator() -> DataValidator:
    return DataValidator().add_not_empty_check("style_number").add_not_empty_check("warehouse", ValidationSeverity.WARNING)


VALIDATORS: Dict[RecordType, Callable[[], DataValidator]] = {
    RecordType.PRODUCTS: create_products_validator,
    RecordType.SALES: create_sales_validator,
    RecordType.PRICING: create_pricing_validator,
    RecordType.COSTS: create_costs_validator,
    RecordType.INVENTORY: create_inventory_validator,
}


def validate_records(record_type: RecordType, records: Sequence[Any]) -> ValidationResult:
    """Run the record type's validator over a parsed batch."""
    if not records:
        return ValidationResult(
            status=ValidationStatus.PASSED,
            total_checks=0,
            passed_checks=0,
            failed_checks=0,
            warning_count=0,
        )
    validator = VALIDATORS[RecordType(record_type)]()
    df = pl.DataFrame([record_to_dict(r) for r in records], infer_schema_length=None)
    return validator.validate(df)
