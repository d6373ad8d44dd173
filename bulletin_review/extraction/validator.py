"""Extraction validator.

Checks an untrusted extraction in a fixed order of passes:

1. required top-level fields (recorded, does not fail the report)
2. structure: a record without subjects is fatal
3. per-subject domain rules (name, ceilings >= minimum, empty rows)
4. anomaly heuristics: advisory warnings only
5. numeric type checks
6. verification / upstream-metadata advisories

OCR output produces expected false positives on the heuristics, so they
never become errors; a reviewer makes the final call.  Nothing in here
raises on bad input.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from bulletin_review.extraction.schema import ExtractedRecord, LineItem, PeriodGroup, is_number

logger = logging.getLogger(__name__)

NO_LINE_ITEMS_ERROR = "No subjects extracted - this is critical data"
MALFORMED_RECORD_ERROR = "Extraction payload is not a JSON object"

DEFAULT_CEILING_MINIMUM = 10
DEFAULT_LOW_CONFIDENCE_THRESHOLD = 70

UNIFORM_PATTERN_MIN_VALUES = 6
UNIFORM_PATTERN_STEP = 5
SPREAD_CHECK_MIN_VALUES = 4
SPREAD_CHECK_CONFIDENCE = 90
SPREAD_CHECK_MAX_VARIANCE = 1.0


@dataclass(frozen=True, slots=True)
class ValidationReport:
    is_valid: bool
    has_minimum_data: bool
    errors: tuple[str, ...]
    warnings: tuple[str, ...]
    missing_required: tuple[str, ...]
    quality_score: float | int | None
    line_item_count: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "has_minimum_data": self.has_minimum_data,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "missing_required": list(self.missing_required),
            "quality_score": self.quality_score,
            "line_item_count": self.line_item_count,
        }


def _label(item: LineItem, index: int) -> str:
    return f"Subject {item.name or index + 1}"


def _variance(values: list[float]) -> float:
    mean = sum(values) / len(values)
    return sum((value - mean) ** 2 for value in values) / len(values)


class ExtractionValidator:
    """Stateless rule set; one instance can serve every request."""

    def __init__(
        self,
        ceiling_minimum: int = DEFAULT_CEILING_MINIMUM,
        low_confidence_threshold: float = DEFAULT_LOW_CONFIDENCE_THRESHOLD,
    ) -> None:
        self.ceiling_minimum = ceiling_minimum
        self.low_confidence_threshold = low_confidence_threshold

    def validate(self, record: ExtractedRecord | Any) -> ValidationReport:
        if not isinstance(record, ExtractedRecord):
            record = ExtractedRecord.from_raw(record)

        errors: list[str] = []
        warnings: list[str] = []

        if record.malformed:
            errors.append(MALFORMED_RECORD_ERROR)

        missing_required = record.missing_required()

        if not record.line_items:
            errors.append(NO_LINE_ITEMS_ERROR)
        else:
            for index, item in enumerate(record.line_items):
                self._check_item(item, index, errors, warnings)

        self._check_advisories(record, warnings)

        line_item_count = len(record.line_items) if record.line_items else 0
        report = ValidationReport(
            is_valid=not errors,
            has_minimum_data=record.student_name is not None and line_item_count > 0,
            errors=tuple(errors),
            warnings=tuple(warnings),
            missing_required=tuple(missing_required),
            quality_score=record.metadata.confidence,
            line_item_count=line_item_count,
        )
        logger.info(
            "Validation %s: errors=%d warnings=%d missing_required=%d subjects=%d",
            "PASS" if report.is_valid else "FAIL",
            len(errors),
            len(warnings),
            len(missing_required),
            line_item_count,
        )
        return report

    # -- per item -----------------------------------------------------------

    def _check_item(self, item: LineItem, index: int, errors: list[str], warnings: list[str]) -> None:
        label = _label(item, index)
        if item.malformed:
            errors.append(f"{label}: entry is not an object")
            return

        if item.name_not_text:
            errors.append(f"{label}: subject is not text")
        elif item.name is None:
            errors.append(f"{label}: Missing subject name")

        if item.maxima.all_null():
            warnings.append(f"{label}: Missing maxima values")

        for key, kind, value in item.maxima.items():
            self._check_ceiling(label, f"{kind} maxima", key, value, errors)
        self._check_ceiling(label, "national exam maxima", "nationalExam.max", item.secondary_exam.ceiling, errors)

        if item.first_period.all_null() and item.second_period.all_null():
            warnings.append(f"{label}: No grades extracted")

        self._check_anomalies(item, label, warnings)

        for group in (item.first_period, item.second_period):
            self._check_types(group, label, errors)
        for key, value in (
            ("overallTotal", item.overall_total),
            ("nationalExam.marks", item.secondary_exam.marks),
        ):
            if value is not None and not is_number(value):
                errors.append(f"{label}: {key} is not a number")

    def _check_ceiling(self, label: str, kind: str, key: str, value: Any, errors: list[str]) -> None:
        if value is None:
            return
        if not is_number(value):
            errors.append(f"{label}: {key} is not a number")
        elif value < self.ceiling_minimum:
            errors.append(
                f"{label}: Invalid {kind} ({key}={value}) - minimum is {self.ceiling_minimum}"
            )

    def _check_anomalies(self, item: LineItem, label: str, warnings: list[str]) -> None:
        values = [value for value in item.sub_scores() if is_number(value)]
        if not values:
            return

        if len(values) >= UNIFORM_PATTERN_MIN_VALUES and all(
            value % UNIFORM_PATTERN_STEP == 0 for value in values
        ):
            warnings.append(f"{label}: All grades are perfect multiples (suspicious uniform pattern)")

        confidence = item.confidence.grades_avg
        if (
            confidence is not None
            and confidence > SPREAD_CHECK_CONFIDENCE
            and len(values) >= SPREAD_CHECK_MIN_VALUES
            and _variance(values) < SPREAD_CHECK_MAX_VARIANCE
        ):
            warnings.append(f"{label}: Suspiciously uniform grades with high confidence")

    def _check_types(self, group: PeriodGroup, label: str, errors: list[str]) -> None:
        if group.malformed:
            errors.append(f"{label}: {group.label} scores are not an object")
            return
        for name, value in group.scores.items():
            if value is not None and not is_number(value):
                errors.append(f"{label}: {name} ({group.label}) is not a number")

    # -- record level -------------------------------------------------------

    def _check_advisories(self, record: ExtractedRecord, warnings: list[str]) -> None:
        if record.center_code is None:
            warnings.append("Center code not extracted - check bottom right section")
        if record.verifier_name is None:
            warnings.append("Verifier name not extracted - check bottom right section")

        meta = record.metadata
        if meta.confidence is not None and meta.confidence < self.low_confidence_threshold:
            warnings.append(f"Low extraction confidence: {meta.confidence}%")
        if meta.missing_fields:
            warnings.append(f"Missing fields reported: {', '.join(meta.missing_fields)}")

