"""Permissive intermediate representation of an AI extraction.

The upstream extractor returns JSON that only loosely follows the bulletin
schema: any field may be absent, ``null`` or of the wrong type, and the
``subjects`` array itself may be missing or contain non-objects.  Every
``from_raw`` here is total (it never raises), so the validator can treat
absence and malformation as findings instead of crashes.

Wrong-typed values are kept as-is (``Any``) wherever the validator needs to
report them; helpers such as ``LineItem.period_ceiling`` only ever look at
values that pass ``is_number``.
"""
from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

FIRST_PERIOD_FIELDS: tuple[str, ...] = ("period1", "period2", "exam", "total")
SECOND_PERIOD_FIELDS: tuple[str, ...] = ("period3", "period4", "exam", "total")

# (raw key, human label)
CEILING_FIELDS: tuple[tuple[str, str], ...] = (
    ("periodMaxima", "period"),
    ("examMaxima", "exam"),
    ("totalMaxima", "total"),
)

REQUIRED_FIELDS: tuple[str, ...] = ("studentName", "class", "academicYear", "subjects")


def is_number(value: Any) -> bool:
    """Return True for finite ints/floats; ``bool`` is not a number here."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def _mapping(value: Any) -> Mapping[str, Any] | None:
    return value if isinstance(value, Mapping) else None


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _number(value: Any) -> float | int | None:
    return value if is_number(value) else None


@dataclass(frozen=True, slots=True)
class PeriodGroup:
    """One semester's sub-scores, keyed by the declared field names."""

    label: str
    scores: dict[str, Any]
    malformed: bool = False

    @classmethod
    def from_raw(cls, raw: Any, label: str, fields: tuple[str, ...]) -> PeriodGroup:
        if raw is None:
            return cls(label=label, scores={name: None for name in fields})
        group = _mapping(raw)
        if group is None:
            return cls(label=label, scores={name: None for name in fields}, malformed=True)
        return cls(label=label, scores={name: group.get(name) for name in fields})

    def all_null(self) -> bool:
        return all(value is None for value in self.scores.values())


@dataclass(frozen=True, slots=True)
class MaximaGroup:
    period: Any = None
    exam: Any = None
    total: Any = None

    @classmethod
    def from_raw(cls, raw: Any) -> MaximaGroup:
        group = _mapping(raw)
        if group is None:
            return cls()
        return cls(
            period=group.get("periodMaxima"),
            exam=group.get("examMaxima"),
            total=group.get("totalMaxima"),
        )

    def items(self) -> list[tuple[str, str, Any]]:
        """Return ``(raw key, label, value)`` for each ceiling column."""
        values = {"period": self.period, "exam": self.exam, "total": self.total}
        return [(key, label, values[label]) for key, label in CEILING_FIELDS]

    def all_null(self) -> bool:
        return self.period is None and self.exam is None and self.total is None


@dataclass(frozen=True, slots=True)
class SecondaryExam:
    marks: Any = None
    ceiling: Any = None

    @classmethod
    def from_raw(cls, raw: Any) -> SecondaryExam:
        group = _mapping(raw)
        if group is None:
            return cls()
        return cls(marks=group.get("marks"), ceiling=group.get("max"))


@dataclass(frozen=True, slots=True)
class FieldConfidence:
    grades_avg: float | int | None = None

    @classmethod
    def from_raw(cls, raw: Any) -> FieldConfidence:
        group = _mapping(raw)
        if group is None:
            return cls()
        return cls(grades_avg=_number(group.get("gradesAvg")))


@dataclass(frozen=True, slots=True)
class LineItem:
    """One subject row.  ``raw`` is the untouched upstream object."""

    raw: Any
    name: str | None = None
    name_not_text: bool = False
    first_period: PeriodGroup = field(
        default_factory=lambda: PeriodGroup.from_raw(None, "Sem 1", FIRST_PERIOD_FIELDS)
    )
    second_period: PeriodGroup = field(
        default_factory=lambda: PeriodGroup.from_raw(None, "Sem 2", SECOND_PERIOD_FIELDS)
    )
    overall_total: Any = None
    maxima: MaximaGroup = field(default_factory=MaximaGroup)
    secondary_exam: SecondaryExam = field(default_factory=SecondaryExam)
    confidence: FieldConfidence = field(default_factory=FieldConfidence)
    malformed: bool = False

    @classmethod
    def from_raw(cls, raw: Any) -> LineItem:
        item = _mapping(raw)
        if item is None:
            return cls(raw=raw, malformed=True)
        subject = item.get("subject")
        return cls(
            raw=raw,
            name=_text(subject),
            name_not_text=not isinstance(subject, str) and not is_blank(subject),
            first_period=PeriodGroup.from_raw(item.get("firstSemester"), "Sem 1", FIRST_PERIOD_FIELDS),
            second_period=PeriodGroup.from_raw(item.get("secondSemester"), "Sem 2", SECOND_PERIOD_FIELDS),
            overall_total=item.get("overallTotal"),
            maxima=MaximaGroup.from_raw(item.get("maxima")),
            secondary_exam=SecondaryExam.from_raw(item.get("nationalExam")),
            confidence=FieldConfidence.from_raw(item.get("confidence")),
        )

    @property
    def period_ceiling(self) -> float | int:
        """Grouping key: the period ceiling, with missing or zero as 0."""
        value = self.maxima.period
        if not is_number(value) or not value:
            return 0
        return value

    def sub_scores(self) -> list[Any]:
        """All declared sub-score values of both periods, in column order."""
        return list(self.first_period.scores.values()) + list(self.second_period.scores.values())


@dataclass(frozen=True, slots=True)
class ExtractionMetadata:
    confidence: float | int | None = None
    missing_fields: tuple[str, ...] = ()

    @classmethod
    def from_raw(cls, raw: Any) -> ExtractionMetadata:
        meta = _mapping(raw)
        if meta is None:
            return cls()
        return cls(
            confidence=_number(meta.get("confidence")),
            missing_fields=_string_tuple(meta.get("missingFields")),
        )


def _string_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(item) for item in value if item is not None)


@dataclass(frozen=True, slots=True)
class ExtractedRecord:
    raw: dict[str, Any]
    line_items: list[LineItem] | None = None
    student_name: str | None = None
    class_name: str | None = None
    academic_year: str | None = None
    center_code: str | None = None
    verifier_name: str | None = None
    metadata: ExtractionMetadata = field(default_factory=ExtractionMetadata)
    malformed: bool = False

    @classmethod
    def from_raw(cls, raw: Any) -> ExtractedRecord:
        record = _mapping(raw)
        if record is None:
            return cls(raw={}, malformed=True)

        subjects = record.get("subjects")
        line_items = [LineItem.from_raw(item) for item in subjects] if isinstance(subjects, list) else None
        return cls(
            raw=dict(record),
            line_items=line_items,
            student_name=_text(record.get("studentName")),
            class_name=_text(record.get("class")),
            academic_year=_text(record.get("academicYear")),
            center_code=_text(record.get("centerCode")),
            verifier_name=_text(record.get("verifierName")),
            metadata=ExtractionMetadata.from_raw(record.get("extractionMetadata")),
        )

    def missing_required(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if is_blank(self.raw.get(name))]

    def with_line_items(self, line_items: list[LineItem]) -> ExtractedRecord:
        return replace(self, line_items=list(line_items))

    def to_dict(self) -> dict[str, Any]:
        """Return the upstream JSON with ``subjects`` in current item order."""
        data = dict(self.raw)
        if self.line_items is not None:
            data["subjects"] = [item.raw for item in self.line_items]
        return data
