"""Tests for bulletin_review/extraction/validator.py."""
from __future__ import annotations

import logging

import pytest
from conftest import make_extraction, make_subject

from bulletin_review.extraction.schema import ExtractedRecord
from bulletin_review.extraction.validator import (
    MALFORMED_RECORD_ERROR,
    NO_LINE_ITEMS_ERROR,
    ExtractionValidator,
)


def validate_record(raw):
    return ExtractionValidator().validate(raw)


def _uniform_subject(**overrides) -> dict:
    return make_subject(
        "Biologie",
        firstSemester={"period1": 15, "period2": 10, "exam": 30, "total": 55},
        secondSemester={"period3": 20, "period4": 15, "exam": 35, "total": 70},
        **overrides,
    )


# ===========================================================================
# Clean input
# ===========================================================================

class TestCleanRecord:
    def test_valid_record_has_no_findings(self):
        report = validate_record(make_extraction())
        assert report.is_valid is True
        assert report.has_minimum_data is True
        assert report.errors == ()
        assert report.warnings == ()
        assert report.missing_required == ()
        assert report.quality_score == 87
        assert report.line_item_count == 1

    def test_accepts_parsed_record(self):
        report = ExtractionValidator().validate(ExtractedRecord.from_raw(make_extraction()))
        assert report.is_valid is True

    def test_as_dict_keys(self):
        data = validate_record(make_extraction()).as_dict()
        assert set(data) == {
            "is_valid", "has_minimum_data", "errors", "warnings",
            "missing_required", "quality_score", "line_item_count",
        }
        assert isinstance(data["errors"], list)


# ===========================================================================
# Structure
# ===========================================================================

class TestStructure:
    @pytest.mark.parametrize("subjects", [[], None, "not-a-list"])
    def test_no_subjects_is_one_error(self, subjects):
        report = validate_record(make_extraction(subjects=subjects))
        assert report.is_valid is False
        assert report.errors.count(NO_LINE_ITEMS_ERROR) == 1
        assert report.has_minimum_data is False

    def test_empty_subjects_reported_missing(self):
        assert "subjects" in validate_record(make_extraction(subjects=[])).missing_required

    @pytest.mark.parametrize("raw", [None, "junk", 3, [1, 2]])
    def test_non_object_root_never_raises(self, raw):
        report = validate_record(raw)
        assert report.is_valid is False
        assert MALFORMED_RECORD_ERROR in report.errors
        assert NO_LINE_ITEMS_ERROR in report.errors
        assert report.quality_score is None

    def test_missing_required_does_not_invalidate(self):
        report = validate_record(make_extraction(studentName=None, academicYear=""))
        assert report.is_valid is True
        assert report.missing_required == ("studentName", "academicYear")
        assert report.has_minimum_data is False

    def test_malformed_subject_entry(self):
        report = validate_record(make_extraction([make_subject(), "garbage"]))
        assert "Subject 2: entry is not an object" in report.errors
        assert report.line_item_count == 2


# ===========================================================================
# Per-item domain rules
# ===========================================================================

class TestDomainRules:
    def test_missing_subject_name(self):
        report = validate_record(make_extraction([make_subject(None)]))
        assert "Subject 1: Missing subject name" in report.errors

    @pytest.mark.parametrize("name", [123, True, ["Chimie"], {"fr": "Chimie"}])
    def test_non_text_subject_name(self, name):
        report = validate_record(make_extraction([make_subject(name)]))
        assert "Subject 1: subject is not text" in report.errors
        assert "Subject 1: Missing subject name" not in report.errors

    def test_blank_subject_name_is_missing(self):
        report = validate_record(make_extraction([make_subject("  ")]))
        assert "Subject 1: Missing subject name" in report.errors
        assert "Subject 1: subject is not text" not in report.errors

    @pytest.mark.parametrize("ceiling", [0, 1, 5, 9, 9.5])
    def test_period_ceiling_below_minimum(self, ceiling):
        report = validate_record(make_extraction([make_subject("Chimie", ceiling)]))
        assert report.is_valid is False
        assert any("periodMaxima" in error for error in report.errors)

    @pytest.mark.parametrize("ceiling", [10, 20, 40, 10.0])
    def test_period_ceiling_at_or_above_minimum(self, ceiling):
        report = validate_record(make_extraction([make_subject("Chimie", ceiling)]))
        assert not any("periodMaxima" in error for error in report.errors)

    def test_each_ceiling_checked_independently(self):
        subject = make_subject("Chimie", 20, maxima={"periodMaxima": 20, "examMaxima": 4, "totalMaxima": 8})
        report = validate_record(make_extraction([subject]))
        assert "Subject Chimie: Invalid exam maxima (examMaxima=4) - minimum is 10" in report.errors
        assert "Subject Chimie: Invalid total maxima (totalMaxima=8) - minimum is 10" in report.errors
        assert not any("periodMaxima" in error for error in report.errors)

    def test_national_exam_ceiling(self):
        subject = make_subject("Chimie", nationalExam={"marks": 3, "max": 5})
        report = validate_record(make_extraction([subject]))
        assert any("nationalExam.max" in error for error in report.errors)

    def test_non_numeric_ceiling(self):
        subject = make_subject("Chimie", maxima={"periodMaxima": "20"})
        report = validate_record(make_extraction([subject]))
        assert "Subject Chimie: periodMaxima is not a number" in report.errors

    def test_configurable_minimum(self):
        report = ExtractionValidator(ceiling_minimum=30).validate(make_extraction([make_subject("Chimie", 20)]))
        assert any("minimum is 30" in error for error in report.errors)

    def test_missing_maxima_warning(self):
        subject = make_subject("Chimie")
        del subject["maxima"]
        report = validate_record(make_extraction([subject]))
        assert report.is_valid is True
        assert "Subject Chimie: Missing maxima values" in report.warnings

    def test_no_grades_is_warning_not_error(self):
        subject = make_subject("Chimie", firstSemester=None, secondSemester={})
        report = validate_record(make_extraction([subject]))
        assert report.is_valid is True
        assert "Subject Chimie: No grades extracted" in report.warnings


# ===========================================================================
# Anomaly heuristics
# ===========================================================================

class TestAnomalies:
    def test_all_multiples_of_five(self):
        report = validate_record(make_extraction([_uniform_subject()]))
        assert report.is_valid is True
        assert (
            "Subject Biologie: All grades are perfect multiples (suspicious uniform pattern)"
            in report.warnings
        )

    def test_one_non_multiple_suppresses_pattern_warning(self):
        subject = _uniform_subject()
        subject["secondSemester"]["period4"] = 14
        report = validate_record(make_extraction([subject]))
        assert not any("perfect multiples" in warning for warning in report.warnings)

    def test_fewer_than_six_values_no_pattern_warning(self):
        subject = make_subject(
            "Biologie",
            firstSemester={"period1": 15, "period2": 10, "exam": 30},
            secondSemester={"period3": 20, "period4": 15},
        )
        report = validate_record(make_extraction([subject]))
        assert not any("perfect multiples" in warning for warning in report.warnings)

    def test_high_confidence_low_variance(self):
        subject = make_subject(
            "Biologie",
            firstSemester={"period1": 12, "period2": 12, "exam": 12, "total": 12},
            secondSemester={},
            confidence={"gradesAvg": 95},
        )
        report = validate_record(make_extraction([subject]))
        assert "Subject Biologie: Suspiciously uniform grades with high confidence" in report.warnings

    def test_spread_check_needs_high_confidence(self):
        subject = make_subject(
            "Biologie",
            firstSemester={"period1": 12, "period2": 12, "exam": 12, "total": 12},
            secondSemester={},
            confidence={"gradesAvg": 90},
        )
        report = validate_record(make_extraction([subject]))
        assert not any("Suspiciously uniform" in warning for warning in report.warnings)

    def test_spread_check_needs_four_values(self):
        subject = make_subject(
            "Biologie",
            firstSemester={"period1": 12, "period2": 12, "exam": 12},
            secondSemester={},
            confidence={"gradesAvg": 99},
        )
        report = validate_record(make_extraction([subject]))
        assert not any("Suspiciously uniform" in warning for warning in report.warnings)

    def test_non_numeric_values_excluded_from_heuristics(self):
        subject = make_subject(
            "Biologie",
            firstSemester={"period1": "15", "period2": 10, "exam": 30},
            secondSemester={"period3": 20, "period4": 15, "exam": 35},
        )
        report = validate_record(make_extraction([subject]))
        assert not any("perfect multiples" in warning for warning in report.warnings)


# ===========================================================================
# Type validation
# ===========================================================================

class TestTypes:
    def test_string_score_is_error(self):
        subject = make_subject("Chimie")
        subject["firstSemester"]["period1"] = "14"
        report = validate_record(make_extraction([subject]))
        assert "Subject Chimie: period1 (Sem 1) is not a number" in report.errors

    def test_bool_score_is_error(self):
        subject = make_subject("Chimie")
        subject["secondSemester"]["exam"] = True
        report = validate_record(make_extraction([subject]))
        assert "Subject Chimie: exam (Sem 2) is not a number" in report.errors

    def test_malformed_period_group(self):
        report = validate_record(make_extraction([make_subject("Chimie", firstSemester="14/20")]))
        assert "Subject Chimie: Sem 1 scores are not an object" in report.errors

    def test_overall_total_type(self):
        report = validate_record(make_extraction([make_subject("Chimie", overallTotal="117")]))
        assert "Subject Chimie: overallTotal is not a number" in report.errors

    def test_null_scores_are_not_type_errors(self):
        subject = make_subject("Chimie")
        subject["firstSemester"]["period1"] = None
        assert validate_record(make_extraction([subject])).is_valid is True


# ===========================================================================
# Advisories
# ===========================================================================

class TestAdvisories:
    def test_missing_verification_fields(self):
        report = validate_record(make_extraction(centerCode=None, verifierName=""))
        assert report.is_valid is True
        assert "Center code not extracted - check bottom right section" in report.warnings
        assert "Verifier name not extracted - check bottom right section" in report.warnings

    def test_low_confidence(self):
        report = validate_record(make_extraction(extractionMetadata={"confidence": 55}))
        assert "Low extraction confidence: 55%" in report.warnings
        assert report.quality_score == 55

    def test_missing_fields_reported(self):
        report = validate_record(
            make_extraction(extractionMetadata={"confidence": 80, "missingFields": ["class", "centerCode"]})
        )
        assert "Missing fields reported: class, centerCode" in report.warnings


class TestLogging:
    def test_summary_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="bulletin_review.extraction.validator"):
            validate_record(make_extraction(subjects=[]))
        assert "Validation FAIL" in caplog.text
        assert "Amani" not in caplog.text
