"""Tests for bulletin_review/extraction/sorting.py."""
from __future__ import annotations

from conftest import make_extraction, make_subject

from bulletin_review.extraction.schema import ExtractedRecord, LineItem
from bulletin_review.extraction.sorting import sort_line_items, sort_record


def _items(*specs) -> list[LineItem]:
    return [LineItem.from_raw(make_subject(name, period_max)) for name, period_max in specs]


def _names(items) -> list[str]:
    return [item.name for item in items]


class TestSortLineItems:
    def test_groups_ascending_by_period_ceiling(self):
        items = _items(("Biologie", 20), ("Religion", 10), ("Francais", 40))
        assert _names(sort_line_items(items)) == ["Religion", "Biologie", "Francais"]

    def test_equal_ceilings_keep_source_order(self):
        items = _items(("Chimie", 20), ("Civisme", 10), ("Physique", 20), ("Dessin", 10), ("Algebre", 20))
        assert _names(sort_line_items(items)) == ["Civisme", "Dessin", "Chimie", "Physique", "Algebre"]

    def test_missing_and_zero_ceiling_sort_first(self):
        items = [
            LineItem.from_raw(make_subject("Histoire", 20)),
            LineItem.from_raw(make_subject("Sport", None)),
            LineItem.from_raw(make_subject("Musique", 0)),
            LineItem.from_raw({"subject": "Geographie"}),
        ]
        assert _names(sort_line_items(items)) == ["Sport", "Musique", "Geographie", "Histoire"]

    def test_non_numeric_ceiling_is_lowest_group(self):
        items = _items(("Anglais", 10), ("Latin", "twenty"))
        assert _names(sort_line_items(items)) == ["Latin", "Anglais"]

    def test_malformed_entries_do_not_break_sort(self):
        items = [LineItem.from_raw(make_subject("Biologie", 20)), LineItem.from_raw("garbage")]
        result = sort_line_items(items)
        assert result[0].malformed is True
        assert result[1].name == "Biologie"

    def test_idempotent(self):
        items = _items(("A", 40), ("B", 10), ("C", 20), ("D", 10), ("E", None))
        once = sort_line_items(items)
        assert sort_line_items(once) == once

    def test_ceilings_non_decreasing(self):
        items = _items(("A", 40), ("B", 10), ("C", 20), ("D", 10), ("E", 80), ("F", 20))
        ceilings = [item.period_ceiling for item in sort_line_items(items)]
        assert ceilings == sorted(ceilings)

    def test_input_not_mutated(self):
        items = _items(("Biologie", 20), ("Religion", 10))
        sort_line_items(items)
        assert _names(items) == ["Biologie", "Religion"]

    def test_empty_sequence(self):
        assert sort_line_items([]) == []


class TestSortRecord:
    def test_reorders_subjects_in_output_dict(self):
        raw = make_extraction([make_subject("Biologie", 20), make_subject("Religion", 10)])
        record = sort_record(ExtractedRecord.from_raw(raw))
        assert [s["subject"] for s in record.to_dict()["subjects"]] == ["Religion", "Biologie"]

    def test_record_without_subjects_is_unchanged(self):
        record = ExtractedRecord.from_raw({"studentName": "X"})
        assert sort_record(record) is record
        assert "subjects" not in record.to_dict()

    def test_source_dict_untouched(self):
        raw = make_extraction([make_subject("Biologie", 20), make_subject("Religion", 10)])
        sort_record(ExtractedRecord.from_raw(raw))
        assert [s["subject"] for s in raw["subjects"]] == ["Biologie", "Religion"]
