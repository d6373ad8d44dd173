"""Group subject rows by ascending period ceiling.

The extractor returns subjects in the visual order of the bulletin.  The
rendered report needs them clustered by scale (/10 subjects, then /20,
then /40 ...) without shuffling subjects that share a scale, so the sort
key carries the source index as an explicit tie-break.
"""
from __future__ import annotations

from collections.abc import Sequence

from bulletin_review.extraction.schema import ExtractedRecord, LineItem


def sort_line_items(items: Sequence[LineItem]) -> list[LineItem]:
    """Return *items* ordered by ``period_ceiling``, source order within a group."""
    indexed = sorted(enumerate(items), key=lambda pair: (pair[1].period_ceiling, pair[0]))
    return [item for _, item in indexed]


def sort_record(record: ExtractedRecord) -> ExtractedRecord:
    """Return a copy of *record* with its line items grouped; no-op without items."""
    if not record.line_items:
        return record
    return record.with_line_items(sort_line_items(record.line_items))
