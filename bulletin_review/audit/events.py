"""Event type constants.

Canonical event types for the append-only workflow audit trail.
"""
from __future__ import annotations

EVENT_DOCUMENT_CREATED = "document_created"
EVENT_DOCUMENT_CLAIMED = "document_claimed"
EVENT_DOCUMENT_RELEASED = "document_released"
EVENT_DOCUMENT_APPROVED = "document_approved"
EVENT_DOCUMENT_REJECTED = "document_rejected"
EVENT_DOCUMENT_ARCHIVED = "document_archived"

VALID_EVENT_TYPES: frozenset[str] = frozenset({
    EVENT_DOCUMENT_CREATED,
    EVENT_DOCUMENT_CLAIMED,
    EVENT_DOCUMENT_RELEASED,
    EVENT_DOCUMENT_APPROVED,
    EVENT_DOCUMENT_REJECTED,
    EVENT_DOCUMENT_ARCHIVED,
})
