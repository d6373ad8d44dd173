"""Workflow error types.

Not-found and authorization failures use the builtin ``KeyError`` and
``PermissionError``; these two cover state conflicts.
"""
from __future__ import annotations


class InvalidTransitionError(ValueError):
    """The document's current status does not allow the requested action."""

    def __init__(self, document_id: str, status: str, action: str) -> None:
        super().__init__(f"Cannot {action} document {document_id} in status {status!r}")
        self.document_id = document_id
        self.status = status
        self.action = action


class ClaimConflictError(Exception):
    """Another reviewer already holds the claim on the document."""

    def __init__(self, document_id: str, assigned_to_name: str | None) -> None:
        super().__init__(f"Document {document_id} already assigned")
        self.document_id = document_id
        self.assigned_to_name = assigned_to_name
