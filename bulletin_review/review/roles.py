"""Reviewer roles and the single authorization predicate.

Roles arrive already resolved from the authentication layer; this module
only decides whether a role may perform a workflow action on a document.

- REVIEWER: claims, edits, approves and rejects bulletins
- SUPER_ADMIN: may act on any document regardless of assignment
- PARTNER, SUPPORT, USER: upload and archive their own documents only
"""
from __future__ import annotations

from dataclasses import dataclass

REVIEWER = "reviewer"
SUPER_ADMIN = "superadmin"
PARTNER = "partner"
SUPPORT = "support"
USER = "user"

ROLES = [REVIEWER, SUPER_ADMIN, PARTNER, SUPPORT, USER]

VALID_ROLES: frozenset[str] = frozenset(ROLES)

REVIEW_ROLES: frozenset[str] = frozenset({REVIEWER, SUPER_ADMIN})

ACTION_UPLOAD = "upload"
ACTION_VIEW = "view"
ACTION_CLAIM = "claim"
ACTION_RELEASE = "release"
ACTION_UPDATE = "update"
ACTION_APPROVE = "approve"
ACTION_REJECT = "reject"
ACTION_ARCHIVE = "archive"

VALID_ACTIONS: frozenset[str] = frozenset({
    ACTION_UPLOAD,
    ACTION_VIEW,
    ACTION_CLAIM,
    ACTION_RELEASE,
    ACTION_UPDATE,
    ACTION_APPROVE,
    ACTION_REJECT,
    ACTION_ARCHIVE,
})

# Review actions reserved for whoever currently holds the claim.
ASSIGNEE_ACTIONS: frozenset[str] = frozenset({ACTION_RELEASE, ACTION_UPDATE, ACTION_APPROVE})

# Actions a document's uploader may always take on it.
OWNER_ACTIONS: frozenset[str] = frozenset({ACTION_VIEW, ACTION_ARCHIVE})


@dataclass(frozen=True, slots=True)
class Principal:
    identity: str
    role: str
    name: str | None = None
    email: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.identity

    @property
    def is_admin(self) -> bool:
        return self.role == SUPER_ADMIN


def can_act(principal: Principal, action: str, document=None) -> bool:
    """Return whether *principal* may perform *action* on *document*.

    *document* only needs ``assigned_to`` and ``owner_id`` attributes.
    ``SUPER_ADMIN`` passes every check (override).
    """
    if principal.role not in VALID_ROLES:
        raise ValueError(
            f"Unknown role {principal.role!r}; must be one of {sorted(VALID_ROLES)}"
        )
    if action not in VALID_ACTIONS:
        raise ValueError(
            f"Unknown action {action!r}; must be one of {sorted(VALID_ACTIONS)}"
        )
    if principal.role == SUPER_ADMIN:
        return True

    if action == ACTION_UPLOAD:
        return True
    if action in OWNER_ACTIONS and document is not None and document.owner_id == principal.identity:
        return True
    if action == ACTION_ARCHIVE or principal.role not in REVIEW_ROLES:
        return False
    if action in ASSIGNEE_ACTIONS:
        return document is not None and document.assigned_to == principal.identity
    return True
