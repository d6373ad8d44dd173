"""Map workflow exceptions onto HTTP status codes."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException

from bulletin_review.review.errors import ClaimConflictError, InvalidTransitionError


def _message(exc: Exception) -> str:
    return str(exc.args[0]) if exc.args else str(exc)


@contextmanager
def workflow_errors() -> Iterator[None]:
    # InvalidTransitionError subclasses ValueError, so it must be caught first.
    try:
        yield
    except ClaimConflictError as exc:
        who = exc.assigned_to_name or "another reviewer"
        raise HTTPException(status_code=409, detail=f"Document already assigned to {who}")
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=_message(exc))
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
