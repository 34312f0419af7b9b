from __future__ import annotations

from typing import TypeVar

from fastapi import HTTPException, status

from obstacle_registry.policy.lifecycle import Denied, InvalidAssignment, ValidationFailed
from obstacle_registry.policy.visibility import Access

T = TypeVar("T")


def unwrap(result: T | Denied | ValidationFailed | InvalidAssignment, not_found: str = "Not found") -> T:
    """Translate policy/lifecycle result variants into HTTP errors."""

    if isinstance(result, Denied):
        if result.access is Access.NOT_FOUND:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    if isinstance(result, ValidationFailed):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": result.message, "errors": result.errors},
        )
    if isinstance(result, InvalidAssignment):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    return result


def require_found(value: T | None, detail: str = "Not found") -> T:
    if value is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return value
