"""Exceptions raised by leadscope."""

from typing import Any


class LeadscopeError(Exception):
    """Base class for all leadscope errors."""


class ApiClientError(LeadscopeError):
    """The remote API answered with an error (or not at all)."""

    def __init__(self, status_code: int, detail: Any = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {extract_error_message(detail)}")


class SearchError(LeadscopeError):
    """Global search failed for a reason other than a collaborator error."""

    def __init__(self, message: str = "Failed to perform search"):
        super().__init__(message)


def extract_error_message(error: Any) -> str:
    """
    Pull a readable message out of an API error body.

    Handles plain strings, {"detail": "..."}, {"detail": {"message": ...}}
    and pydantic validation lists ({"detail": [{"loc": [...], "msg": ...}]}).
    """
    if not error:
        return "An unknown error occurred"
    if isinstance(error, str):
        return error
    if not isinstance(error, dict):
        return str(error)

    detail = error.get("detail")
    if isinstance(detail, str) and detail:
        return detail
    if isinstance(detail, dict) and detail.get("message"):
        return detail["message"]
    if isinstance(detail, list):
        parts = []
        for err in detail:
            loc = err.get("loc") if isinstance(err, dict) else None
            field = ".".join(str(p) for p in loc[1:]) if isinstance(loc, list) else "field"
            msg = err.get("msg", "") if isinstance(err, dict) else str(err)
            parts.append(f"{field}: {msg}")
        if parts:
            return ", ".join(parts)

    if error.get("message"):
        return error["message"]
    return "An unknown error occurred"
