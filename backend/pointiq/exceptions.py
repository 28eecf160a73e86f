from fastapi import HTTPException
from pydantic import BaseModel
from typing import Optional


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code


class NoActiveMatch(DomainException):
    def __init__(self) -> None:
        super().__init__(
            status_code=409,
            title="No active match",
            detail="there is no match in progress",
            code="no_active_match",
        )


class MatchNotFound(DomainException):
    def __init__(self, match_id: str) -> None:
        super().__init__(
            status_code=404,
            title="Match not found",
            detail=f"match '{match_id}' not found",
            code="match_not_found",
        )


class RemoteStoreError(Exception):
    """Raised by the remote point store when a request fails.

    Never surfaced to callers of the syncing store; the background worker
    logs it and publishes a failed sync status instead.
    """

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(f"{operation}: {detail}")
        self.operation = operation
        self.detail = detail


def http_problem(
    status_code: int,
    detail: str,
    code: str,
    *,
    headers: Optional[dict[str, str]] = None,
) -> HTTPException:
    """Create an HTTPException with an attached problem code."""

    exc = HTTPException(status_code=status_code, detail=detail, headers=headers)
    setattr(exc, "code", code)
    return exc
