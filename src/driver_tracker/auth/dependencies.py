"""Authentication dependencies for FastAPI."""

from typing import Optional

from fastapi import HTTPException, Request, status
from pydantic import BaseModel

SESSION_USER_KEY = "user"


class OperatorIdentity(BaseModel):
    """The operator stored in the signed session cookie."""

    username: str
    name: str = "Administrator"


class LoginRequired(Exception):
    """Raised by page routes when no operator is logged in.

    Handled by redirecting the browser to the login page.
    """

    def __init__(self):
        super().__init__("Login required")


def get_current_operator_optional(request: Request) -> Optional[OperatorIdentity]:
    """
    Get the logged-in operator, returning None if there is no session.

    A malformed session entry is treated as logged out.
    """
    data = request.session.get(SESSION_USER_KEY)
    if not isinstance(data, dict) or not data.get("username"):
        return None
    return OperatorIdentity(username=data["username"], name=data.get("name") or "Administrator")


def require_operator(request: Request) -> OperatorIdentity:
    """
    Require a logged-in operator for JSON endpoints.

    Raises:
        HTTPException: 401 if there is no operator session
    """
    operator = get_current_operator_optional(request)
    if operator is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return operator


def require_operator_page(request: Request) -> OperatorIdentity:
    """
    Require a logged-in operator for HTML pages.

    Raises:
        LoginRequired: if there is no operator session
    """
    operator = get_current_operator_optional(request)
    if operator is None:
        raise LoginRequired()
    return operator


def start_operator_session(request: Request, username: str) -> OperatorIdentity:
    """Store the operator in the session after a successful login."""
    operator = OperatorIdentity(username=username)
    request.session.clear()
    request.session[SESSION_USER_KEY] = operator.model_dump()
    return operator


def end_operator_session(request: Request) -> None:
    """Drop all session state."""
    request.session.clear()
