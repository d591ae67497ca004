"""Security utilities for operator authentication."""

import hmac
from typing import Optional

from ..config import AuthConfig


def _constant_time_equals(provided: str, expected: str) -> bool:
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def verify_operator_credentials(
    username: Optional[str], password: Optional[str], auth_config: AuthConfig
) -> bool:
    """
    Check submitted credentials against the configured operator pair.

    Args:
        username: Submitted username
        password: Submitted password
        auth_config: Auth configuration holding the expected pair

    Returns:
        bool: True only if login is configured and both values match
    """
    if not auth_config.login_enabled:
        return False
    if not username or not password:
        return False

    # Compare both values so timing does not reveal which one was wrong
    username_ok = _constant_time_equals(username, auth_config.login_username)
    password_ok = _constant_time_equals(password, auth_config.login_password)
    return username_ok and password_ok
