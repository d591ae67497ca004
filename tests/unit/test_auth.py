"""Tests for operator credential checks, sessions and login rate limiting."""

from unittest.mock import Mock

import pytest
from fastapi import HTTPException

from driver_tracker.auth.dependencies import (
    LoginRequired,
    get_current_operator_optional,
    require_operator,
    require_operator_page,
    start_operator_session,
)
from driver_tracker.auth.rate_limiter import LoginRateLimiter, RateLimitConfig
from driver_tracker.auth.security import verify_operator_credentials
from driver_tracker.config import AuthConfig


def _request(ip="203.0.113.7", headers=None, session=None, path="/dashboard"):
    request = Mock()
    request.headers = headers or {}
    request.client.host = ip
    request.session = {} if session is None else session
    request.url.path = path
    return request


@pytest.fixture
def auth_config():
    return AuthConfig(login_username="dispatcher", login_password="s3cret-pass")


@pytest.mark.unit
class TestVerifyOperatorCredentials:
    """Test the configured credential pair check."""

    def test_correct_credentials(self, auth_config):
        assert verify_operator_credentials("dispatcher", "s3cret-pass", auth_config) is True

    @pytest.mark.parametrize(
        "username,password",
        [
            ("dispatcher", "wrong"),
            ("someone", "s3cret-pass"),
            ("Dispatcher", "s3cret-pass"),
            ("", ""),
            (None, None),
            ("dispatcher", ""),
        ],
    )
    def test_wrong_credentials(self, auth_config, username, password):
        assert verify_operator_credentials(username, password, auth_config) is False

    def test_login_disabled_when_unconfigured(self):
        assert verify_operator_credentials("", "", AuthConfig()) is False
        assert verify_operator_credentials("admin", "admin", AuthConfig()) is False

    def test_non_ascii_credentials(self):
        config = AuthConfig(login_username="józef", login_password="pässwörd")

        assert verify_operator_credentials("józef", "pässwörd", config) is True
        assert verify_operator_credentials("jozef", "pässwörd", config) is False


@pytest.mark.unit
class TestOperatorSession:
    """Test the session-backed operator identity."""

    def test_anonymous(self):
        request = _request()

        assert get_current_operator_optional(request) is None
        with pytest.raises(HTTPException) as exc_info:
            require_operator(request)
        assert exc_info.value.status_code == 401
        with pytest.raises(LoginRequired):
            require_operator_page(request)

    def test_logged_in(self):
        request = _request()
        start_operator_session(request, "dispatcher")

        assert request.session["user"] == {"username": "dispatcher", "name": "Administrator"}
        assert require_operator(request).username == "dispatcher"
        assert require_operator_page(request).name == "Administrator"

    def test_malformed_session_entry_is_anonymous(self):
        request = _request(session={"user": "dispatcher"})

        assert get_current_operator_optional(request) is None

    def test_login_clears_previous_session_state(self):
        request = _request(session={"stale": True})
        start_operator_session(request, "dispatcher")

        assert "stale" not in request.session


@pytest.mark.unit
class TestLoginRateLimiter:
    """Test per-IP login throttling."""

    def test_allows_requests_within_limit(self):
        limiter = LoginRateLimiter(RateLimitConfig(max_requests=3))
        request = _request()

        for _ in range(3):
            limiter.check_rate_limit(request)

    def test_blocks_requests_over_limit(self):
        limiter = LoginRateLimiter(RateLimitConfig(max_requests=2))
        request = _request()
        limiter.check_rate_limit(request)
        limiter.check_rate_limit(request)

        with pytest.raises(HTTPException) as exc_info:
            limiter.check_rate_limit(request)
        assert exc_info.value.status_code == 429
        assert "Retry-After" in exc_info.value.headers

    def test_limits_are_per_ip(self):
        limiter = LoginRateLimiter(RateLimitConfig(max_requests=1))
        limiter.check_rate_limit(_request(ip="198.51.100.1"))

        limiter.check_rate_limit(_request(ip="198.51.100.2"))

    def test_forwarded_for_header_identifies_client(self):
        limiter = LoginRateLimiter(RateLimitConfig(max_requests=1))
        limiter.check_rate_limit(_request(headers={"X-Forwarded-For": "192.0.2.9, 10.0.0.1"}))

        with pytest.raises(HTTPException):
            limiter.check_rate_limit(
                _request(ip="10.0.0.2", headers={"X-Forwarded-For": "192.0.2.9"})
            )

    def test_repeated_failures_block_ip(self):
        limiter = LoginRateLimiter(
            RateLimitConfig(max_requests=100, max_failures_before_block=3)
        )
        request = _request()
        for _ in range(3):
            limiter.check_rate_limit(request)
            limiter.record_auth_failure(request)

        with pytest.raises(HTTPException) as exc_info:
            limiter.check_rate_limit(request)
        assert exc_info.value.status_code == 429
        assert "failed login attempts" in exc_info.value.detail

    def test_success_clears_failures(self):
        limiter = LoginRateLimiter(
            RateLimitConfig(max_requests=100, max_failures_before_block=3)
        )
        request = _request()
        limiter.record_auth_failure(request)
        limiter.record_auth_failure(request)
        limiter.record_auth_success(request)
        limiter.record_auth_failure(request)

        limiter.check_rate_limit(request)

    def test_reset(self):
        limiter = LoginRateLimiter(RateLimitConfig(max_requests=1))
        request = _request()
        limiter.check_rate_limit(request)
        limiter.reset()

        limiter.check_rate_limit(request)
