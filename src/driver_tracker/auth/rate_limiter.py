"""Rate limiting for the login endpoint to prevent brute force attacks."""

import time
from datetime import datetime, timezone
from typing import Dict, Optional
from collections import defaultdict, deque
from dataclasses import dataclass

from fastapi import Request, HTTPException, status

from ..utils.logging_config import get_logger

logger = get_logger('auth')


@dataclass
class RateLimitConfig:
    """Login rate limiting configuration."""

    max_requests: int = 10
    window_seconds: int = 60
    max_failures_before_block: int = 5
    failure_penalty_minutes: int = 15


class LoginRateLimiter:
    """Sliding-window limiter for login attempts, keyed by client IP."""

    def __init__(self, config: Optional[RateLimitConfig] = None):
        self.config = config or RateLimitConfig()

        # Format: {ip: deque of request timestamps}
        self._requests: Dict[str, deque] = defaultdict(deque)

        # Format: {ip: deque of failure timestamps}
        self._failures: Dict[str, deque] = defaultdict(deque)

        # Format: {ip: block_until_timestamp}
        self._blocked_ips: Dict[str, float] = {}

    def reset(self) -> None:
        """Forget all tracked requests, failures and blocks."""
        self._requests.clear()
        self._failures.clear()
        self._blocked_ips.clear()

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP from request."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # Take the first IP in the chain
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"

    @staticmethod
    def _cleanup(timestamps: deque, cutoff: float) -> None:
        while timestamps and timestamps[0] < cutoff:
            timestamps.popleft()

    def _cleanup_expired_blocks(self, now: float) -> None:
        expired_ips = [
            ip for ip, block_until in self._blocked_ips.items() if now > block_until
        ]
        for ip in expired_ips:
            del self._blocked_ips[ip]
            logger.info(f"Unblocked IP {ip} after penalty period")

    def check_rate_limit(self, request: Request) -> None:
        """
        Check the login rate limit for the requesting IP.

        Raises:
            HTTPException: If rate limit exceeded (429 Too Many Requests)
        """
        ip = self._get_client_ip(request)
        now = time.time()

        self._cleanup_expired_blocks(now)

        if ip in self._blocked_ips:
            block_until = datetime.fromtimestamp(self._blocked_ips[ip], tz=timezone.utc)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Too many failed login attempts. Try again after {block_until.isoformat()}",
                headers={"Retry-After": str(int(self._blocked_ips[ip] - now))},
            )

        requests = self._requests[ip]
        self._cleanup(requests, now - self.config.window_seconds)
        if len(requests) >= self.config.max_requests:
            logger.warning(
                f"Login rate limit exceeded for {ip}: {len(requests)} requests in window"
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=(
                    f"Too many login attempts. Maximum {self.config.max_requests} "
                    f"per {self.config.window_seconds} seconds"
                ),
                headers={"Retry-After": str(self.config.window_seconds)},
            )

        requests.append(now)

    def record_auth_failure(self, request: Request) -> None:
        """Record a failed login; blocks the IP after too many failures."""
        ip = self._get_client_ip(request)
        now = time.time()

        failures = self._failures[ip]
        self._cleanup(failures, now - self.config.window_seconds)
        failures.append(now)

        logger.warning(
            f"Login failure for IP {ip}: {len(failures)}/{self.config.max_failures_before_block} in window"
        )

        if len(failures) >= self.config.max_failures_before_block:
            block_until = now + (self.config.failure_penalty_minutes * 60)
            self._blocked_ips[ip] = block_until
            logger.error(
                f"Blocked IP {ip} until "
                f"{datetime.fromtimestamp(block_until, tz=timezone.utc).isoformat()} "
                f"due to {len(failures)} failed logins"
            )

    def record_auth_success(self, request: Request) -> None:
        """Record a successful login (clears failure count)."""
        ip = self._get_client_ip(request)
        if ip in self._failures:
            del self._failures[ip]
            logger.debug(f"Cleared failure history for IP {ip} after successful login")


def build_rate_limit_config() -> RateLimitConfig:
    """Create a RateLimitConfig from the current auth configuration."""
    from ..config import get_config

    auth = get_config().auth
    return RateLimitConfig(
        max_requests=auth.rate_limit_login_requests,
        window_seconds=auth.rate_limit_window_seconds,
        max_failures_before_block=auth.rate_limit_max_failures,
        failure_penalty_minutes=auth.rate_limit_failure_penalty_minutes,
    )


# Global rate limiter instance
rate_limiter = LoginRateLimiter(build_rate_limit_config())
