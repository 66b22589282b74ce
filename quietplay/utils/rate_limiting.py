"""Sliding-window rate limiting for the QuietPlay HTTP API.

QuietPlay is a single-household player on a LAN, so the limiter keeps one
counter per (client, rule) pair and nothing else. Set
``QUIETPLAY_DISABLE_RATE_LIMIT=1`` to turn it off (tests do).
"""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Dict, Optional

from flask import g, jsonify, request


@dataclass(frozen=True)
class RateLimitRule:
    """Definition of a rate limiting rule."""

    name: str
    requests_per_window: int
    window_seconds: float
    block_duration_seconds: float
    exempt_ips: tuple[str, ...] = ()


@dataclass
class RateLimitStatus:
    """Current status result returned by the limiter."""

    requests_made: int
    requests_remaining: int
    window_reset_time: float
    is_blocked: bool
    block_expires_at: Optional[float] = None


class SimpleRateLimiter:
    """Lightweight sliding-window rate limiter."""

    def __init__(self, enabled: Optional[bool] = None) -> None:
        self._lock = threading.Lock()
        self._rules: Dict[str, RateLimitRule] = {}
        self._state: Dict[tuple[str, str], tuple[int, float, float]] = {}
        self._total_requests = 0
        self._blocked_requests = 0
        if enabled is None:
            enabled = os.getenv("QUIETPLAY_DISABLE_RATE_LIMIT", "0") != "1"
        self._enabled = enabled
        self._install_default_rules()

    def _install_default_rules(self) -> None:
        self.add_rule(RateLimitRule("api_general", 300, 60.0, 30.0))
        self.add_rule(RateLimitRule("playback_control", 120, 60.0, 15.0))
        self.add_rule(RateLimitRule("config_changes", 60, 60.0, 30.0))
        self.add_rule(RateLimitRule("status_check", 200, 10.0, 30.0))

    def add_rule(self, rule: RateLimitRule) -> None:
        self._rules[rule.name] = rule

    def get_rules_summary(self) -> Dict[str, Dict[str, float]]:
        return {
            name: {
                "requests_per_window": rule.requests_per_window,
                "window_seconds": rule.window_seconds,
                "block_duration": rule.block_duration_seconds,
            }
            for name, rule in self._rules.items()
        }

    def _resolve_client_id(self) -> str:
        forwarded = request.headers.get("X-Forwarded-For")
        ip = forwarded.split(",")[0].strip() if forwarded else request.remote_addr or "127.0.0.1"
        return ip

    def check_rate_limit(self, rule_name: str, client_id: Optional[str] = None) -> RateLimitStatus:
        rule = self._rules.get(rule_name)
        if not self._enabled or not rule:
            return RateLimitStatus(0, 999999, time.time() + 3600, False)

        if client_id is None:
            client_id = self._resolve_client_id()
        if client_id in rule.exempt_ips:
            return RateLimitStatus(0, 999999, time.time() + 3600, False)

        now_mono = time.monotonic()
        now_wall = time.time()
        state_key = (client_id, rule.name)

        with self._lock:
            count, window_start, blocked_until = self._state.get(state_key, (0, now_mono, 0.0))

            if blocked_until > now_mono:
                self._blocked_requests += 1
                reset_at = now_wall + max(0.0, blocked_until - now_mono)
                return RateLimitStatus(count, 0, reset_at, True, reset_at)

            if now_mono - window_start >= rule.window_seconds:
                count = 0
                window_start = now_mono

            count += 1
            self._total_requests += 1

            if count > rule.requests_per_window:
                self._state[state_key] = (count, window_start, now_mono + rule.block_duration_seconds)
                self._blocked_requests += 1
                reset_at = now_wall + rule.block_duration_seconds
                return RateLimitStatus(rule.requests_per_window, 0, reset_at, True, reset_at)

            self._state[state_key] = (count, window_start, 0.0)
            remaining = max(0, rule.requests_per_window - count)
            reset_at = now_wall + max(0.0, rule.window_seconds - (now_mono - window_start))
            return RateLimitStatus(count, remaining, reset_at, False, None)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "enabled": self._enabled,
                "total_requests": self._total_requests,
                "blocked_requests": self._blocked_requests,
                "tracked_entries": len(self._state),
                "rules": self.get_rules_summary(),
            }

    def reset(self) -> None:
        with self._lock:
            self._state.clear()
            self._total_requests = 0
            self._blocked_requests = 0

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False


_rate_limiter: Optional[SimpleRateLimiter] = None


def get_rate_limiter() -> SimpleRateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = SimpleRateLimiter()
    return _rate_limiter


def rate_limit(rule_name: str):
    """Decorator that applies rate limiting to Flask routes."""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            status = get_rate_limiter().check_rate_limit(rule_name)
            if status.is_blocked:
                response = jsonify({
                    "success": False,
                    "message": "Too many requests. Please retry later.",
                    "error_code": "rate_limited",
                })
                response.status_code = 429
                response.headers["Retry-After"] = str(
                    max(1, int(status.block_expires_at - time.time()))
                ) if status.block_expires_at else "1"
                response.headers["X-RateLimit-Remaining"] = "0"
                response.headers["X-RateLimit-Reset"] = str(int(status.window_reset_time))
                return response

            g.rate_limit_status = status
            return func(*args, **kwargs)

        return wrapper

    return decorator


def add_rate_limit_headers(response):
    """Attach rate limit metadata to responses when available."""
    status: RateLimitStatus | None = getattr(g, "rate_limit_status", None)
    if status is not None:
        response.headers["X-RateLimit-Remaining"] = str(status.requests_remaining)
        response.headers["X-RateLimit-Reset"] = str(int(status.window_reset_time))
    return response
