#!/usr/bin/env python3
"""
🚨 Rate Limiting Test Suite
==========================

Exercises the limiter directly and through a throwaway Flask route, so the
suite does not depend on the (disabled) app-wide limiter.
"""

from flask import Flask

from quietplay.utils import rate_limiting
from quietplay.utils.rate_limiting import (RateLimitRule, SimpleRateLimiter,
                                           add_rate_limit_headers, rate_limit)


def test_default_rules_installed():
    rules = SimpleRateLimiter(enabled=True).get_rules_summary()
    assert {"api_general", "playback_control", "config_changes", "status_check"} <= rules.keys()


def test_blocks_after_window_exhausted():
    limiter = SimpleRateLimiter(enabled=True)
    limiter.add_rule(RateLimitRule("tiny", 2, 60.0, 30.0))

    assert not limiter.check_rate_limit("tiny", "10.0.0.1").is_blocked
    assert not limiter.check_rate_limit("tiny", "10.0.0.1").is_blocked
    blocked = limiter.check_rate_limit("tiny", "10.0.0.1")
    assert blocked.is_blocked and blocked.requests_remaining == 0

    # Other clients have their own window
    assert not limiter.check_rate_limit("tiny", "10.0.0.2").is_blocked
    assert limiter.get_stats()["blocked_requests"] == 1


def test_disabled_limiter_never_blocks():
    limiter = SimpleRateLimiter(enabled=False)
    limiter.add_rule(RateLimitRule("tiny", 1, 60.0, 30.0))
    assert not any(limiter.check_rate_limit("tiny", "10.0.0.1").is_blocked for _ in range(5))


def test_exempt_ips():
    limiter = SimpleRateLimiter(enabled=True)
    limiter.add_rule(RateLimitRule("tiny", 1, 60.0, 30.0, exempt_ips=("127.0.0.1",)))
    assert not any(limiter.check_rate_limit("tiny", "127.0.0.1").is_blocked for _ in range(5))


def test_decorator_returns_429(monkeypatch):
    limiter = SimpleRateLimiter(enabled=True)
    limiter.add_rule(RateLimitRule("tiny", 1, 60.0, 30.0))
    monkeypatch.setattr(rate_limiting, "_rate_limiter", limiter)

    app = Flask(__name__)
    app.after_request(add_rate_limit_headers)

    @app.route("/limited")
    @rate_limit("tiny")
    def limited():
        return "ok"

    with app.test_client() as client:
        first = client.get("/limited")
        assert first.status_code == 200
        assert first.headers["X-RateLimit-Remaining"] == "0"

        second = client.get("/limited")
        assert second.status_code == 429
        assert second.get_json()["error_code"] == "rate_limited"
        assert int(second.headers["Retry-After"]) >= 1
