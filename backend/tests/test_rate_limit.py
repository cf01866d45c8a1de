# Overview: Pytest coverage for the fixed-window rate limiter.

"""
Rate Limiting Tests

The limiter is driven by a fake clock so window boundaries are exact.
"""

import threading

import pytest

from stockdesk.services.rate_limit_service import RateLimiter, client_address, UNKNOWN_CLIENT


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(clock=clock)


class TestFixedWindow:

    def test_allows_up_to_max(self, limiter):
        results = [limiter.check("login:1.2.3.4", 600, 3) for _ in range(3)]
        assert all(r.allowed for r in results)

    def test_denies_request_after_max(self, limiter):
        for _ in range(3):
            limiter.check("login:1.2.3.4", 600, 3)

        result = limiter.check("login:1.2.3.4", 600, 3)

        assert result.allowed is False
        assert result.retry_after_seconds == 600

    def test_retry_after_counts_down(self, limiter, clock):
        for _ in range(2):
            limiter.check("k", 600, 2)

        clock.advance(599.2)
        result = limiter.check("k", 600, 2)

        assert result.allowed is False
        assert result.retry_after_seconds == 1

    def test_window_resets_after_elapsed(self, limiter, clock):
        for _ in range(2):
            limiter.check("k", 600, 2)
        assert limiter.check("k", 600, 2).allowed is False

        clock.advance(600)

        assert limiter.check("k", 600, 2).allowed is True

    def test_denied_requests_do_not_extend_window(self, limiter, clock):
        limiter.check("k", 10, 1)
        clock.advance(5)
        limiter.check("k", 10, 1)
        clock.advance(5)

        assert limiter.check("k", 10, 1).allowed is True

    def test_keys_are_independent(self, limiter):
        limiter.check("login:a", 600, 1)

        assert limiter.check("login:a", 600, 1).allowed is False
        assert limiter.check("login:b", 600, 1).allowed is True
        assert limiter.check("register:a", 600, 1).allowed is True

    def test_sweep_drops_only_expired_buckets(self, limiter, clock):
        limiter.check("old", 10, 5)
        clock.advance(5)
        limiter.check("new", 10, 5)
        clock.advance(6)

        assert limiter.sweep() == 1
        assert len(limiter) == 1

    def test_reset_clears_everything(self, limiter):
        limiter.check("k", 600, 1)
        limiter.reset()

        assert len(limiter) == 0
        assert limiter.check("k", 600, 1).allowed is True

    def test_concurrent_checks_never_exceed_max(self):
        limiter = RateLimiter()
        allowed = []

        def hit():
            for _ in range(50):
                allowed.append(limiter.check("shared", 600, 100).allowed)

        threads = [threading.Thread(target=hit) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert allowed.count(True) == 100


class TestClientAddress:

    def test_first_forwarded_for_entry_wins(self):
        headers = {"X-Forwarded-For": "10.0.0.1, 10.0.0.2", "X-Real-IP": "10.0.0.9"}
        assert client_address(headers, "127.0.0.1") == "10.0.0.1"

    def test_real_ip_when_no_forwarded_for(self):
        assert client_address({"X-Real-IP": " 10.0.0.9 "}, "127.0.0.1") == "10.0.0.9"

    def test_remote_addr_fallback(self):
        assert client_address({}, "127.0.0.1") == "127.0.0.1"

    def test_unknown_when_nothing_available(self):
        assert client_address({}, None) == UNKNOWN_CLIENT


class TestLoginRateLimit:
    """End-to-end: the login endpoint answers 429 once the window is full."""

    def test_login_limited_after_max_attempts(self, app, client, user_a):
        app.config["LOGIN_RATE_LIMIT"] = 3
        body = {"email": "user_a@example.com", "password": "wrong-password"}
        headers = {"X-Forwarded-For": "203.0.113.7"}

        for _ in range(3):
            assert client.post("/api/auth/login", json=body, headers=headers).status_code == 401

        response = client.post("/api/auth/login", json=body, headers=headers)

        assert response.status_code == 429
        assert response.json == {"error": "Too many requests"}
        retry_after = int(response.headers["Retry-After"])
        assert 1 <= retry_after <= app.config["RATE_LIMIT_WINDOW_SECONDS"]

    def test_other_clients_unaffected(self, app, client, user_a):
        app.config["LOGIN_RATE_LIMIT"] = 1
        body = {"email": "user_a@example.com", "password": "wrong-password"}

        client.post("/api/auth/login", json=body, headers={"X-Forwarded-For": "203.0.113.7"})
        blocked = client.post("/api/auth/login", json=body, headers={"X-Forwarded-For": "203.0.113.7"})
        other = client.post("/api/auth/login", json=body, headers={"X-Forwarded-For": "203.0.113.8"})

        assert blocked.status_code == 429
        assert other.status_code == 401

    def test_new_window_allows_login(self, app, client, user_a):
        clock = FakeClock()
        app.extensions["rate_limiter"] = RateLimiter(clock=clock)
        app.config["LOGIN_RATE_LIMIT"] = 1
        headers = {"X-Forwarded-For": "203.0.113.7"}

        client.post("/api/auth/login", json={"email": "user_a@example.com", "password": "nope-nope"}, headers=headers)
        assert client.post("/api/auth/login", json={"email": "user_a@example.com", "password": "secret123"},
                           headers=headers).status_code == 429

        clock.advance(app.config["RATE_LIMIT_WINDOW_SECONDS"])

        response = client.post("/api/auth/login", json={"email": "user_a@example.com", "password": "secret123"},
                               headers=headers)
        assert response.status_code == 200
