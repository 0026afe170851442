"""
Unit tests for the fixed-window quota ledger.
Tests textshare/core/rate_limit.py
"""
import threading
from types import SimpleNamespace

import pytest

from textshare.core.errors import QuotaExceeded
from textshare.core.rate_limit import (
    UNKNOWN_CLIENT,
    QuotaLedger,
    QuotaRule,
    resolve_client_id,
)


@pytest.mark.unit
class TestCheckAndConsume:
    """Test QuotaLedger.check_and_consume."""

    def test_admits_up_to_limit(self, tight_ledger):
        decisions = [tight_ledger.check_and_consume("1.2.3.4", "general") for _ in range(3)]

        assert all(d.admitted for d in decisions)
        assert [d.remaining for d in decisions] == [2, 1, 0]
        assert decisions[0].limit == 3

    def test_denies_once_limit_reached(self, tight_ledger):
        for _ in range(3):
            tight_ledger.check_and_consume("1.2.3.4", "general")

        decision = tight_ledger.check_and_consume("1.2.3.4", "general")

        assert not decision.admitted
        assert decision.remaining == 0
        assert decision.retry_after == 60

    def test_denied_request_does_not_extend_window(self, tight_ledger):
        for _ in range(3):
            tight_ledger.check_and_consume("1.2.3.4", "general")
        first_denial = tight_ledger.check_and_consume("1.2.3.4", "general")

        tight_ledger.test_clock.return_value += 30
        second_denial = tight_ledger.check_and_consume("1.2.3.4", "general")

        assert second_denial.reset_at == first_denial.reset_at
        assert second_denial.retry_after == 30

    def test_window_resets_after_elapsing(self, tight_ledger):
        for _ in range(4):
            tight_ledger.check_and_consume("1.2.3.4", "general")

        tight_ledger.test_clock.return_value += 60
        decision = tight_ledger.check_and_consume("1.2.3.4", "general")

        assert decision.admitted
        assert decision.remaining == 2

    def test_retry_after_is_at_least_one_second(self, tight_ledger):
        for _ in range(3):
            tight_ledger.check_and_consume("1.2.3.4", "general")

        tight_ledger.test_clock.return_value += 59.7
        decision = tight_ledger.check_and_consume("1.2.3.4", "general")

        assert not decision.admitted
        assert decision.retry_after == 1

    def test_clients_are_independent(self, tight_ledger):
        for _ in range(3):
            tight_ledger.check_and_consume("1.2.3.4", "general")

        assert tight_ledger.check_and_consume("5.6.7.8", "general").admitted

    def test_categories_are_independent(self, tight_ledger):
        for _ in range(3):
            tight_ledger.check_and_consume("1.2.3.4", "general")

        assert tight_ledger.check_and_consume("1.2.3.4", "paste").admitted

    def test_unknown_category_rejected(self, tight_ledger):
        with pytest.raises(ValueError):
            tight_ledger.check_and_consume("1.2.3.4", "nonsense")

    def test_raise_if_denied(self, tight_ledger):
        for _ in range(2):
            tight_ledger.check_and_consume("1.2.3.4", "contact").raise_if_denied()

        with pytest.raises(QuotaExceeded) as exc_info:
            tight_ledger.check_and_consume("1.2.3.4", "contact").raise_if_denied()

        error = exc_info.value
        assert error.status_code == 429
        assert error.category == "contact"
        assert error.retry_after == 900
        assert error.headers()["Retry-After"] == "900"
        assert error.to_dict()["error"] == "quota_exceeded"

    def test_decision_headers(self, tight_ledger):
        decision = tight_ledger.check_and_consume("1.2.3.4", "paste")

        headers = decision.headers()
        assert headers["X-RateLimit-Limit"] == "2"
        assert headers["X-RateLimit-Remaining"] == "1"
        assert "X-RateLimit-Reset" in headers


@pytest.mark.unit
class TestPeekResetReap:
    """Test the non-consuming and maintenance operations."""

    def test_peek_does_not_consume(self, tight_ledger):
        tight_ledger.check_and_consume("1.2.3.4", "paste")

        for _ in range(5):
            status = tight_ledger.peek("1.2.3.4", "paste")

        assert status.remaining == 1
        assert tight_ledger.check_and_consume("1.2.3.4", "paste").admitted

    def test_peek_unseen_client_has_full_budget(self, tight_ledger):
        status = tight_ledger.peek("9.9.9.9", "general")

        assert status.admitted
        assert status.remaining == 3
        assert len(tight_ledger) == 0

    def test_reap_removes_only_elapsed_windows(self, tight_ledger):
        tight_ledger.check_and_consume("1.2.3.4", "general")  # 60s window
        tight_ledger.check_and_consume("1.2.3.4", "paste")  # 1h window

        tight_ledger.test_clock.return_value += 120
        removed = tight_ledger.reap()

        assert removed == 1
        assert len(tight_ledger) == 1
        assert tight_ledger.peek("1.2.3.4", "paste").remaining == 1

    def test_from_settings_uses_configured_categories(self):
        ledger = QuotaLedger.from_settings()

        assert set(ledger.categories) == {"general", "upload", "paste", "url", "contact"}
        assert ledger.rule("upload").window_seconds == 3600

    def test_eleventh_upload_denied(self):
        ledger = QuotaLedger.from_settings(clock=lambda: 5_000.0)

        decisions = [ledger.check_and_consume("198.51.100.7", "upload") for _ in range(11)]

        assert all(d.admitted for d in decisions[:10])
        assert not decisions[10].admitted
        assert 0 < decisions[10].retry_after <= 3600

    def test_invalid_shard_count(self):
        with pytest.raises(ValueError):
            QuotaLedger([QuotaRule("general", 1, 60)], shards=0)


@pytest.mark.unit
class TestConcurrentConsumption:
    """The ledger must never admit more than the limit per window."""

    def test_parallel_requests_respect_limit(self):
        ledger = QuotaLedger([QuotaRule("general", limit=50, window_seconds=3600)], shards=8)
        barrier = threading.Barrier(20)
        admitted = []
        lock = threading.Lock()

        def worker():
            barrier.wait()
            for _ in range(10):
                decision = ledger.check_and_consume("10.0.0.1", "general")
                if decision.admitted:
                    with lock:
                        admitted.append(decision)

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(admitted) == 50


@pytest.mark.unit
class TestResolveClientId:
    """Test client identity resolution from request headers."""

    @staticmethod
    def _request(headers=None, host="192.168.1.10"):
        return SimpleNamespace(
            headers={k.lower(): v for k, v in (headers or {}).items()},
            client=SimpleNamespace(host=host) if host else None,
        )

    def test_forwarded_for_first_entry(self):
        request = self._request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
        assert resolve_client_id(request) == "203.0.113.7"

    def test_real_ip_fallback(self):
        request = self._request({"X-Real-IP": " 198.51.100.2 "})
        assert resolve_client_id(request) == "198.51.100.2"

    def test_peer_address_fallback(self):
        assert resolve_client_id(self._request()) == "192.168.1.10"

    def test_unknown_client(self):
        assert resolve_client_id(self._request(host=None)) == UNKNOWN_CLIENT
