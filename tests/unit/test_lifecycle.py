from datetime import datetime, timedelta, timezone

from packledger.models import PackStatus, evaluate_status

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestEvaluateStatus:
    """Unit-тесты вычисления действующего статуса пакета"""

    def test_active_with_sessions_and_no_expiry(self):
        assert evaluate_status(PackStatus.ACTIVE, 5, None, NOW) == PackStatus.ACTIVE

    def test_exhausted_is_terminal_even_before_expiry(self):
        expires_at = NOW - timedelta(days=1)
        assert evaluate_status(PackStatus.EXHAUSTED, 0, expires_at, NOW) == PackStatus.EXHAUSTED

    def test_expiry_wins_over_pause(self):
        expires_at = NOW - timedelta(seconds=1)
        assert evaluate_status(PackStatus.PAUSED, 4, expires_at, NOW) == PackStatus.EXPIRED

    def test_expiry_is_strictly_after_expires_at(self):
        assert evaluate_status(PackStatus.ACTIVE, 4, NOW, NOW) == PackStatus.ACTIVE
        assert evaluate_status(PackStatus.ACTIVE, 4, NOW, NOW + timedelta(microseconds=1)) == PackStatus.EXPIRED

    def test_paused_stays_paused_inside_validity(self):
        expires_at = NOW + timedelta(days=10)
        assert evaluate_status(PackStatus.PAUSED, 4, expires_at, NOW) == PackStatus.PAUSED

    def test_zero_remaining_on_active_row_is_exhausted(self):
        assert evaluate_status(PackStatus.ACTIVE, 0, None, NOW) == PackStatus.EXHAUSTED

    def test_expired_with_zero_remaining_reports_expired(self):
        expires_at = NOW - timedelta(days=3)
        assert evaluate_status(PackStatus.ACTIVE, 0, expires_at, NOW) == PackStatus.EXPIRED

    def test_persisted_expired_never_comes_back(self):
        expires_at = NOW + timedelta(days=30)
        assert evaluate_status(PackStatus.EXPIRED, 3, expires_at, NOW) == PackStatus.EXPIRED

    def test_naive_expires_at_is_treated_as_utc(self):
        # SQLite отдаёт даты без timezone
        naive_expiry = (NOW - timedelta(hours=1)).replace(tzinfo=None)
        assert evaluate_status(PackStatus.ACTIVE, 2, naive_expiry, NOW) == PackStatus.EXPIRED

    def test_accepts_raw_string_status(self):
        assert evaluate_status("paused", 2, None, NOW) == PackStatus.PAUSED
