"""
Unit tests for RateWindow and ConcurrencyGate
"""
import pytest

from core.scheduling.concurrency_gate import ConcurrencyGate
from core.scheduling.rate_window import RateWindow


class TestRateWindow:

    def test_empty_window_has_full_budget(self):
        window = RateWindow(60.0)
        assert window.available(0.0, 20) == 20

    def test_budget_consumed_and_restored(self):
        window = RateWindow(60.0)
        window.record(100.0, count=20)

        assert window.available(100.0, 20) == 0
        assert window.available(159.9, 20) == 0
        # now - t >= window: expirado
        assert window.available(160.0, 20) == 20

    def test_available_never_negative(self):
        window = RateWindow(60.0)
        window.record(0.0, count=30)
        assert window.available(1.0, 20) == 0

    def test_expired_entries_ignored_before_compaction(self):
        window = RateWindow(60.0, compaction_interval=1000.0)
        window.record(0.0, count=5)
        window.record(50.0, count=5)

        assert len(window) == 10
        assert window.active_count(70.0) == 5
        assert len(window) == 10

    def test_record_keeps_log_non_decreasing(self):
        window = RateWindow(60.0)
        window.record(10.0)
        window.record(5.0)
        assert window.timestamps == [10.0, 10.0]

    def test_record_zero_count_is_noop(self):
        window = RateWindow(60.0)
        window.record(1.0, count=0)
        assert len(window) == 0

    def test_compact_removes_expired(self):
        window = RateWindow(60.0)
        window.record(0.0, count=3)
        window.record(30.0, count=2)

        assert window.compact(65.0) == 3
        assert window.timestamps == [30.0, 30.0]

    def test_maybe_compact_respects_interval(self):
        window = RateWindow(60.0, compaction_interval=10.0)
        window.record(0.0, count=2)
        window.record(5.0)

        assert window.maybe_compact(61.0) == 2
        # 5.0 já expirou, mas o intervalo ainda não passou
        assert window.maybe_compact(66.0) == 0
        assert len(window) == 1
        assert window.available(66.0, 1) == 1
        assert window.maybe_compact(71.0) == 1

    def test_seconds_until_slot(self):
        window = RateWindow(60.0)
        window.record(0.0, count=10)
        window.record(30.0, count=10)

        assert window.seconds_until_slot(40.0, 20) == pytest.approx(20.0)
        assert window.seconds_until_slot(40.0, 25) == 0.0
        # Primeiro lote expira em 60: falta esperar o segundo
        assert window.seconds_until_slot(60.0, 10) == pytest.approx(30.0)

    def test_rejects_non_positive_window(self):
        with pytest.raises(ValueError):
            RateWindow(0)


class TestConcurrencyGate:

    @pytest.mark.parametrize("ceiling,active,expected", [
        (5, 0, 5),
        (5, 3, 2),
        (5, 5, 0),
        (5, 7, 0),
    ])
    def test_available(self, ceiling, active, expected):
        assert ConcurrencyGate.available(ceiling, active) == expected
        assert ConcurrencyGate(ceiling).slots(active) == expected

    def test_rejects_non_positive_ceiling(self):
        with pytest.raises(ValueError):
            ConcurrencyGate(0)
