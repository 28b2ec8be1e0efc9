"""
Tests for per-namespace budget accounting.
"""

from concurrent.futures import ThreadPoolExecutor

from rotator.config import parse_rotator_config
from rotator.dependencies import get_budget_tracker
from rotator.services.budget.budget_tracker import BudgetTracker


class TestBudgetTracker:
    def test_starts_at_zero(self):
        tracker = BudgetTracker(100)
        assert tracker.get("payments") == 0
        assert not tracker.over_limit("payments")

    def test_add_returns_new_total(self):
        tracker = BudgetTracker(100)
        assert tracker.add("payments", 40) == 40
        assert tracker.add("payments", 25) == 65

    def test_equal_to_limit_is_not_over(self):
        tracker = BudgetTracker(100)
        tracker.add("payments", 100)
        assert not tracker.over_limit("payments")

    def test_above_limit_is_over(self):
        tracker = BudgetTracker(100)
        tracker.add("payments", 101)
        assert tracker.over_limit("payments")

    def test_namespaces_are_independent(self):
        tracker = BudgetTracker(100)
        tracker.add("payments", 500)
        tracker.add("orders", 10)

        assert tracker.over_limit("payments")
        assert not tracker.over_limit("orders")
        assert tracker.snapshot() == {"payments": 500, "orders": 10}

    def test_concurrent_adds(self):
        tracker = BudgetTracker(10**9)

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(lambda _: tracker.add("payments", 1), range(1000)))

        assert tracker.get("payments") == 1000


class TestNamespaceBudgetOverride:
    """A namespace budget override is parsed but the global limit is what applies."""

    def test_global_limit_used(self, monkeypatch):
        config = parse_rotator_config(
            """
defaults:
  budgets:
    perNamespaceBytes: 100
overrides:
  namespaces:
    payments:
      budgets:
        perNamespaceBytes: 1000
"""
        )
        monkeypatch.setattr("rotator.dependencies.get_rotator_config", lambda: config)

        tracker = get_budget_tracker()
        tracker.add("payments", 500)

        assert tracker.limit_bytes == 100
        assert tracker.over_limit("payments")
