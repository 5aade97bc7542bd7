"""Tests for the process-wide exit status registry."""

import threading

from monorepo_build_tools.exit_code import ExitCodeRegistry


class TestRaiseAtLeast:
    """Test that failures are recorded and never downgraded."""

    def test_unset_by_default(self):
        """A new registry exits with zero."""
        registry = ExitCodeRegistry()
        assert registry.value is None
        assert registry.exit_status() == 0

    def test_assigns_when_unset(self):
        registry = ExitCodeRegistry()
        assert registry.raise_at_least(7) is True
        assert registry.value == 7

    def test_assigns_over_zero(self):
        """Zero counts as no failure yet."""
        registry = ExitCodeRegistry(0)
        assert registry.raise_at_least(2) is True
        assert registry.exit_status() == 2

    def test_keeps_earlier_failure(self):
        """A recorded non-zero status is kept."""
        registry = ExitCodeRegistry()
        registry.raise_at_least(7)
        assert registry.raise_at_least(1) is False
        assert registry.value == 7

    def test_zero_after_failure_is_ignored(self):
        registry = ExitCodeRegistry(3)
        registry.raise_at_least(0)
        assert registry.value == 3

    def test_reset(self):
        registry = ExitCodeRegistry(3)
        registry.reset()
        assert registry.value is None


class TestConcurrentWriters:
    """Test writers racing from several threads."""

    def test_first_failure_wins(self):
        """Exactly one writer assigns a failure."""
        registry = ExitCodeRegistry()
        assigned = []
        barrier = threading.Barrier(8)

        def writer(code):
            barrier.wait()
            if registry.raise_at_least(code):
                assigned.append(code)

        threads = [threading.Thread(target=writer, args=(code,)) for code in range(1, 9)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(assigned) == 1
        assert registry.value == assigned[0]
