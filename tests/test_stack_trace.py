"""Tests for caller stack enrichment."""

from monorepo_build_tools.stack_trace import StackEnricher, capture_stack_trace


def start_operation():
    return capture_stack_trace()


def helper_capturing_for_caller():
    return capture_stack_trace(skip_frames=1)


def calling_through_helper():
    return helper_capturing_for_caller()


class TestCaptureStackTrace:
    """Test what the captured stack contains."""

    def test_contains_caller(self):
        enricher = start_operation()
        assert "start_operation" in enricher.stack_trace
        assert "test_contains_caller" in enricher.stack_trace

    def test_skip_frames_drops_helper(self):
        """Skipped frames are not part of the captured stack."""
        enricher = calling_through_helper()
        assert "in helper_capturing_for_caller\n" not in enricher.stack_trace
        assert "in calling_through_helper\n" in enricher.stack_trace


class TestEnrich:
    """Test attaching the captured stack to an error."""

    def test_returns_same_error(self):
        error = RuntimeError("boom")
        assert StackEnricher("frames").enrich(error) is error

    def test_stack_layout(self):
        """Header first, captured trace last."""
        error = StackEnricher("  File caller.py").enrich(RuntimeError("boom"))
        assert error.stack.startswith("RuntimeError: boom\n")
        assert error.stack.endswith("  File caller.py")

    def test_note_added(self):
        error = StackEnricher("  File caller.py").enrich(ValueError("bad"))
        assert error.__notes__ == ["Called from:\n  File caller.py"]

    def test_own_trace_kept(self):
        """The trace of a raised error comes before the captured one."""
        try:
            raise KeyError("missing")
        except KeyError as caught:
            error = StackEnricher("CAPTURED").enrich(caught)
        own_at = error.stack.index("test_own_trace_kept")
        assert own_at < error.stack.index("CAPTURED")

    def test_enrich_twice(self):
        """The message appears once and the captured section twice."""
        enricher = StackEnricher("CAPTURED")
        error = enricher.enrich(enricher.enrich(RuntimeError("only once")))
        assert error.stack.count("only once") == 1
        assert error.stack.count("CAPTURED") == 2

    def test_never_raised_has_no_empty_section(self):
        """An error enriched before being raised goes straight to the captured trace."""
        error = StackEnricher("CAPTURED").enrich(RuntimeError("boom"))
        assert error.stack == "RuntimeError: boom\nCAPTURED"
