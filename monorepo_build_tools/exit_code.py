"""Process-wide final exit status.

Both the process runner (for commands run with the ``inherit`` exit policy)
and the task pipeline (when a phase fails) record the status the toolkit
should exit with here. A recorded failure is never downgraded.
"""

import threading
from typing import Optional


class ExitCodeRegistry:
    """Holds a single exit status that writers may only raise from unset or zero."""

    def __init__(self, value: Optional[int] = None) -> None:
        self._value = value
        self._lock = threading.Lock()

    @property
    def value(self) -> Optional[int]:
        """Currently recorded exit status, ``None`` when nothing was recorded."""
        return self._value

    def raise_at_least(self, code: int) -> bool:
        """Record ``code`` unless a non-zero status is already recorded.

        Args:
            code: Exit status to record.

        Returns:
            True if the value was assigned, False if an earlier failure was kept.
        """
        with self._lock:
            if self._value is None or self._value == 0:
                self._value = code
                return True
            return False

    def reset(self) -> None:
        """Forget the recorded status."""
        with self._lock:
            self._value = None

    def exit_status(self) -> int:
        """Status to pass to ``sys.exit``."""
        return self._value or 0

    def __repr__(self) -> str:
        return f"ExitCodeRegistry(value={self._value!r})"


exit_code_registry = ExitCodeRegistry()
