import time
from typing import Callable, Optional

from luptonpy.kernel.system.config import APP_CONFIG
from luptonpy.kernel.system.logging import get_logger

logger = get_logger(__name__)


class UpdateScheduler:
    """
    Throttles preview recomputation for a stream of change notifications.

    A notification runs the render callback when at least ``throttle_ms`` have
    passed since the last run. Notifications inside the window are skipped,
    but every ``skip_bound``-th consecutive skip forces a run anyway, so the
    preview never lags more than ``throttle_ms * skip_bound`` behind input.
    Skipped input leaves the scheduler ``pending``; ``flush`` runs it.
    """

    def __init__(
        self,
        render_fn: Callable[[], None],
        throttle_ms: float = APP_CONFIG.preview_throttle_ms,
        skip_bound: int = APP_CONFIG.preview_skip_bound,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._render_fn = render_fn
        self.throttle_s = throttle_ms / 1000.0
        self.skip_bound = max(1, skip_bound)
        self._clock = clock
        self._last_run: Optional[float] = None
        self.skip_count = 0
        self.pending = False
        self.run_count = 0

    def notify(self) -> bool:
        """
        Handles a change notification. Returns True if the callback ran.
        """
        now = self._clock()
        if self._last_run is None or now - self._last_run >= self.throttle_s:
            self._run(now)
            return True

        self.skip_count += 1
        if self.skip_count >= self.skip_bound:
            logger.debug(f"Forcing preview after {self.skip_count} skipped updates")
            self._run(now)
            return True

        self.pending = True
        return False

    def force(self) -> None:
        """
        Runs immediately, bypassing throttling (mode toggles, zoom buttons, reset).
        """
        self._run(self._clock())

    def flush(self) -> bool:
        """
        Runs the callback if a skipped notification has not been rendered yet.
        """
        if not self.pending:
            return False
        self._run(self._clock())
        return True

    def _run(self, now: float) -> None:
        self._last_run = now
        self.skip_count = 0
        self.pending = False
        self.run_count += 1
        self._render_fn()
