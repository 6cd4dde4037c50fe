"""Run tracking.

RunTracker holds the snapshot of the single run being viewed. Every
payload, whether from a fetch or triggered by a push notification, is a
complete picture of the run, so apply() replaces the snapshot wholesale
(last write wins). There is no sequence number: a slow fetch that lands
after a newer one can regress the view, and callers treat the most
recently applied snapshot as current.

The tracked run id doubles as the stale-target guard. Results for a run
that is no longer tracked are discarded, which is how in-flight fetches
are "cancelled" after the user moves to another run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from flowforge.core.errors import StatusRegression
from flowforge.core.models import TERMINAL_STEP_STATUSES, Run

logger = logging.getLogger(__name__)


def find_status_regressions(previous: Run, update: Run) -> list[StatusRegression]:
    """List steps that were terminal in previous but are not in update.

    Steps are matched by step_id; steps missing from either side are ignored.
    """
    before = {s.step_id: s.status for s in previous.step_executions}
    regressions = []
    for step in update.step_executions:
        old_status = before.get(step.step_id)
        if old_status in TERMINAL_STEP_STATUSES and step.status != old_status:
            regressions.append(
                StatusRegression(update.id, str(step.step_id), str(old_status), step.status)
            )
    return regressions


@dataclass
class RunTracker:
    """Snapshot of the one run currently being viewed.

    Example:
        >>> tracker = RunTracker()
        >>> tracker.reset("r1")
        >>> tracker.apply(run_r1)       # applied
        True
        >>> tracker.apply(run_r2)       # different run, discarded
        False
        >>> tracker.current_snapshot().id
        'r1'
    """

    tracked_run_id: str | None = None
    awaiting_initial_load: bool = False

    # Regressions seen since the last reset, oldest first
    anomalies: list[StatusRegression] = field(default_factory=list)

    _snapshot: Run | None = field(default=None, init=False, repr=False)

    def reset(self, run_id: str) -> None:
        """Start tracking run_id with no snapshot yet."""
        if self.tracked_run_id != run_id:
            logger.debug("Tracking run %s (was %s)", run_id, self.tracked_run_id)
        self.tracked_run_id = run_id
        self._snapshot = None
        self.awaiting_initial_load = True
        self.anomalies = []

    def apply(self, update: Run) -> bool:
        """Replace the snapshot with update if it belongs to the tracked run.

        Returns:
            True if applied, False if discarded as stale.
        """
        if update.id != self.tracked_run_id:
            logger.debug(
                "Discarding snapshot for run %s (tracking %s)", update.id, self.tracked_run_id
            )
            return False

        if self._snapshot is not None:
            for regression in find_status_regressions(self._snapshot, update):
                logger.warning("Status regression: %s", regression)
                self.anomalies.append(regression)

        self._snapshot = update
        self.awaiting_initial_load = False
        return True

    def current_snapshot(self) -> Run | None:
        return self._snapshot

    @property
    def is_active(self) -> bool:
        """True while the tracked run is loading or still executing."""
        if self.tracked_run_id is None:
            return False
        if self._snapshot is None:
            return True
        return not self._snapshot.is_finished
