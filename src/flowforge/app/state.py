"""Application state owned by the controller.

All writes go through the named setters below; nothing else assigns to
these fields.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from flowforge.core.models import WorkflowSummary
from flowforge.core.projector import DashboardView, HistoryEntry

logger = logging.getLogger(__name__)


class View(Enum):
    """Screens of the application."""

    DASHBOARD = "dashboard"
    WORKFLOWS = "workflows"
    EDITOR = "editor"
    HISTORY = "history"
    EXECUTION = "execution"
    IMPORT = "import"


@dataclass
class AppState:
    """Everything the presentation layer shows, apart from the run snapshot."""

    current_view: View = View.DASHBOARD
    workflows: list[WorkflowSummary] = field(default_factory=list)
    dashboard: DashboardView | None = None
    recent_activity: list[HistoryEntry] = field(default_factory=list)
    history: list[HistoryEntry] = field(default_factory=list)

    def show(self, view: View) -> None:
        if view is not self.current_view:
            logger.debug("View %s -> %s", self.current_view.value, view.value)
        self.current_view = view

    def set_workflows(self, workflows: list[WorkflowSummary]) -> None:
        self.workflows = list(workflows)

    def set_dashboard(self, dashboard: DashboardView) -> None:
        self.dashboard = dashboard

    def set_recent_activity(self, entries: list[HistoryEntry]) -> None:
        self.recent_activity = list(entries)

    def set_history(self, entries: list[HistoryEntry]) -> None:
        self.history = list(entries)
