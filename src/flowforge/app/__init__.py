"""App - application state and the controller that owns it.

Modules:
    controller     AppController - every user action goes through it
    state          AppState and the View enum
    notifications  Transient, auto-dismissing notifications
    editor         StepForm - state of the add/edit step dialog
"""

from flowforge.app.controller import AppController, action
from flowforge.app.editor import StepForm
from flowforge.app.notifications import Notification, Notifier
from flowforge.app.state import AppState, View

__all__ = [
    "AppController",
    "action",
    "AppState",
    "View",
    "Notification",
    "Notifier",
    "StepForm",
]
