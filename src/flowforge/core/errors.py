"""FlowForge error types.

Every error raised by the client core derives from FlowForgeError so the
controller can catch the whole family at its action boundary.
"""

from __future__ import annotations


class FlowForgeError(Exception):
    """Base error for FlowForge client operations."""


class NetworkFailure(FlowForgeError):
    """A request was rejected or the server answered with a non-success status.

    Attributes:
        status: HTTP status code, or None when no response was received.
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class NotFound(NetworkFailure):
    """The requested workflow or run does not exist on the server."""

    def __init__(self, message: str):
        super().__init__(message, status=404)


class ValidationFailure(FlowForgeError):
    """Local data failed validation before it was sent (e.g. empty workflow name)."""


class MalformedImport(FlowForgeError):
    """An import payload could not be parsed as JSON."""


class ChannelDisconnect(FlowForgeError):
    """The push connection dropped or could not be established.

    Handled inside the live channel's reconnect loop; never shown to the user.
    """


class StatusRegression(FlowForgeError):
    """A snapshot shows a terminal step execution reverting to a non-terminal status.

    Logged as an anomaly; the snapshot is still applied.
    """

    def __init__(self, run_id: str, step_id: str, previous: str, current: str):
        super().__init__(
            f"Run {run_id}: step {step_id} regressed from {previous!r} to {current!r}"
        )
        self.run_id = run_id
        self.step_id = step_id
        self.previous = previous
        self.current = current
