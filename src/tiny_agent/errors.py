"""Exceptions raised by tiny_agent.

Configuration and input problems are not exceptions: they surface as fixed
sentinel strings from the chat entry points so a chat UI can render them.
"""


class TinyAgentError(Exception):
    """Base class for tiny_agent errors."""


class ModelLoadError(TinyAgentError):
    """The runtime failed to load model weights or build a context."""

    def __init__(self, model_path: str, reason: str | None = None):
        self.model_path = model_path
        self.reason = reason
        message = f"Failed to load model from '{model_path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SessionBusyError(TinyAgentError):
    """A generation is already in flight against the session."""

    def __init__(self, operation: str = "generation"):
        self.operation = operation
        super().__init__(f"Session is busy; cannot start {operation} while another turn is in flight.")


class ProfileError(TinyAgentError):
    """An agent profile file could not be read or parsed."""
