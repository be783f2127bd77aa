"""errors.py – Exceptions raised by the SignScribe pipeline.

Degraded input (no hand, collapsed joints) never raises; these are for
caller mistakes such as malformed landmark arrays or out-of-order
session control signals.
"""

from __future__ import annotations


class SignScribeError(Exception):
    """Base class for every SignScribe exception."""


class InvalidLandmarksError(SignScribeError, ValueError):
    """A landmark array does not describe exactly one 21-joint hand."""


class ConfigError(SignScribeError, ValueError):
    """A configuration value or key is not acceptable."""


class SessionStateError(SignScribeError, RuntimeError):
    """A session control signal arrived in a state that does not allow it."""

    def __init__(self, action: str, state: object) -> None:
        super().__init__(f"cannot {action} while session is {state}")
        self.action = action
        self.state = state
