"""Error types raised by screenshat.

Every failure the CLI reports derives from :class:`ScreenshatError`, so the
entry point can turn any of them into a message and a non-zero exit.
"""

from __future__ import annotations


class ScreenshatError(RuntimeError):
    exit_code = 1


class UsageError(ScreenshatError):
    """Invalid or contradictory options, detected before any work starts."""


class CaptureError(ScreenshatError):
    """Browser launch, navigation, screenshot or measurement failed."""


class AssemblyError(ScreenshatError):
    """The encoder invocation could not be built."""


class EncodeError(ScreenshatError):
    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class Cancelled(ScreenshatError):
    exit_code = 130
