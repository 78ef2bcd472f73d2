"""
Exception types raised by the timer and the session store.
"""

from __future__ import annotations


class TimerError(Exception):
    """Base class for timer state machine errors."""


class InvalidSessionError(TimerError, ValueError):
    """Bad durations, cycle count, or method passed to the planner or the clock."""


class CompletionPendingError(TimerError):
    """A finished session has not been acknowledged yet."""


class SessionStoreError(Exception):
    """The session store could not read or write its database."""
