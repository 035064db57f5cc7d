"""Error types for statekit."""

from __future__ import annotations


class StatekitError(Exception):
    """Base exception for all statekit errors."""


class InvalidArgument(StatekitError):
    """Raised when a source cannot be read as key-value entries.

    Surfaces synchronously from ``initialize`` and ``create_container``;
    nothing is published when it is raised.
    """


class HookError(StatekitError):
    """Raised on render-boundary misuse (hook outside a render, hook order change)."""
