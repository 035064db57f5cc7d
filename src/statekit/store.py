"""Snapshot store: the current-value cell behind a container.

The store owns the latest :class:`~statekit.snapshot.Snapshot` and a list of
observers. Publishing swaps the snapshot and calls every observer, in
subscription order, with the new value.
"""

from __future__ import annotations

import contextlib
from collections.abc import Callable
from typing import Any, Generic

from statekit.config import StoreConfig
from statekit.log import get_logger
from statekit.snapshot import K, Snapshot, V

logger = get_logger("store")

Observer = Callable[[Snapshot[Any, Any]], None]
"""Called synchronously with the new snapshot after each publish."""


class SnapshotStore(Generic[K, V]):
    """Holds the current snapshot and notifies observers when it is replaced.

    Observers run synchronously inside :meth:`publish`. Exceptions from an
    observer propagate to the publisher; the snapshot has already been
    swapped at that point and later observers are skipped.

    Args:
        initial: Starting snapshot. Defaults to an empty one.
        config: Store configuration. Defaults to ``StoreConfig()``.
    """

    __slots__ = ("_config", "_current", "_observers", "_version")

    def __init__(
        self,
        initial: Snapshot[K, V] | None = None,
        *,
        config: StoreConfig | None = None,
    ) -> None:
        self._config = config or StoreConfig()
        self._current: Snapshot[K, V] = initial if initial is not None else Snapshot()
        self._observers: list[Observer] = []
        self._version = 0

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def version(self) -> int:
        """Number of publishes that replaced the snapshot."""
        return self._version

    def read(self) -> Snapshot[K, V]:
        """Return the latest published snapshot."""
        return self._current

    def publish(self, next_snapshot: Snapshot[K, V]) -> None:
        """Replace the current snapshot and notify observers.

        Publishing the object that is already current is ignored when
        ``config.skip_identical`` is set.
        """
        if next_snapshot is self._current and self._config.skip_identical:
            logger.debug("publish skipped: store=%s snapshot unchanged", self._config.name)
            return

        self._current = next_snapshot
        self._version += 1
        logger.debug(
            "published: store=%s version=%d size=%d observers=%d",
            self._config.name,
            self._version,
            len(next_snapshot),
            len(self._observers),
        )
        # Copy so observers may (un)subscribe while being notified.
        for observer in list(self._observers):
            observer(next_snapshot)

    # ── Observers ─────────────────────────────────────────────────────

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register *observer* and return a callable that removes it."""
        self._observers.append(observer)
        logger.debug("observer subscribed: store=%s total=%d", self._config.name, len(self._observers))

        def unsubscribe() -> None:
            self.unsubscribe(observer)

        return unsubscribe

    def unsubscribe(self, observer: Observer) -> None:
        """Remove the first registration of *observer*. No-op if absent."""
        with contextlib.suppress(ValueError):
            self._observers.remove(observer)

    def has_observers(self) -> bool:
        return len(self._observers) > 0

    def __repr__(self) -> str:
        return (
            f"SnapshotStore(name={self._config.name!r}, size={len(self._current)}, "
            f"version={self._version})"
        )
