"""Container: the ``(snapshot, actions)`` handle a component holds."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any, Generic

from statekit.actions import MapActions, bind_actions
from statekit.config import StoreConfig
from statekit.log import get_logger
from statekit.snapshot import EntrySource, K, Snapshot, V
from statekit.store import Observer, SnapshotStore

logger = get_logger("container")


class MapContainer(Generic[K, V]):
    """Pairs a snapshot store with its action set.

    ``snapshot`` always reads the store, so it is a new object after every
    mutation. ``actions`` is created once and never replaced. Unpacking
    yields the current pair::

        snapshot, actions = container
    """

    __slots__ = ("_actions", "_store")

    def __init__(self, store: SnapshotStore[K, V]) -> None:
        self._store = store
        self._actions = bind_actions(store)

    @property
    def snapshot(self) -> Snapshot[K, V]:
        return self._store.read()

    @property
    def actions(self) -> MapActions[K, V]:
        return self._actions

    @property
    def store(self) -> SnapshotStore[K, V]:
        return self._store

    @property
    def config(self) -> StoreConfig:
        return self._store.config

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Shortcut for ``container.store.subscribe``."""
        return self._store.subscribe(observer)

    def __iter__(self) -> Iterator[Any]:
        yield self._store.read()
        yield self._actions

    def __repr__(self) -> str:
        return f"MapContainer(name={self.config.name!r}, size={len(self._store.read())})"


def create_container(
    initial: EntrySource[K, V] | None = None,
    *,
    config: StoreConfig | None = None,
) -> MapContainer[K, V]:
    """Create a container, optionally seeded from *initial*.

    Args:
        initial: A mapping (``Snapshot`` included) or an iterable of
            key-value pairs. ``None`` starts empty.
        config: Store configuration.

    Raises:
        InvalidArgument: If *initial* cannot be read as key-value entries.
    """
    store: SnapshotStore[K, V] = SnapshotStore(Snapshot(initial), config=config)
    container = MapContainer(store)
    logger.debug("container created: name=%s size=%d", store.config.name, len(store.read()))
    return container
