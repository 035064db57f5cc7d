"""Stable action set for a snapshot store.

:func:`bind_actions` is called once per container. The returned
:class:`MapActions` holds four plain closures over the *store*, never over
a snapshot, so each call derives from whatever is current at that moment
and two calls in a row compose.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic

from statekit.log import bind, get_logger
from statekit.snapshot import EntrySource, K, Snapshot, V
from statekit.store import SnapshotStore

logger = get_logger("actions")


@dataclass(frozen=True, slots=True)
class MapActions(Generic[K, V]):
    """The four mutations of a container.

    Fields are stored callables rather than methods, so ``actions.set is
    actions.set`` holds and the same objects can be handed to memoized
    children or dependency lists.

    Parameters
    ----------
    set:
        ``set(key, value)``. Overwrite in place or append.
    delete:
        ``delete(key)``. Remove if present; always publishes.
    initialize:
        ``initialize(source)``. Replace everything with *source*'s entries.
    clear:
        ``clear()``. Replace everything with an empty snapshot.
    """

    set: Callable[[K, V], None]
    delete: Callable[[K], None]
    initialize: Callable[[EntrySource[K, V]], None]
    clear: Callable[[], None]

    def __repr__(self) -> str:
        return "MapActions(set, delete, initialize, clear)"


def bind_actions(store: SnapshotStore[K, V]) -> MapActions[K, V]:
    """Build the action set for *store*.

    Each action reads ``store.read()`` at call time and publishes a new
    snapshot instance, even when the content did not change. The publish
    runs with ``store=<config.name>`` bound to the log context, so records
    from observers and the re-renders they trigger name the container.
    """
    name = store.config.name

    def commit(op: str, nxt: Snapshot[K, V], **detail: Any) -> None:
        with bind(store=name):
            fields = "".join(f"{k}={v!r} " for k, v in detail.items())
            logger.debug("%s %ssize=%d", op, fields, len(nxt))
            store.publish(nxt)

    def set_(key: K, value: V) -> None:
        commit("set", store.read().with_entry(key, value), key=key)

    def delete(key: K) -> None:
        commit("delete", store.read().without(key), key=key)

    def initialize(source: Any) -> None:
        # Validate before publishing so a bad source leaves the store as it was.
        commit("initialize", Snapshot.from_entries(source))

    def clear() -> None:
        commit("clear", Snapshot())

    return MapActions(set=set_, delete=delete, initialize=initialize, clear=clear)
