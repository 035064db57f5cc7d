"""Immutable, insertion-ordered key-value snapshots.

A :class:`Snapshot` is never modified after construction. Deriving a new
state always allocates a new snapshot from the old one plus a delta, so a
reader holding an old reference never sees later writes.
"""

from __future__ import annotations

from collections.abc import Hashable, ItemsView, Iterable, Iterator, KeysView, Mapping, ValuesView
from typing import Any, Generic, TypeVar

from statekit.log import get_logger
from statekit.types import InvalidArgument

logger = get_logger("snapshot")

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

EntrySource = Mapping[K, V] | Iterable[tuple[K, V]]
"""Anything ``initialize`` accepts: a mapping, or an iterable of key-value pairs."""


def _reject(msg: str) -> InvalidArgument:
    logger.warning("invalid entry source: %s", msg)
    return InvalidArgument(msg)


def coerce_entries(source: Any) -> dict[Any, Any]:
    """Read *source* into a fresh ordered dict.

    *source* may be any :class:`~collections.abc.Mapping` (a ``Snapshot``
    included) or an iterable of two-item entries such as ``[(1, "a")]`` or
    ``[[1, "a"]]``. Later duplicates overwrite earlier ones in place.

    Raises:
        InvalidArgument: If *source* cannot be read as key-value entries.
    """
    if isinstance(source, Mapping):
        return dict(source.items())
    if isinstance(source, (str, bytes, bytearray)):
        raise _reject(f"expected a mapping or iterable of pairs, got {type(source).__name__}")
    try:
        entries = iter(source)
    except TypeError:
        raise _reject(f"expected a mapping or iterable of pairs, got {type(source).__name__}") from None

    data: dict[Any, Any] = {}
    for index, entry in enumerate(entries):
        if isinstance(entry, (str, bytes, bytearray)):
            raise _reject(f"entry {index} is a {type(entry).__name__}, not a key-value pair")
        try:
            key, value = entry
        except (TypeError, ValueError):
            raise _reject(f"entry {index} is not a key-value pair: {entry!r}") from None
        if not isinstance(key, Hashable):
            raise _reject(f"entry {index} has an unhashable key of type {type(key).__name__}")
        try:
            data[key] = value
        except TypeError:
            # Hashable by type but hash() failed, e.g. a tuple holding a list.
            raise _reject(f"entry {index} has an unhashable key: {key!r}") from None
    return data


class Snapshot(Mapping[K, V], Generic[K, V]):
    """Read-only ordered mapping representing state at one point in time.

    Iteration, ``keys()``, ``values()`` and ``items()`` follow insertion
    order. Equality compares contents like any ``Mapping``; identity is what
    tells two snapshots of the same content apart.
    """

    __slots__ = ("_data",)

    _data: dict[K, V]

    def __init__(self, source: EntrySource[K, V] | None = None) -> None:
        self._data = coerce_entries(source) if source is not None else {}

    @classmethod
    def _wrap(cls, data: dict[K, V]) -> Snapshot[K, V]:
        """Adopt *data* without copying. The caller must not keep a reference."""
        snap = cls.__new__(cls)
        snap._data = data
        return snap

    @classmethod
    def from_entries(cls, source: EntrySource[K, V]) -> Snapshot[K, V]:
        """Build a snapshot of *cls* from a mapping or an iterable of pairs.

        Unlike the constructor, ``None`` is not accepted as "empty".

        Raises:
            InvalidArgument: If *source* cannot be read as key-value entries.
        """
        return cls._wrap(coerce_entries(source))

    # ── Read ──────────────────────────────────────────────────────────

    def __getitem__(self, key: K) -> V:
        return self._data[key]

    def get(self, key: K, default: Any = None) -> Any:
        return self._data.get(key, default)

    def has(self, key: object) -> bool:
        """Return whether *key* is present."""
        return key in self._data

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    @property
    def size(self) -> int:
        """Number of entries."""
        return len(self._data)

    def keys(self) -> KeysView[K]:
        return self._data.keys()

    def values(self) -> ValuesView[V]:
        return self._data.values()

    def items(self) -> ItemsView[K, V]:
        return self._data.items()

    def to_dict(self) -> dict[K, V]:
        """Return a plain ``dict`` copy. Mutating it does not touch the snapshot."""
        return dict(self._data)

    # ── Derivation (copy-on-write) ────────────────────────────────────

    def with_entry(self, key: K, value: V) -> Snapshot[K, V]:
        """Return a new snapshot with ``key -> value``.

        An existing key keeps its position; a new key is appended.
        """
        data = dict(self._data)
        data[key] = value
        return type(self)._wrap(data)

    def without(self, key: K) -> Snapshot[K, V]:
        """Return a new snapshot lacking *key*. Always a new instance."""
        data = dict(self._data)
        data.pop(key, None)
        return type(self)._wrap(data)

    # ── Representation ────────────────────────────────────────────────

    def __repr__(self) -> str:
        body = ", ".join(f"{k!r}: {v!r}" for k, v in self._data.items())
        return f"{type(self).__name__}({{{body}}})"
