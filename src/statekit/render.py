"""Render boundary: component scopes, the ``use_map`` hook and batching.

A :class:`RenderScope` stands in for a mounted component. Its render
function runs with the scope installed as current, so hooks called inside
it can find their slot. Slots are matched by call order, exactly like
function-component hooks.

Publishing to a store a scope subscribed to re-renders that scope:

- immediately, when outside :func:`act`;
- once, when the outermost :func:`act` block exits;
- after the current pass, when the publish happens during the scope's own
  render.

Usage::

    def counter_list():
        snapshot, actions = use_map([("a", 1)])
        return snapshot, actions

    result = render_hook(counter_list)
    with act():
        result.current[1].set("b", 2)
    assert result.current[0]["b"] == 2
"""

from __future__ import annotations

import contextlib
from collections.abc import Callable, Iterator
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from statekit.actions import MapActions
from statekit.config import StoreConfig
from statekit.container import MapContainer, create_container
from statekit.log import bind, get_logger
from statekit.snapshot import EntrySource, Snapshot
from statekit.types import HookError

logger = get_logger("render")

T = TypeVar("T")

_MAX_RENDER_PASSES = 25

_current_scope: ContextVar[RenderScope[Any] | None] = ContextVar("_current_scope", default=None)
_batch: ContextVar[list[RenderScope[Any]] | None] = ContextVar("_batch", default=None)


@dataclass(slots=True)
class _MapSlot:
    container: MapContainer[Any, Any]
    unsubscribe: Callable[[], None]


class RenderScope(Generic[T]):
    """A mounted component: a render function plus its hook slots.

    Args:
        render_fn: Zero-argument callable producing the rendered value.
    """

    __slots__ = (
        "_current",
        "_cursor",
        "_mounted",
        "_pending",
        "_render_count",
        "_render_fn",
        "_rendered",
        "_rendering",
        "_slots",
    )

    def __init__(self, render_fn: Callable[[], T]) -> None:
        self._render_fn = render_fn
        self._slots: list[_MapSlot] = []
        self._cursor = 0
        self._current: T | None = None
        self._render_count = 0
        self._rendered = False
        self._rendering = False
        self._pending = False
        self._mounted = True

    # ── Properties ────────────────────────────────────────────────────

    @property
    def current(self) -> T:
        """Value returned by the latest render."""
        if not self._rendered:
            raise HookError("scope has not rendered yet")
        return self._current  # type: ignore[return-value]

    @property
    def render_count(self) -> int:
        return self._render_count

    @property
    def mounted(self) -> bool:
        return self._mounted

    # ── Lifecycle ─────────────────────────────────────────────────────

    def render(self) -> T:
        """Run the render function, repeating while it published to itself.

        Raises:
            HookError: If the scope is unmounted, the hook order changed, or
                the render keeps publishing to its own stores.
        """
        if not self._mounted:
            raise HookError("cannot render an unmounted scope")

        passes = 0
        while True:
            self._render_once()
            if not self._pending:
                break
            self._pending = False
            queue = _batch.get()
            if queue is not None:
                if self not in queue:
                    queue.append(self)
                break
            passes += 1
            if passes >= _MAX_RENDER_PASSES:
                raise HookError(f"too many re-renders ({passes}); a render keeps updating its own state")
        return self._current  # type: ignore[return-value]

    def _render_once(self) -> None:
        token = _current_scope.set(self)
        self._cursor = 0
        self._rendering = True
        try:
            with bind(scope=f"{id(self):x}"):
                value = self._render_fn()
            if self._rendered and self._cursor != len(self._slots):
                raise HookError(
                    f"rendered {self._cursor} hooks, expected {len(self._slots)}; "
                    "hooks must be called in the same order on every render"
                )
        except BaseException:
            # A failed pass must not leave a self-publish queued for the next one.
            self._pending = False
            raise
        finally:
            self._rendering = False
            _current_scope.reset(token)

        self._current = value
        self._rendered = True
        self._render_count += 1
        logger.debug("rendered: scope=%x count=%d hooks=%d", id(self), self._render_count, len(self._slots))

    def unmount(self) -> None:
        """Detach from every store. Later publishes no longer render."""
        if not self._mounted:
            return
        self._mounted = False
        for slot in self._slots:
            slot.unsubscribe()
        logger.debug("unmounted: scope=%x hooks=%d", id(self), len(self._slots))

    # ── Hook plumbing ─────────────────────────────────────────────────

    def _claim_slot(self) -> _MapSlot | None:
        """Return the slot for the next hook call, or None on first render."""
        index = self._cursor
        self._cursor += 1
        if index < len(self._slots):
            return self._slots[index]
        if self._rendered:
            raise HookError(
                f"rendered more hooks than during the first render (hook #{index + 1}); "
                "hooks must be called in the same order on every render"
            )
        return None

    def _on_publish(self, _snapshot: Snapshot[Any, Any]) -> None:
        if not self._mounted:
            return
        if self._rendering:
            self._pending = True
            return
        queue = _batch.get()
        if queue is not None:
            if self not in queue:
                queue.append(self)
            return
        self.render()

    def __repr__(self) -> str:
        state = "mounted" if self._mounted else "unmounted"
        return f"RenderScope({state}, renders={self._render_count}, hooks={len(self._slots)})"


def use_map(
    initial: EntrySource[Any, Any] | None = None,
    *,
    config: StoreConfig | None = None,
) -> tuple[Snapshot[Any, Any], MapActions[Any, Any]]:
    """Hold a map container in the current render scope.

    The first render creates the container from *initial*; later renders
    ignore *initial* and return the latest snapshot with the same actions
    object.

    Raises:
        HookError: If called outside a render.
        InvalidArgument: If *initial* is malformed on the first render.
    """
    scope = _current_scope.get()
    if scope is None:
        raise HookError("use_map() must be called while a RenderScope is rendering")

    slot = scope._claim_slot()
    if slot is None:
        container: MapContainer[Any, Any] = create_container(initial, config=config)
        slot = _MapSlot(container=container, unsubscribe=container.subscribe(scope._on_publish))
        scope._slots.append(slot)
    return slot.container.snapshot, slot.container.actions


@contextlib.contextmanager
def act() -> Iterator[None]:
    """Batch re-renders until the outermost ``act()`` block exits.

    Scopes render once each, in the order they were first scheduled. Nested
    blocks join the outer batch. Nothing is flushed if the block raises. A
    scope failing to render does not stop the rest of the flush; the first
    error is re-raised once every queued scope has rendered.
    """
    if _batch.get() is not None:
        yield
        return

    queue: list[RenderScope[Any]] = []
    token = _batch.set(queue)
    try:
        yield
    finally:
        _batch.reset(token)

    if queue:
        logger.debug("act flush: scopes=%d", len(queue))
    first_error: Exception | None = None
    for scope in queue:
        if not scope.mounted:
            continue
        try:
            scope.render()
        except Exception as exc:
            logger.debug("act flush: scope=%x failed: %r", id(scope), exc)
            if first_error is None:
                first_error = exc
    if first_error is not None:
        raise first_error


class HookResult(Generic[T]):
    """Handle returned by :func:`render_hook`."""

    __slots__ = ("_scope",)

    def __init__(self, scope: RenderScope[T]) -> None:
        self._scope = scope

    @property
    def current(self) -> T:
        return self._scope.current

    @property
    def render_count(self) -> int:
        return self._scope.render_count

    @property
    def scope(self) -> RenderScope[T]:
        return self._scope

    def rerender(self) -> T:
        with act():
            self._scope.render()
        return self._scope.current

    def unmount(self) -> None:
        self._scope.unmount()


def render_hook(fn: Callable[[], T]) -> HookResult[T]:
    """Mount *fn* in a fresh scope and render it once inside ``act()``."""
    scope = RenderScope(fn)
    with act():
        scope.render()
    return HookResult(scope)
