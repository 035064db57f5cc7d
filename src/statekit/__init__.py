"""statekit: reactive key-value state with immutable snapshots and stable actions."""

from statekit.actions import MapActions, bind_actions
from statekit.config import StoreConfig
from statekit.container import MapContainer, create_container
from statekit.log import bind, configure_logging, get_logger
from statekit.render import HookResult, RenderScope, act, render_hook, use_map
from statekit.snapshot import Snapshot, coerce_entries
from statekit.store import Observer, SnapshotStore
from statekit.types import HookError, InvalidArgument, StatekitError

__all__ = [
    "HookError",
    "HookResult",
    "InvalidArgument",
    "MapActions",
    "MapContainer",
    "Observer",
    "RenderScope",
    "Snapshot",
    "SnapshotStore",
    "StatekitError",
    "StoreConfig",
    "act",
    "bind",
    "bind_actions",
    "coerce_entries",
    "configure_logging",
    "create_container",
    "get_logger",
    "render_hook",
    "use_map",
]
