"""Gesture dispatch for the route editor.

Translates map gestures into RouteEngine edits. The map layer reports what
the user did (Gesture objects); dispatch_gesture() looks up the handler for
the gesture type and returns the new mode flags.

Design Principles:
- Mode flags (edit mode, drag in progress) are passed in and returned
  explicitly, never kept in module state
- One handler per gesture type (no if-else chains over gesture types)
- Invalid edits are ignored by the engine; handlers never raise for them
- STRICT: Unknown gesture types raise RuntimeError immediately

Click sequencing in edit mode:
    no start      -> click places start
    no end        -> click places end (edit mode ends, see EditConfig)
    start and end -> click appends a waypoint before end

A map click that arrives while a drag is in progress is the click the
browser fires on mouse-up after the drag. It is swallowed and ends the drag.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional, Union

from velorouter.constants import EditConfig
from velorouter.engine.drag_insertion import DragHandle
from velorouter.model.point import Point

if TYPE_CHECKING:
    from velorouter.engine.route_engine import RouteEngine

logger = logging.getLogger(__name__)


class MarkerRole(Enum):
    """Which kind of marker a gesture targets."""

    START = "start"
    WAYPOINT = "waypoint"
    END = "end"


@dataclass(frozen=True)
class EditModeFlags:
    """Editor mode passed into and returned from dispatch_gesture.

    Attributes:
        editing: Click-to-place mode is active
        dragging: A marker or path handle is being dragged
    """

    editing: bool = False
    dragging: bool = False


# =============================================================================
# GESTURES
# =============================================================================


@dataclass(frozen=True)
class MapClick:
    """Click on the map background."""

    position: Point


@dataclass(frozen=True)
class DragStarted:
    """A marker or path handle started moving."""


@dataclass(frozen=True)
class MarkerDragEnd:
    """Marker released at a new position.

    Attributes:
        role: Dragged marker kind
        position: Release position
        index: Waypoint index (WAYPOINT only)
    """

    role: MarkerRole
    position: Point
    index: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate invariants - STRICT: fail immediately on invalid state."""
        if (self.role is MarkerRole.WAYPOINT) != (self.index is not None):
            raise ValueError(f"index must be set exactly for waypoint markers, got {self.role.value}/{self.index}")


@dataclass(frozen=True)
class MarkerDoubleClick:
    """Double-click on a marker (deletes it)."""

    role: MarkerRole
    index: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate invariants - STRICT: fail immediately on invalid state."""
        if (self.role is MarkerRole.WAYPOINT) != (self.index is not None):
            raise ValueError(f"index must be set exactly for waypoint markers, got {self.role.value}/{self.index}")


@dataclass(frozen=True)
class PathDragEnd:
    """Point dragged off the rendered path and released.

    Attributes:
        position: Release position
        handle: Drag handle the drag started from; None if the drag started
            on the path itself (the drop is projected back onto the path)
    """

    position: Point
    handle: Optional[DragHandle] = None


@dataclass(frozen=True)
class ToggleEditMode:
    """Edit-mode button pressed."""


@dataclass(frozen=True)
class ClearPressed:
    """Clear button pressed."""


@dataclass(frozen=True)
class SwapPressed:
    """Swap start/end button pressed."""


@dataclass(frozen=True)
class ProfileSelected:
    """Routing profile picked in the selector."""

    profile: str


Gesture = Union[
    MapClick,
    DragStarted,
    MarkerDragEnd,
    MarkerDoubleClick,
    PathDragEnd,
    ToggleEditMode,
    ClearPressed,
    SwapPressed,
    ProfileSelected,
]

GestureHandler = Callable[..., EditModeFlags]


# =============================================================================
# DISPATCH
# =============================================================================


def get_gesture_handler(gesture: Gesture) -> GestureHandler:
    """Get the handler for a gesture.

    Raises:
        RuntimeError: If the gesture type has no registered handler
    """
    handlers: dict[type, GestureHandler] = {
        MapClick: handle_map_click,
        DragStarted: handle_drag_started,
        MarkerDragEnd: handle_marker_drag_end,
        MarkerDoubleClick: handle_marker_double_click,
        PathDragEnd: handle_path_drag_end,
        ToggleEditMode: handle_toggle_edit_mode,
        ClearPressed: handle_clear,
        SwapPressed: handle_swap,
        ProfileSelected: handle_profile_selected,
    }

    handler = handlers.get(type(gesture))
    if handler is None:
        raise RuntimeError(
            f"No gesture handler registered for {type(gesture).__name__}. "
            f"Available gestures: {[cls.__name__ for cls in handlers]}."
        )
    return handler


def dispatch_gesture(gesture: Gesture, flags: EditModeFlags, engine: "RouteEngine") -> EditModeFlags:
    """Dispatch a gesture to its handler.

    Args:
        gesture: What the user did
        flags: Current editor mode
        engine: Route engine receiving the edits

    Returns:
        Editor mode after the gesture.
    """
    logger.debug(f"Dispatching {gesture} with {flags}")
    handler = get_gesture_handler(gesture=gesture)
    new_flags = handler(gesture=gesture, flags=flags, engine=engine)
    if new_flags != flags:
        logger.info(f"Editor mode {flags} -> {new_flags}")
    return new_flags


# =============================================================================
# GESTURE HANDLERS
# =============================================================================


def handle_map_click(gesture: MapClick, flags: EditModeFlags, engine: "RouteEngine") -> EditModeFlags:
    """Place start, then end, then append waypoints while in edit mode."""
    if flags.dragging:
        logger.debug("Click after drag suppressed")
        return replace(flags, dragging=False)
    if not flags.editing:
        return flags

    seq = engine.store.sequence
    if seq.start is None:
        engine.set_start(point=gesture.position)
        return flags
    if seq.end is None:
        engine.set_end(point=gesture.position)
        if EditConfig.EXIT_EDIT_MODE_ON_END:
            return replace(flags, editing=False)
        return flags

    engine.insert_waypoint(point=gesture.position)
    return flags


def handle_drag_started(gesture: DragStarted, flags: EditModeFlags, engine: "RouteEngine") -> EditModeFlags:
    return replace(flags, dragging=True)


def handle_marker_drag_end(gesture: MarkerDragEnd, flags: EditModeFlags, engine: "RouteEngine") -> EditModeFlags:
    """Move the dragged marker. The marker moves at once; its legs follow."""
    if gesture.role is MarkerRole.START:
        engine.set_start(point=gesture.position)
    elif gesture.role is MarkerRole.END:
        engine.set_end(point=gesture.position)
    else:
        assert gesture.index is not None
        engine.move_waypoint(index=gesture.index, point=gesture.position)
    return replace(flags, dragging=False)


def handle_marker_double_click(
    gesture: MarkerDoubleClick,
    flags: EditModeFlags,
    engine: "RouteEngine",
) -> EditModeFlags:
    """Delete the marker; removing an endpoint promotes the nearest waypoint."""
    if gesture.role is MarkerRole.START:
        engine.remove_start()
    elif gesture.role is MarkerRole.END:
        engine.remove_end()
    else:
        assert gesture.index is not None
        engine.remove_waypoint(index=gesture.index)
    return flags


def handle_path_drag_end(gesture: PathDragEnd, flags: EditModeFlags, engine: "RouteEngine") -> EditModeFlags:
    """Insert a waypoint where the path was dragged to."""
    if gesture.handle is not None:
        engine.drop_handle(handle=gesture.handle, drop=gesture.position)
    else:
        engine.drop_on_path(drop=gesture.position)
    return replace(flags, dragging=False)


def handle_toggle_edit_mode(gesture: ToggleEditMode, flags: EditModeFlags, engine: "RouteEngine") -> EditModeFlags:
    return replace(flags, editing=not flags.editing)


def handle_clear(gesture: ClearPressed, flags: EditModeFlags, engine: "RouteEngine") -> EditModeFlags:
    engine.clear()
    return flags


def handle_swap(gesture: SwapPressed, flags: EditModeFlags, engine: "RouteEngine") -> EditModeFlags:
    engine.swap()
    return flags


def handle_profile_selected(gesture: ProfileSelected, flags: EditModeFlags, engine: "RouteEngine") -> EditModeFlags:
    engine.set_profile(profile=gesture.profile)
    return flags
