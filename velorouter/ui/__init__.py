"""User interface glue for route editors.

Core Components:
- edit_dispatch.py: Gesture types, EditModeFlags and dispatch_gesture()

Map drawing is left to the front-end; it consumes RouteEngine.snapshot()
and reports gestures back through dispatch_gesture().
"""

from velorouter.ui.edit_dispatch import (
    ClearPressed,
    DragStarted,
    EditModeFlags,
    Gesture,
    MapClick,
    MarkerDoubleClick,
    MarkerDragEnd,
    MarkerRole,
    PathDragEnd,
    ProfileSelected,
    SwapPressed,
    ToggleEditMode,
    dispatch_gesture,
    get_gesture_handler,
)

__all__ = [
    "dispatch_gesture",
    "get_gesture_handler",
    "EditModeFlags",
    "MarkerRole",
    "Gesture",
    "MapClick",
    "DragStarted",
    "MarkerDragEnd",
    "MarkerDoubleClick",
    "PathDragEnd",
    "ToggleEditMode",
    "ClearPressed",
    "SwapPressed",
    "ProfileSelected",
]
