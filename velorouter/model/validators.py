"""Validators - Edit validation for the segment store and route engine.

Centralizes all validation logic. Validators return Optional[InvalidEdit]:
- None if valid
- An InvalidEdit object if invalid (caller logs it and ignores the edit)

Design Principles:
- No exceptions for expected validation failures (stale UI indices etc.)
- Rejections know their own message
- Caller controls how the rejection is reported
"""

from velorouter.constants import ProfileConfig
from velorouter.model.invalid_edit import (
    IndexOutOfRange,
    InvalidEdit,
    MissingEndpoints,
    UnknownProfile,
)
from velorouter.model.waypoint_sequence import WaypointSequence


def validate_has_route(
    sequence: WaypointSequence,
    action: str,
) -> InvalidEdit | None:
    """Validate that start and end are both placed.

    Returns:
        None if valid, MissingEndpoints otherwise.
    """
    if not sequence.has_route:
        return MissingEndpoints(action=action)
    return None


def validate_waypoint_index(
    sequence: WaypointSequence,
    index: int,
) -> InvalidEdit | None:
    """Validate index addresses an existing waypoint: 0 <= index < len(waypoints).

    Returns:
        None if valid, IndexOutOfRange otherwise.
    """
    size = len(sequence.waypoints)
    if not 0 <= index < size:
        return IndexOutOfRange(index=index, size=size)
    return None


def validate_insert_index(
    sequence: WaypointSequence,
    index: int,
) -> InvalidEdit | None:
    """Validate an insertion position: 0 <= index <= len(waypoints).

    Index 0 inserts immediately after start, len(waypoints) immediately before end.

    Returns:
        None if valid, IndexOutOfRange otherwise.
    """
    size = len(sequence.waypoints)
    if not 0 <= index <= size:
        return IndexOutOfRange(index=index, size=size + 1)
    return None


def validate_profile(profile: str) -> InvalidEdit | None:
    """Validate profile id against the catalogue.

    Returns:
        None if valid, UnknownProfile otherwise.
    """
    if not ProfileConfig.is_known(profile):
        return UnknownProfile(profile=profile)
    return None
