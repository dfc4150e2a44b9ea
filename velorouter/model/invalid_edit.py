"""InvalidEdit - Reasons an edit is rejected.

The core never raises for invalid edits (stale UI indices, missing endpoints,
unknown profiles, drops too close to an existing marker). Validators return
one of these objects instead; the caller logs it and leaves state unchanged.

Subclasses store specific parameters and compute message as property.
Use isinstance() to check the rejection type.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class InvalidEdit(ABC):
    """Abstract base class for rejected edits."""

    @property
    @abstractmethod
    def message(self) -> str:
        """Human-readable rejection reason."""

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class IndexOutOfRange(InvalidEdit):
    """Waypoint index outside the current waypoint list.

    Attributes:
        index: Requested index
        size: Valid indices are [0, size)
    """

    index: int
    size: int

    @property
    def message(self) -> str:
        return f"Waypoint index {self.index} out of range (have {self.size})"


@dataclass(frozen=True)
class MissingEndpoints(InvalidEdit):
    """Edit requires both start and end to be placed."""

    action: str  # e.g., "insert waypoint", "swap"

    @property
    def message(self) -> str:
        return f"Cannot {self.action} - start and end must both be set"


@dataclass(frozen=True)
class UnknownProfile(InvalidEdit):
    """Profile id is not part of the routing profile catalogue."""

    profile: str

    @property
    def message(self) -> str:
        return f"Unknown routing profile '{self.profile}'"


@dataclass(frozen=True)
class TooCloseToExistingPoint(InvalidEdit):
    """Dropped waypoint coincides with an existing start/waypoint/end."""

    lat: float
    lng: float

    @property
    def message(self) -> str:
        return f"Point ({self.lat:.6f}, {self.lng:.6f}) is too close to an existing point"


@dataclass(frozen=True)
class NotOnPath(InvalidEdit):
    """Drop happened while no complete path is available."""

    reason: str  # e.g., "route is still loading"

    @property
    def message(self) -> str:
        return f"Cannot insert on path - {self.reason}"
