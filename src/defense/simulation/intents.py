"""Player intents and their outcomes.

Intents are the only way a collaborator changes simulation state.  They
can be applied immediately (``SimulationEngine.place_tower`` etc.) or
queued with ``SimulationEngine.submit`` and applied atomically at the
start of the next frame.  A rejected intent leaves the state untouched
and reports a RejectionReason instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .path import Point
    from .tower import Tower


class RejectionReason(str, Enum):
    UNKNOWN_KIND = "unknown_kind"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ON_PATH = "on_path"
    OVERLAPPING = "overlapping"
    NOT_FOUND = "not_found"
    TYPE_MISMATCH = "type_mismatch"
    LEVEL_MISMATCH = "level_mismatch"
    TOO_FAR = "too_far"
    NO_WAVE_AVAILABLE = "no_wave_available"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class PlaceTower:
    kind: str
    x: float
    y: float


@dataclass(frozen=True)
class MergeTowers:
    """Drop tower *dragged_id* onto *stationary_id* (optionally at *drop*)."""
    dragged_id: str
    stationary_id: str
    drop: Point | None = None


@dataclass(frozen=True)
class StartWave:
    pass


Intent = Union[PlaceTower, MergeTowers, StartWave]


@dataclass(frozen=True)
class IntentResult:
    """Outcome of one intent.  ``tower`` is set for successful place/merge."""

    intent: str
    accepted: bool
    reason: RejectionReason | None = None
    tower: Tower | None = None

    @classmethod
    def ok(cls, intent: str, tower: Tower | None = None) -> IntentResult:
        return cls(intent=intent, accepted=True, tower=tower)

    @classmethod
    def rejected(cls, intent: str, reason: RejectionReason) -> IntentResult:
        return cls(intent=intent, accepted=False, reason=reason)

    def __bool__(self) -> bool:
        return self.accepted

    def to_dict(self) -> dict:
        return {
            "intent": self.intent,
            "accepted": self.accepted,
            "reason": self.reason.value if self.reason is not None else None,
            "tower_id": self.tower.tower_id if self.tower is not None else None,
        }
