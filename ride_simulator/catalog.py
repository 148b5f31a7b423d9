"""
Static tables driving the simulation: which events exist, where they are
routed, how often they fire, and how often publications are corrupted.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class EventType(str, Enum):
    RIDER_SIGNED_UP = "rider_signed_up"
    RIDER_UPDATED_PHONE_NUMBER = "rider_updated_phone_number"
    RIDE_CREATED = "ride_created"
    RIDE_COMPLETED = "ride_completed"


class ErrorKind(str, Enum):
    MULTIPLE_PUBLICATION = "multiple_publication"
    MISSING_PUBLICATION = "missing_publication"
    WRONG_SCHEMA = "wrong_schema"
    WRONG_VALUE = "wrong_value"


@dataclass(frozen=True)
class EventSpec:
    routing_key: str
    probability: float


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------
EVENTS: Mapping[EventType, EventSpec] = MappingProxyType({
    EventType.RIDER_SIGNED_UP: EventSpec("rider.signup", 0.3),
    EventType.RIDER_UPDATED_PHONE_NUMBER: EventSpec("rider.phone_update", 0.05),
    EventType.RIDE_CREATED: EventSpec("ride.create", 0.2),
    EventType.RIDE_COMPLETED: EventSpec("ride.completed", 0.2),
})

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
ERRORS: Mapping[ErrorKind, float] = MappingProxyType({
    ErrorKind.WRONG_SCHEMA: 0.05,
    ErrorKind.WRONG_VALUE: 0.05,
    ErrorKind.MISSING_PUBLICATION: 0.05,
    ErrorKind.MULTIPLE_PUBLICATION: 0.1,
})

# ---------------------------------------------------------------------------
# Special actors
# ---------------------------------------------------------------------------
# Named riders: sign up at most once, fire more events than the crowd.
_SPECIAL_PROFILE = MappingProxyType({
    EventType.RIDER_SIGNED_UP: 0.5,
    EventType.RIDE_CREATED: 0.5,
    EventType.RIDE_COMPLETED: 0.5,
})

SPECIAL_ACTORS: Mapping[str, Mapping[EventType, float]] = MappingProxyType({
    "Hubert Sacrin": _SPECIAL_PROFILE,
    "Hubert Cestnul": _SPECIAL_PROFILE,
    "Marcel Bofbof": _SPECIAL_PROFILE,
})


def routing_key_for(event_type) -> str:
    """Routing key of an event type (enum member or its string value)."""
    return EVENTS[EventType(event_type)].routing_key
