"""
Rider simulation.

Every tick the simulator may sign up new riders and lets each known rider
produce some of these events:
- phone number update
- ride creation
- ride completion

Special riders (see catalog.SPECIAL_ACTORS) sign up at most once and are
busier than the default "John Doe" crowd.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Union

from faker import Faker

from ride_simulator.catalog import EVENTS, SPECIAL_ACTORS, EventSpec, EventType
from ride_simulator.models import Actor, Message
from ride_simulator.store import ActorRegistry, generate_id

logger = logging.getLogger("simulator")

PHONE_NUMBER_FORMAT = "+336#########"


@dataclass(frozen=True)
class Armed:
    probability: float


@dataclass(frozen=True)
class Fired:
    pass


SignupState = Union[Armed, Fired]


def draw_ride_amount(rng: random.Random) -> float:
    # 3.00 to 32.99, whole cents
    return round(3 + math.floor(rng.random() * 30 * 100) / 100, 2)


class RideSimulator:
    def __init__(
            self,
            registry: Optional[ActorRegistry] = None,
            events: Mapping[EventType, EventSpec] = EVENTS,
            special_actors: Mapping[str, Mapping[EventType, float]] = SPECIAL_ACTORS,
            rng: Optional[random.Random] = None,
            seed: Optional[int] = None,
    ):
        self.registry = registry if registry is not None else ActorRegistry()
        self.events = events
        self.special_actors = special_actors
        self.rng = rng if rng is not None else random.Random(seed)
        self.fake = Faker()
        if seed is not None:
            self.fake.seed_instance(seed)

        self.special_signups: Dict[str, SignupState] = {
            name: Armed(profile.get(EventType.RIDER_SIGNED_UP, 0.0))
            for name, profile in special_actors.items()
        }

    def _draw(self, probability: float) -> bool:
        return self.rng.random() < probability

    # -----------------------------------------------------------------------
    # Signups
    # -----------------------------------------------------------------------

    def _signup_event(self, name: Optional[str] = None) -> Message:
        actor = self.registry.create(name)
        return Message(
            type=EventType.RIDER_SIGNED_UP,
            payload={"id": actor.id, "name": actor.name},
        )

    def propose_signups(self, max_actors: int) -> List[Message]:
        """Signup events for this tick, in the order the riders were created."""
        signups: List[Message] = []

        if (self.registry.size() < max_actors
                and self._draw(self.events[EventType.RIDER_SIGNED_UP].probability)):
            signups.append(self._signup_event())

        for name, state in self.special_signups.items():
            if not isinstance(state, Armed) or state.probability <= 0:
                continue
            if self._draw(state.probability):
                signups.append(self._signup_event(name))
                self.special_signups[name] = Fired()
                logger.info("Special actor %s signed up", name)

        return signups

    # -----------------------------------------------------------------------
    # Rider actions
    # -----------------------------------------------------------------------

    def probabilities_for(self, actor: Actor) -> Dict[EventType, float]:
        probabilities = {t: spec.probability for t, spec in self.events.items()}
        probabilities.update(self.special_actors.get(actor.name, {}))
        return probabilities

    def _phone_update_event(self, actor: Actor) -> Message:
        return Message(
            type=EventType.RIDER_UPDATED_PHONE_NUMBER,
            payload={
                "id": actor.id,
                "phone_number": self.fake.numerify(PHONE_NUMBER_FORMAT),
            },
        )

    def _ride_created_event(self, actor: Actor) -> Message:
        ride = {
            "id": generate_id(),
            "amount": draw_ride_amount(self.rng),
            "rider_id": actor.id,
        }
        self.registry.attach_ride(actor.id, ride["id"])
        return Message(type=EventType.RIDE_CREATED, payload=ride)

    def _ride_completed_event(self, actor: Actor) -> Message:
        # Reads the registry, not the tick snapshot: a ride created earlier in
        # this tick is the one completed. The snapshot would still hold the
        # rider's previous ride.
        current = self.registry.get(actor.id) or actor
        # no ride yet: completes a ride that was never created
        ride = {
            "id": current.ride_id or generate_id(),
            "amount": draw_ride_amount(self.rng),
            "rider_id": actor.id,
        }
        return Message(type=EventType.RIDE_COMPLETED, payload=ride)

    def actor_events(self, actor: Actor) -> List[Message]:
        probabilities = self.probabilities_for(actor)
        events: List[Message] = []

        if self._draw(probabilities[EventType.RIDER_UPDATED_PHONE_NUMBER]):
            events.append(self._phone_update_event(actor))

        if self._draw(probabilities[EventType.RIDE_CREATED]):
            events.append(self._ride_created_event(actor))

        if self._draw(probabilities[EventType.RIDE_COMPLETED]):
            events.append(self._ride_completed_event(actor))

        return events

    def propose_actor_events(self) -> List[Message]:
        events: List[Message] = []
        for actor in self.registry.all():
            events.extend(self.actor_events(actor))
        return events
