import logging
import uuid
from typing import Dict, List, Optional

from ride_simulator.models import Actor

logger = logging.getLogger("actor_store")

DEFAULT_ACTOR_NAME = "John Doe"


def generate_id() -> str:
    return str(uuid.uuid4())


class ActorRegistry:
    """In-memory riders keyed by id. Grows for the whole run, never shrinks."""

    def __init__(self):
        self._actors: Dict[str, Actor] = {}

    def create(self, name: Optional[str] = None) -> Actor:
        actor = Actor(id=generate_id(), name=name or DEFAULT_ACTOR_NAME)
        self._actors[actor.id] = actor
        return actor

    def attach_ride(self, actor_id: str, ride_id: str) -> None:
        actor = self._actors.get(actor_id)
        if actor is None:
            logger.debug("Ride %s for unknown actor %s ignored", ride_id, actor_id)
            return
        self._actors[actor_id] = actor.model_copy(update={"ride_id": ride_id})

    def get(self, actor_id: str) -> Optional[Actor]:
        return self._actors.get(actor_id)

    def all(self) -> List[Actor]:
        return list(self._actors.values())

    def size(self) -> int:
        return len(self._actors)

    def __len__(self) -> int:
        return self.size()
