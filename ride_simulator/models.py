from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from ride_simulator.catalog import EventType


class Actor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    ride_id: Optional[str] = None


class Message(BaseModel):
    """One event on its way to the exchange. Serialized as {type, payload}."""

    model_config = ConfigDict(use_enum_values=True)

    type: EventType
    payload: Dict[str, Any]

    def to_body(self) -> bytes:
        return self.model_dump_json().encode("utf-8")
