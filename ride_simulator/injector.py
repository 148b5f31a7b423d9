import logging
import random
from typing import Dict, List, Mapping, Optional

from ride_simulator.catalog import ERRORS, ErrorKind
from ride_simulator.models import Message

logger = logging.getLogger("error_injector")

WRONG_ID_VALUE = "undefined"


class ErrorInjector:
    """
    Corrupts outgoing messages on purpose.

    apply() returns the messages that should actually reach the exchange:
    - multiple_publication: an extra copy goes out first. The copy draws its
      own missing/schema/value errors and is never duplicated again.
    - missing_publication: the attempt is dropped.
    - wrong_schema: the payload keeps a single random key.
    - wrong_value: payload "id" becomes the string "undefined".
    """

    def __init__(
            self,
            errors: Mapping[ErrorKind, float] = ERRORS,
            rng: Optional[random.Random] = None,
    ):
        self.errors = errors
        self.rng = rng if rng is not None else random.Random()

    def draw(self) -> Dict[ErrorKind, bool]:
        return {
            kind: self.rng.random() < self.errors.get(kind, 0.0)
            for kind in ErrorKind
        }

    def apply(self, message: Message) -> List[Message]:
        return self._apply(message, allow_duplicate=True)

    def _apply(self, message: Message, allow_duplicate: bool) -> List[Message]:
        errors = self.draw()
        if not allow_duplicate:
            errors[ErrorKind.MULTIPLE_PUBLICATION] = False
        logger.debug(
            "Message publication applied errors: %s",
            {kind.value: applied for kind, applied in errors.items()},
        )

        published: List[Message] = []
        if errors[ErrorKind.MULTIPLE_PUBLICATION]:
            published.extend(self._apply(message, allow_duplicate=False))

        if errors[ErrorKind.MISSING_PUBLICATION]:
            return published

        payload = dict(message.payload)

        if errors[ErrorKind.WRONG_SCHEMA] and payload:
            kept_key = self.rng.choice(list(payload))
            payload = {kept_key: payload[kept_key]}

        if errors[ErrorKind.WRONG_VALUE]:
            payload["id"] = WRONG_ID_VALUE

        published.append(message.model_copy(update={"payload": payload}))
        return published
