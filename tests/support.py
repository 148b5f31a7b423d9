from ride_simulator.catalog import EVENTS, ErrorKind, EventSpec


class FakeClient:
    """Records publications instead of talking to RabbitMQ."""

    def __init__(self, fail_on=()):
        self.published = []
        self.fail_on = set(fail_on)

    async def publish(self, routing_key, message):
        if message.type in self.fail_on:
            raise ConnectionError(f"cannot publish {message.type}")
        self.published.append((routing_key, message))


def make_events(**probabilities):
    """Catalog copy with the given probabilities, everything else at 0."""
    return {
        event_type: EventSpec(spec.routing_key, probabilities.get(event_type.value, 0.0))
        for event_type, spec in EVENTS.items()
    }


def make_errors(**probabilities):
    return {kind: probabilities.get(kind.value, 0.0) for kind in ErrorKind}
