"""
Ride simulator worker: every interval, runs one simulation tick and publishes
the resulting rider events (with injected errors) to RabbitMQ.
"""

import asyncio
import logging
import random
import signal
import sys
from dataclasses import dataclass
from typing import List, Tuple

from ride_simulator import config
from ride_simulator.catalog import routing_key_for
from ride_simulator.client import init_client
from ride_simulator.injector import ErrorInjector
from ride_simulator.models import Message
from ride_simulator.simulator import RideSimulator

logger = logging.getLogger("RideSimulator")


@dataclass
class TickResult:
    events: int = 0
    published: int = 0
    failed: int = 0


# ---------------------------------------------------------------------------
# Publication
# ---------------------------------------------------------------------------

async def _send(client, msg: Message):
    routing_key = routing_key_for(msg.type)
    logger.debug("Message publication on %s: %s", routing_key, msg.payload)
    await client.publish(routing_key, msg)


async def publish(client, injector: ErrorInjector, message: Message) -> Tuple[int, int]:
    """
    Publish a message with possible errors applied.

    Every copy is sent on its own, so a failing copy neither stops nor hides
    the other one. Returns (copies sent, copies failed).
    """
    outgoing = injector.apply(message)
    outcomes = await asyncio.gather(
        *(_send(client, msg) for msg in outgoing),
        return_exceptions=True,
    )

    sent = failed = 0
    for msg, outcome in zip(outgoing, outcomes):
        if isinstance(outcome, BaseException):
            failed += 1
            logger.error("Failed to publish %s: %s", msg.type, outcome)
        else:
            sent += 1
    return sent, failed


async def tic(client, simulator: RideSimulator, injector: ErrorInjector, max_actors: int) -> TickResult:
    """One simulation step: signups first, then every rider's actions, all published concurrently."""
    events: List[Message] = simulator.propose_signups(max_actors)
    events.extend(simulator.propose_actor_events())

    results = await asyncio.gather(
        *(publish(client, injector, event) for event in events),
        return_exceptions=True,
    )

    result = TickResult(events=len(events))
    for event, outcome in zip(events, results):
        if isinstance(outcome, BaseException):
            result.failed += 1
            logger.error("Failed to publish %s: %s", event.type, outcome)
        else:
            sent, failed = outcome
            result.published += sent
            result.failed += failed

    logger.info(
        "Tick done: %d events, %d published, %d failed, %d actors",
        result.events, result.published, result.failed, simulator.registry.size(),
    )
    return result


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

async def run(
        client,
        simulator: RideSimulator,
        injector: ErrorInjector,
        max_actors: int,
        interval_ms: int,
        max_ticks: int = 0,
) -> int:
    """
    Tick at a fixed interval. A tick and the interval timer run together and
    both must finish before the next tick starts, so ticks never overlap and a
    tick slower than the interval is followed right away by the next one.

    max_ticks <= 0 ticks until the process is stopped.
    """
    ticks = 0
    while max_ticks <= 0 or ticks < max_ticks:
        await asyncio.gather(
            tic(client, simulator, injector, max_actors),
            asyncio.sleep(interval_ms / 1000.0),
        )
        ticks += 1
    return ticks


async def start():
    rng = random.Random(config.RANDOM_SEED)
    simulator = RideSimulator(rng=rng, seed=config.RANDOM_SEED)
    injector = ErrorInjector(rng=rng)

    client = await init_client(config.AMQP_URL, config.EXCHANGE)
    try:
        logger.info(
            "Simulating up to %d actors every %dms",
            config.MAXIMUM_ACTORS, config.INTERVAL_TIME_IN_MS,
        )
        await run(
            client,
            simulator,
            injector,
            max_actors=config.MAXIMUM_ACTORS,
            interval_ms=config.INTERVAL_TIME_IN_MS,
            max_ticks=config.MAX_TICKS,
        )
    finally:
        client.close()


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def graceful_shutdown(signum, frame):
    logger.info("Shutting down RideSimulator...")
    sys.exit(0)


def main():
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    signal.signal(signal.SIGINT, graceful_shutdown)
    signal.signal(signal.SIGTERM, graceful_shutdown)

    try:
        asyncio.run(start())
    except Exception:
        logger.exception("Worker stopped unexpectedly")
        sys.exit(1)

    logger.info("Worker stopped")
    sys.exit(0)


if __name__ == "__main__":
    main()
