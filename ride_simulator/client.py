import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional
from urllib.parse import parse_qs, urlparse

import pika

from ride_simulator import config
from ride_simulator.models import Message

logger = logging.getLogger("amqp_client")

EXPIRATION_IN_MILLISECONDS = 10000


# ---------------------------------------------------------------------------
# RabbitMQ helpers
# ---------------------------------------------------------------------------

def get_connection(amqp_url: str) -> pika.BlockingConnection:
    """Open a blocking connection to RabbitMQ. Failures propagate to the caller."""
    params = pika.URLParameters(amqp_url)
    # a heartbeat given in the URL query wins over AMQP_HEARTBEAT
    if "heartbeat" not in parse_qs(urlparse(amqp_url).query):
        params.heartbeat = config.AMQP_HEARTBEAT
    params.blocked_connection_timeout = 300
    return pika.BlockingConnection(params)


def setup_channel(channel, exchange: str):
    """Declare the topic exchange every event is published to."""
    channel.exchange_declare(exchange=exchange, exchange_type="topic", durable=True)


class AmqpClient:
    """
    Publishes messages on a single channel.

    pika's BlockingConnection is not thread safe, so every call on it goes
    through one dedicated worker thread. Coroutines awaiting publish() can
    still be gathered freely.
    """

    def __init__(
            self,
            exchange: str,
            channel,
            connection: Optional[pika.BlockingConnection] = None,
            executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.exchange = exchange
        self.channel = channel
        self.connection = connection
        self.executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="amqp")

    def _publish(self, routing_key: str, body: bytes):
        self.channel.basic_publish(
            exchange=self.exchange,
            routing_key=routing_key,
            body=body,
            properties=pika.BasicProperties(
                content_type="application/json",
                delivery_mode=1,  # transient
                expiration=str(EXPIRATION_IN_MILLISECONDS),
            ),
        )

    async def publish(self, routing_key: str, message: Message):
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self.executor, self._publish, routing_key, message.to_body())

    def close(self):
        try:
            if self.connection is not None and self.connection.is_open:
                self.executor.submit(self.connection.close).result()
        finally:
            self.executor.shutdown(wait=True)


async def init_client(amqp_url: Optional[str] = None, exchange: Optional[str] = None) -> AmqpClient:
    """Connect to RabbitMQ and declare the exchange. Any failure is fatal to startup."""
    amqp_url = amqp_url or config.AMQP_URL
    exchange = exchange or config.EXCHANGE

    logger.info("RabbitMQ initialization")
    logger.info("exchange: %s, url: %s", exchange, amqp_url)

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="amqp")
    loop = asyncio.get_running_loop()

    def connect():
        conn = get_connection(amqp_url)
        ch = conn.channel()
        setup_channel(ch, exchange)
        return conn, ch

    try:
        connection, channel = await loop.run_in_executor(executor, connect)
    except Exception:
        executor.shutdown(wait=False)
        raise

    logger.info("Connected to RabbitMQ, exchange %s declared", exchange)
    return AmqpClient(exchange, channel, connection=connection, executor=executor)
