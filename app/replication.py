"""Best-effort replication of order events to the Google Sheet webhook.

The request path only ever calls ``ReplicationOutbox.publish``, which enqueues
(from the loop or from a threadpool thread) and returns. A worker task on
the event loop hands each event to ``SheetWebhookSink`` exactly once:
delivery is at-most-once, with no retry, no ordering guarantee and no
idempotency key. Nothing here raises into the caller.
"""
import asyncio
import logging
from typing import Literal, Optional

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .errors import ReplicationError
from .models.order import (
    PICKUP_TIME_NOT_SPECIFIED,
    describe_items,
    format_thai_datetime,
    total_price,
)
from .schemas.order import Order

logger = logging.getLogger(__name__)


class ReplicationEvent(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    action: str
    order_id: str

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class NewOrderEvent(ReplicationEvent):
    action: Literal["newOrder"] = "newOrder"
    order_time: str
    pickup_time: str
    customer_note: str
    items_list: str
    total_price: float
    status: str

    @classmethod
    def from_order(cls, order: Order, tz) -> "NewOrderEvent":
        return cls(
            order_id=order.id,
            order_time=format_thai_datetime(order.time, tz),
            pickup_time=order.pickup_time or PICKUP_TIME_NOT_SPECIFIED,
            customer_note=order.note or "",
            items_list=describe_items(order.items),
            total_price=total_price(order.items),
            status=order.status.value,
        )


class StatusUpdateEvent(ReplicationEvent):
    action: Literal["updateStatus"] = "updateStatus"
    new_status: str

    @classmethod
    def from_order(cls, order: Order) -> "StatusUpdateEvent":
        return cls(order_id=order.id, new_status=order.status.value)


class SheetWebhookSink:
    """POSTs event payloads to one webhook URL; logs failures instead of raising."""

    def __init__(self, url: Optional[str], timeout: float = 10.0, transport: httpx.AsyncBaseTransport = None):
        self.url = url
        self.timeout = timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    async def send(self, event: ReplicationEvent) -> bool:
        if not self.enabled:
            logger.debug(f"Replication disabled, skipping {event.action} for order {event.order_id}")
            return False
        try:
            await self._deliver(event)
            return True
        except ReplicationError as e:
            logger.error(f"{e.message} (order {event.order_id}): {e.detail}")
            return False

    async def _deliver(self, event: ReplicationEvent) -> None:
        try:
            # Apps Script web apps answer with a redirect to the real result
            response = await self._get_client().post(self.url, json=event.to_payload())
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            # ValueError: the payload could not be encoded as JSON
            raise ReplicationError(f"Error sending {event.action} data to Google Sheet", str(e)) from e

        if not response.is_success:
            raise ReplicationError(
                f"Failed to send {event.action} data to Google Sheet. Status: {response.status_code}",
                response.text,
            )
        logger.info(f"{event.action} for order {event.order_id} sent to Google Sheet successfully.")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class ReplicationOutbox:
    """In-memory outbox between the order service and the sink."""

    def __init__(self, sink, maxsize: int = 1000, shutdown_grace: float = 5.0):
        self.sink = sink
        self.maxsize = maxsize
        self.shutdown_grace = shutdown_grace
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def running(self) -> bool:
        return self._worker is not None

    def start(self) -> None:
        """Start the delivery worker. Must be called from inside the event loop."""
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self.maxsize)
        self._worker = self._loop.create_task(self._run())
        logger.info("Replication outbox started")

    def publish(self, event: ReplicationEvent) -> bool:
        """Queue an event for delivery.

        Safe to call from threadpool threads: off the loop the event is handed
        over with ``call_soon_threadsafe`` and a full queue is only logged.
        """
        if self._queue is None:
            logger.warning(f"Replication outbox not running, dropping {event.action} for order {event.order_id}")
            return False
        if not self._on_loop_thread():
            self._loop.call_soon_threadsafe(self._enqueue, event)
            return True
        return self._enqueue(event)

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _enqueue(self, event: ReplicationEvent) -> bool:
        if self._queue is None:
            logger.warning(f"Replication outbox stopped, dropping {event.action} for order {event.order_id}")
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(f"Replication outbox full, dropping {event.action} for order {event.order_id}")
            return False
        return True

    async def drain(self) -> None:
        """Wait until every queued event has been handed to the sink."""
        if self._queue is not None:
            await self._queue.join()

    async def stop(self) -> None:
        if not self.running:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=self.shutdown_grace)
        except asyncio.TimeoutError:
            logger.warning(f"Replication outbox shut down with {self._queue.qsize()} undelivered event(s)")

        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        self._queue = None
        self._loop = None

        close = getattr(self.sink, "aclose", None)
        if close is not None:
            await close()
        logger.info("Replication outbox stopped")

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.sink.send(event)
            except Exception as e:
                logger.error(f"Unexpected error replicating {event.action} for order {event.order_id}: {e}")
            finally:
                self._queue.task_done()
