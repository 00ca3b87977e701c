import logging
from contextlib import contextmanager
from typing import List

import pydantic

from ..errors import NotFoundError, PersistenceError, ValidationError
from ..models.order import OrderStatus
from ..replication import NewOrderEvent, ReplicationEvent, StatusUpdateEvent
from ..schemas.order import Order, OrderCreate
from ..store import OrderStore

logger = logging.getLogger(__name__)


@contextmanager
def _failure_message(message: str):
    try:
        yield
    except PersistenceError as e:
        raise PersistenceError(message, e.detail) from e


class OrderService:
    """Order lifecycle: create, list, update status, delete.

    Create and status updates are published to the replication outbox after
    the store write succeeds; deletes are not replicated.
    """

    def __init__(self, store: OrderStore, publisher, tz):
        self.store = store
        self.publisher = publisher
        self.tz = tz

    def create(self, payload: dict) -> Order:
        try:
            order_in = OrderCreate.model_validate(payload)
        except pydantic.ValidationError as e:
            logger.error(f"Error saving order: {e}")
            raise ValidationError("Failed to save order", str(e)) from e

        with _failure_message("Failed to save order"):
            order = self.store.insert(order_in)
        logger.info(f"Order {order.id} created with {len(order.items)} item(s)")

        self._replicate(lambda: NewOrderEvent.from_order(order, self.tz))
        return order

    def list(self) -> List[Order]:
        with _failure_message("Failed to fetch orders"):
            orders = self.store.list_all()
        logger.info(f"Fetched {len(orders)} order(s)")
        return orders

    def update_status(self, order_id: str, status) -> Order:
        if not isinstance(status, str) or status not in OrderStatus.values():
            raise ValidationError("Invalid status provided.")

        with _failure_message("Failed to update order status"):
            order = self.store.update_status(order_id, status)
        if order is None:
            raise NotFoundError("Order not found.")
        logger.info(f"Order {order_id} status set to {status}")

        self._replicate(lambda: StatusUpdateEvent.from_order(order))
        return order

    def delete(self, order_id: str) -> Order:
        # TODO: mirror deletions once the sheet script can remove or flag rows
        with _failure_message("Failed to delete order"):
            order = self.store.delete_by_id(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        logger.info(f"Order {order_id} deleted")
        return order

    def _replicate(self, build_event) -> None:
        # never let replication change the outcome of the request
        try:
            event: ReplicationEvent = build_event()
            self.publisher.publish(event)
        except Exception as e:
            logger.error(f"Error queueing order replication: {e}")
