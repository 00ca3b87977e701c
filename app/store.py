import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .database import Order as OrderModel, OrderItem as OrderItemModel
from .errors import PersistenceError
from .schemas.order import Order, OrderCreate

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStore:
    """Authoritative order collection backed by a SQLAlchemy session.

    Every method returns detached ``Order`` schemas, never ORM rows, so callers
    can keep using the result after the session is closed or the row deleted.
    Storage failures are rolled back and raised as PersistenceError.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    def insert(self, order: OrderCreate) -> Order:
        try:
            db_order = OrderModel(
                id=uuid4().hex,
                pickup_time=order.pickup_time,
                note=order.note,
                time=self.clock(),
                status="pending",
            )
            for position, item in enumerate(order.items):
                db_order.items.append(
                    OrderItemModel(
                        position=position,
                        display_names=dict(item.display_names),
                        price=item.price,
                        qty=item.qty,
                    )
                )
            self.db.add(db_order)
            self.db.commit()
            self.db.refresh(db_order)
            return Order.model_validate(db_order)
        except SQLAlchemyError as e:
            self._fail("insert", e)

    def list_all(self) -> List[Order]:
        try:
            orders = self.db.query(OrderModel).order_by(OrderModel.time.desc()).all()
            return [Order.model_validate(o) for o in orders]
        except SQLAlchemyError as e:
            self._fail("list", e)

    def update_status(self, order_id: str, status: str) -> Optional[Order]:
        try:
            db_order = self.db.query(OrderModel).filter(OrderModel.id == order_id).first()
            if db_order is None:
                return None
            db_order.status = status
            self.db.commit()
            self.db.refresh(db_order)
            return Order.model_validate(db_order)
        except SQLAlchemyError as e:
            self._fail("update_status", e)

    def delete_by_id(self, order_id: str) -> Optional[Order]:
        try:
            db_order = self.db.query(OrderModel).filter(OrderModel.id == order_id).first()
            if db_order is None:
                return None
            snapshot = Order.model_validate(db_order)
            self.db.delete(db_order)
            self.db.commit()
            return snapshot
        except SQLAlchemyError as e:
            self._fail("delete", e)

    def _fail(self, operation: str, error: SQLAlchemyError):
        self.db.rollback()
        logger.error(f"Order store {operation} failed: {error}")
        raise PersistenceError("Database error", str(error)) from error
