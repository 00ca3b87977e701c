from fastapi import APIRouter, Body, Depends, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from typing import Any, Dict, List

from ..database import get_db
from ..schemas.order import Order
from ..services.order_service import OrderService
from ..store import OrderStore

router = APIRouter()

# Store calls are blocking SQLAlchemy I/O, so they run in the threadpool and
# never stall the event loop the replication worker lives on.


def get_order_service(request: Request, db: Session = Depends(get_db)) -> OrderService:
    state = request.app.state
    return OrderService(OrderStore(db), state.outbox, state.timezone)


@router.post("/orders", status_code=201)
async def create_order(
    order_data: Dict[str, Any] = Body(...),
    service: OrderService = Depends(get_order_service),
):
    """Receive a new order from the storefront."""
    order = await run_in_threadpool(service.create, order_data)
    return {"message": "Order received successfully!", "order": order}


@router.get("/admin/orders", response_model=List[Order])
async def list_orders(service: OrderService = Depends(get_order_service)):
    """All orders for the admin page, newest first."""
    return await run_in_threadpool(service.list)


@router.put("/admin/orders/{order_id}/status")
async def update_order_status(
    order_id: str,
    body: Dict[str, Any] = Body(...),
    service: OrderService = Depends(get_order_service),
):
    order = await run_in_threadpool(service.update_status, order_id, body.get("status"))
    return {"message": "Order status updated successfully!", "order": order}


@router.delete("/admin/orders/{order_id}")
async def delete_order(order_id: str, service: OrderService = Depends(get_order_service)):
    deleted = await run_in_threadpool(service.delete, order_id)
    return {"message": "Order deleted successfully", "deletedOrder": deleted}
