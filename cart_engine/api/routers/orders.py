# cart_engine/api/routers/orders.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cart_engine.api.deps import require_user
from cart_engine.api.errors import to_http
from cart_engine.data.database import get_db
from cart_engine.domain.errors import CartEngineError
from cart_engine.domain.identity import UserOwner
from cart_engine.domain.schemas import OrderOut, OrderPageOut
from cart_engine.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.post("/checkout", response_model=OrderOut, status_code=201)
def checkout(
    user: UserOwner = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Converts the user's active cart into a PENDING order.
    """
    svc = get_service(db)
    try:
        return svc.checkout(user)
    except CartEngineError as e:
        raise to_http(e)


@router.get("", response_model=OrderPageOut)
def list_orders(
    page: int = Query(0, ge=0),
    size: int = Query(20, gt=0, le=100),
    user: UserOwner = Depends(require_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.list_orders(user.user_id, page, size)
    except CartEngineError as e:
        raise to_http(e)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user: UserOwner = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Order details with its item snapshots.
    """
    svc = get_service(db)
    try:
        return svc.get_order(order_id, user.user_id)
    except CartEngineError as e:
        raise to_http(e)


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    user: UserOwner = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Cancels a PENDING order and returns its items to stock.
    """
    svc = get_service(db)
    try:
        return svc.cancel_order(order_id, user.user_id)
    except CartEngineError as e:
        raise to_http(e)
