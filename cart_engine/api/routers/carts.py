# cart_engine/api/routers/carts.py
from typing import Optional

from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.orm import Session

from cart_engine.api.deps import get_identity, get_token_service, require_user
from cart_engine.api.errors import to_http
from cart_engine.data.database import get_db
from cart_engine.domain.errors import CartEngineError
from cart_engine.domain.identity import ResolvedIdentity, UserOwner
from cart_engine.domain.schemas import CartCountOut, CartOut, ItemIn, QuantityIn
from cart_engine.services.cart_service import CartService
from cart_engine.services.merge_service import MergeService
from cart_engine.services.token_service import TokenService
from cart_engine.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session) -> CartService:
    return CartService(db=db)


@router.get("", response_model=CartOut)
def get_cart(
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return svc.get_cart(identity.owner)


@router.get("/count", response_model=CartCountOut)
def get_cart_count(
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return {"total_items": svc.count_items(identity.owner)}


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        cart = svc.add_item(identity.owner, payload.product_id, payload.quantity)
    except CartEngineError as e:
        raise to_http(e)

    logger.info(f"Item added to cart. Product ID: {payload.product_id}, Quantity: {payload.quantity}")
    return cart


@router.put("/items/{product_id}", response_model=CartOut)
def update_item_quantity(
    product_id: int,
    payload: QuantityIn,
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_quantity(identity.owner, product_id, payload.quantity)
    except CartEngineError as e:
        raise to_http(e)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int,
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.remove_item(identity.owner, product_id)
    except CartEngineError as e:
        raise to_http(e)


@router.post("/merge", status_code=status.HTTP_204_NO_CONTENT)
def merge_guest_cart(
    user: UserOwner = Depends(require_user),
    x_guest_token: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
    db: Session = Depends(get_db),
):
    """
    Called once after a successful login with the guest token the client held
    before logging in. A missing or invalid token means there is nothing to merge.
    """
    guest_id = tokens.read_guest_id(x_guest_token) if x_guest_token else None
    if guest_id is None:
        logger.info(f"Login of user {user.user_id} without a valid guest token, no merge")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    try:
        MergeService(db).merge_on_login(user.user_id, guest_id)
    except CartEngineError as e:
        raise to_http(e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
