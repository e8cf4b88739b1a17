#cart_engine/data/models/cart.py
from datetime import datetime, timedelta, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, text

from cart_engine.data.database import Base
from cart_engine.domain.identity import GuestOwner, Owner, UserOwner


class CartStatus:
    ACTIVE = "ACTIVE"
    ORDERED = "ORDERED"
    ABANDONED = "ABANDONED"


_ACTIVE_ONLY = text("status = 'ACTIVE'")


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=True, index=True)
    guest_id = Column(String(36), nullable=True, index=True)

    status = Column(String(20), nullable=False, default=CartStatus.ACTIVE)
    version = Column(Integer, nullable=False, default=1)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (guest_id IS NULL)",
            name="ck_carts_single_owner",
        ),
        # at most one ACTIVE cart per owner
        Index(
            "uq_carts_active_user",
            "user_id",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
        Index(
            "uq_carts_active_guest",
            "guest_id",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
    )

    @property
    def owner(self) -> Owner:
        if self.user_id is not None:
            return UserOwner(self.user_id)
        return GuestOwner.parse(self.guest_id)


def new_cart(owner: Owner, ttl_seconds: int) -> CartModel:
    now = datetime.now(timezone.utc)
    cart = CartModel(
        status=CartStatus.ACTIVE,
        version=1,
        expires_at=now + timedelta(seconds=ttl_seconds),
        created_at=now,
        updated_at=now,
    )
    if isinstance(owner, UserOwner):
        cart.user_id = owner.user_id
    else:
        cart.guest_id = str(owner.guest_id)
    return cart
