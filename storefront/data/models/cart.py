# storefront/data/models/cart.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.data.database import Base


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    # one cart per user; the unique index backs get-or-create under races
    user_id = Column(Integer, nullable=False, unique=True, index=True)
    coupon_id = Column(Integer, ForeignKey("coupons.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.id",
    )
    coupon = relationship("CouponModel")
