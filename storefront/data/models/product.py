# storefront/data/models/product.py
from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text, CheckConstraint
from sqlalchemy.sql import func

from storefront.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    sku = Column(String(100), nullable=False, unique=True)
    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),)
