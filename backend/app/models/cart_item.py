from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.db import Base
from app.utils.clock import utcnow

MAX_CART_ITEM_QUANTITY = 10


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        # one line per product/flavor/size combination within a cart
        UniqueConstraint("cart_id", "product_id", "flavor_id", "size_id", name="uq_cart_item_combination"),
        CheckConstraint(f"quantity BETWEEN 1 AND {MAX_CART_ITEM_QUANTITY}", name="chk_cart_item_quantity"),
    )

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, nullable=False)
    cart_id = Column(
        Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    flavor_id = Column(Integer, ForeignKey("flavors.id"), nullable=False)
    size_id = Column(Integer, ForeignKey("sizes.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(12, 2), nullable=False)  # price snapshot at time of add
    total_price = Column(Numeric(12, 2), nullable=False)
    observations = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    cart = relationship("Cart", back_populates="items")
