from app.db import Base
from app.utils.clock import utcnow
from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship


class Cart(Base):
    __tablename__ = "carts"
    # one cart per (tenant, session); concurrent first adds collide here
    __table_args__ = (UniqueConstraint("account_id", "session_id", name="uq_cart_account_session"),)

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, nullable=False)
    session_id = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    items = relationship(
        "CartItem", back_populates="cart", cascade="all, delete-orphan"
    )
