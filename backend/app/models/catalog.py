from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, UniqueConstraint

from app.db import Base
from app.utils.clock import utcnow


class Category(Base):
    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("account_id", "name", name="uq_category_account_name"),)

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)


class Flavor(Base):
    __tablename__ = "flavors"
    __table_args__ = (UniqueConstraint("account_id", "name", name="uq_flavor_account_name"),)

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)


class Size(Base):
    __tablename__ = "sizes"
    __table_args__ = (UniqueConstraint("account_id", "name", name="uq_size_account_name"),)

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    servings = Column(Integer, nullable=False)
    # added to a product's effective price when this size is chosen
    price_modifier = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<Size name={self.name} servings={self.servings}>"
