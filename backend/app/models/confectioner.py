from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String

from app.db import Base
from app.utils.clock import utcnow


class Confectioner(Base):
    __tablename__ = "confectioners"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    photo = Column(String(500), nullable=True)
    average_rating = Column(Numeric(3, 1), nullable=False, default=0)
    total_products_sold = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<Confectioner name={self.name}>"
