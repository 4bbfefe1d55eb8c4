from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    and_,
    case,
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship

from app.db import Base
from app.utils.clock import utcnow


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        Index("ix_product_account_category", "account_id", "category_id"),
        Index("ix_product_account_confectioner", "account_id", "confectioner_id"),
        Index("ix_product_account_available", "account_id", "available"),
    )

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    confectioner_id = Column(Integer, ForeignKey("confectioners.id"), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=False)
    ingredients = Column(Text, nullable=False)
    nutritional_info = Column(Text, nullable=True)
    base_price = Column(Numeric(12, 2), nullable=False)
    promotional_price = Column(Numeric(12, 2), nullable=True)
    is_promotion = Column(Boolean, default=False, nullable=False)
    available = Column(Boolean, default=True, nullable=False)
    stock = Column(Integer, default=0, nullable=False)
    preparation_time = Column(String(50), nullable=False)
    average_rating = Column(Numeric(3, 1), default=0, nullable=False)
    total_reviews = Column(Integer, default=0, nullable=False)
    total_sales = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)

    category = relationship("Category")
    confectioner = relationship("Confectioner")
    images = relationship("ProductImage", back_populates="product", cascade="all, delete-orphan")
    flavor_links = relationship("ProductFlavor", back_populates="product", cascade="all, delete-orphan")
    size_links = relationship("ProductSize", back_populates="product", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="product")

    @hybrid_property
    def effective_price(self):
        """Promotional price while the promotion flag is set, base price otherwise."""
        return self.promotional_price if self.is_promotion else self.base_price

    @effective_price.expression
    def effective_price(cls):
        return case((cls.is_promotion.is_(True), cls.promotional_price), else_=cls.base_price)

    @hybrid_property
    def in_stock(self):
        return bool(self.available) and self.stock > 0

    @in_stock.expression
    def in_stock(cls):
        return and_(cls.available.is_(True), cls.stock > 0)

    def __repr__(self):
        return f"<Product id={self.id} name={self.name}>"


class ProductImage(Base):
    __tablename__ = "product_images"
    __table_args__ = (Index("ix_product_image_account_product", "account_id", "product_id"),)

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    image_url = Column(String(500), nullable=False)
    is_primary = Column(Boolean, default=False, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    product = relationship("Product", back_populates="images")


class ProductFlavor(Base):
    """A flavor offered for a product; `available` can switch it off for this product only."""

    __tablename__ = "product_flavors"

    account_id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    flavor_id = Column(Integer, ForeignKey("flavors.id"), primary_key=True)
    available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    product = relationship("Product", back_populates="flavor_links")
    flavor = relationship("Flavor")


class ProductSize(Base):
    __tablename__ = "product_sizes"

    account_id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    size_id = Column(Integer, ForeignKey("sizes.id"), primary_key=True)
    available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    product = relationship("Product", back_populates="size_links")
    size = relationship("Size")
