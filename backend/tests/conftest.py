import os

# must be set before app.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_lovecakes.db")
os.environ.setdefault("APP_ENV", "test")

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.db import SessionLocal, init_db
from app.main import app
from app.models.catalog import Category, Flavor, Size
from app.models.confectioner import Confectioner
from app.models.product import Product, ProductFlavor, ProductImage, ProductSize
from app.models.review import Review

API = "/api/v1/external"
DAY0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def day(n: int) -> datetime:
    return DAY0 + timedelta(days=n)


@pytest.fixture(autouse=True)
def fresh_db():
    # Recreate DB fresh for every test
    init_db(reset=True)
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


def make_product(db, account_id, category, confectioner, name, base_price, created, **kw):
    p = Product(
        account_id=account_id,
        category_id=category.id,
        confectioner_id=confectioner.id,
        name=name,
        description=kw.pop("description", f"{name} description"),
        ingredients=kw.pop("ingredients", "flour, sugar, eggs"),
        base_price=Decimal(base_price),
        preparation_time=kw.pop("preparation_time", "1 day"),
        created_at=created,
        **kw,
    )
    db.add(p)
    db.flush()
    return p


@pytest.fixture
def catalog():
    """
    Account 1:
      p1 Chocolate Dream  cakes/ana   20.00            stock 10  rating 4.5 sales 50
      p2 Strawberry Bliss cakes/bela  30.00 promo 25.00 stock 3  rating 4.8 sales 20
      p3 Vanilla Cloud    cakes/ana   18.00 (promo 15.00 flag off) stock 0
      p4 Lemon Tart       pies/bela   22.00 available=False stock 5
      p5 Deleted Cake     soft-deleted
      p6 Orphan Cake      confectioner soft-deleted
      p7 Carrot Cake      pies/ana    16.00            stock 8  rating 4.5 sales 90
    Account 2:
      p8 Chocolate Other
    """
    s = SessionLocal()
    try:
        cakes = Category(account_id=1, name="Cakes")
        pies = Category(account_id=1, name="Pies")
        ana = Confectioner(account_id=1, name="Ana", photo="ana.jpg", average_rating=Decimal("4.7"), total_products_sold=300)
        bela = Confectioner(account_id=1, name="Bela")
        gone = Confectioner(account_id=1, name="Gone", deleted=True)
        chocolate = Flavor(account_id=1, name="Chocolate")
        strawberry = Flavor(account_id=1, name="Strawberry")
        vanilla = Flavor(account_id=1, name="Vanilla")
        lemon = Flavor(account_id=1, name="Lemon", deleted=True)
        small = Size(account_id=1, name="Small", servings=8, price_modifier=Decimal("0.00"))
        medium = Size(account_id=1, name="Medium", servings=15, price_modifier=Decimal("5.00"))
        large = Size(account_id=1, name="Large", servings=25, price_modifier=Decimal("12.50"))
        other_cat = Category(account_id=2, name="Cakes")
        other_conf = Confectioner(account_id=2, name="Other")
        s.add_all([cakes, pies, ana, bela, gone, chocolate, strawberry, vanilla, lemon, small, medium, large, other_cat, other_conf])
        s.flush()

        p1 = make_product(
            s, 1, cakes, ana, "Chocolate Dream", "20.00", day(1),
            description="Rich cocoa sponge", ingredients="flour, chocolate, eggs",
            stock=10, average_rating=Decimal("4.5"), total_reviews=2, total_sales=50,
        )
        p2 = make_product(
            s, 1, cakes, bela, "Strawberry Bliss", "30.00", day(2),
            description="Fresh strawberries", ingredients="flour, strawberry",
            promotional_price=Decimal("25.00"), is_promotion=True,
            stock=3, average_rating=Decimal("4.8"), total_sales=20,
        )
        p3 = make_product(
            s, 1, cakes, ana, "Vanilla Cloud", "18.00", day(3),
            promotional_price=Decimal("15.00"), is_promotion=False,
            stock=0, average_rating=Decimal("3.9"), total_sales=70,
        )
        p4 = make_product(
            s, 1, pies, bela, "Lemon Tart", "22.00", day(4),
            available=False, stock=5, average_rating=Decimal("4.0"), total_sales=5,
        )
        p5 = make_product(s, 1, cakes, ana, "Deleted Cake", "10.00", day(5), stock=5, deleted=True)
        p6 = make_product(s, 1, cakes, gone, "Orphan Cake", "12.00", day(6), stock=5)
        p7 = make_product(
            s, 1, pies, ana, "Carrot Cake", "16.00", day(7),
            description="Made with 100% carrots", ingredients="flour, carrot, chocolate glaze",
            stock=8, average_rating=Decimal("4.5"), total_sales=90,
        )
        p8 = make_product(s, 2, other_cat, other_conf, "Chocolate Other", "20.00", day(1), stock=5)

        links = [
            ProductFlavor(account_id=1, product_id=p1.id, flavor_id=vanilla.id),
            ProductFlavor(account_id=1, product_id=p1.id, flavor_id=chocolate.id),
            ProductFlavor(account_id=1, product_id=p1.id, flavor_id=strawberry.id, available=False),
            ProductFlavor(account_id=1, product_id=p1.id, flavor_id=lemon.id),
            ProductFlavor(account_id=1, product_id=p2.id, flavor_id=strawberry.id),
            ProductFlavor(account_id=1, product_id=p3.id, flavor_id=vanilla.id),
            ProductFlavor(account_id=1, product_id=p4.id, flavor_id=vanilla.id),
            ProductFlavor(account_id=1, product_id=p7.id, flavor_id=chocolate.id),
            ProductSize(account_id=1, product_id=p1.id, size_id=medium.id),
            ProductSize(account_id=1, product_id=p1.id, size_id=small.id),
            ProductSize(account_id=1, product_id=p1.id, size_id=large.id, available=False),
            ProductSize(account_id=1, product_id=p2.id, size_id=small.id),
            ProductSize(account_id=1, product_id=p3.id, size_id=small.id),
            ProductSize(account_id=1, product_id=p4.id, size_id=medium.id),
            ProductSize(account_id=1, product_id=p7.id, size_id=small.id),
        ]
        images = [
            ProductImage(account_id=1, product_id=p1.id, image_url="p1-side.jpg", is_primary=False, display_order=0),
            ProductImage(account_id=1, product_id=p1.id, image_url="p1-top.jpg", is_primary=False, display_order=1),
            ProductImage(account_id=1, product_id=p1.id, image_url="p1-main.jpg", is_primary=True, display_order=2),
            ProductImage(account_id=1, product_id=p2.id, image_url="p2-main.jpg", is_primary=True, display_order=0),
        ]
        reviews = [
            Review(account_id=1, product_id=p1.id, customer_name="Old", rating=4, comment="good", created_at=day(10)),
            Review(account_id=1, product_id=p1.id, customer_name="New", rating=5, comment="great", created_at=day(11)),
            Review(account_id=1, product_id=p1.id, customer_name="Hidden", rating=1, comment="spam", created_at=day(12), deleted=True),
        ]
        s.add_all(links + images + reviews)
        s.commit()

        return SimpleNamespace(
            p1=p1.id, p2=p2.id, p3=p3.id, p4=p4.id, p5=p5.id, p6=p6.id, p7=p7.id, p8=p8.id,
            cakes=cakes.id, pies=pies.id,
            ana=ana.id, bela=bela.id,
            chocolate=chocolate.id, strawberry=strawberry.id, vanilla=vanilla.id, lemon=lemon.id,
            small=small.id, medium=medium.id, large=large.id,
        )
    finally:
        s.close()
