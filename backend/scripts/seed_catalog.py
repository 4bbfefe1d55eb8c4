#!/usr/bin/env python3
"""
Seed a demo cake catalog (categories, flavors, sizes, confectioners, products,
images, flavor/size links and reviews) for one account.

Entries are matched by name, so running the script twice does not duplicate rows.
Without --file a small built-in catalog is used.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --file ../frontend/mock/catalog.json --account 1
"""
import argparse
import json
import os
import sys
from decimal import Decimal

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.config import settings
from app.db import SessionLocal, init_db
from app.models.catalog import Category, Flavor, Size
from app.models.confectioner import Confectioner
from app.models.product import Product, ProductFlavor, ProductImage, ProductSize
from app.models.review import Review

DEFAULT_CATALOG = {
    "categories": [
        {"name": "Bolos de aniversário", "description": "Bolos para festas"},
        {"name": "Bolos caseiros", "description": "Receitas do dia a dia"},
    ],
    "flavors": [
        {"name": "Chocolate"},
        {"name": "Morango"},
        {"name": "Baunilha"},
        {"name": "Limão"},
    ],
    "sizes": [
        {"name": "P", "servings": 8, "priceModifier": "0.00"},
        {"name": "M", "servings": 15, "priceModifier": "15.00"},
        {"name": "G", "servings": 25, "priceModifier": "35.00"},
    ],
    "confectioners": [
        {"name": "Doces da Ana", "photo": "https://cdn.example.com/confectioners/ana.jpg"},
        {"name": "Confeitaria Bela", "photo": None},
    ],
    "products": [
        {
            "name": "Bolo Floresta Negra",
            "category": "Bolos de aniversário",
            "confectioner": "Doces da Ana",
            "description": "Chocolate com cerejas e chantilly",
            "ingredients": "farinha, chocolate, cereja, creme de leite",
            "basePrice": "89.90",
            "promotionalPrice": "79.90",
            "isPromotion": True,
            "stock": 5,
            "preparationTime": "2 dias",
            "totalSales": 40,
            "flavors": ["Chocolate"],
            "sizes": ["P", "M", "G"],
            "images": ["https://cdn.example.com/products/floresta-1.jpg", "https://cdn.example.com/products/floresta-2.jpg"],
            "reviews": [{"customerName": "Carla", "rating": 5, "comment": "Perfeito!"}],
        },
        {
            "name": "Bolo de Cenoura",
            "category": "Bolos caseiros",
            "confectioner": "Confeitaria Bela",
            "description": "Cenoura com cobertura de chocolate",
            "ingredients": "farinha, cenoura, ovos, chocolate",
            "basePrice": "45.00",
            "stock": 12,
            "preparationTime": "1 dia",
            "totalSales": 120,
            "flavors": ["Chocolate", "Baunilha"],
            "sizes": ["P", "M"],
            "images": ["https://cdn.example.com/products/cenoura.jpg"],
            "reviews": [
                {"customerName": "João", "rating": 4, "comment": "Muito bom"},
                {"customerName": "Marta", "rating": 5, "comment": "Igual ao da vó"},
            ],
        },
        {
            "name": "Torta de Limão",
            "category": "Bolos caseiros",
            "confectioner": "Doces da Ana",
            "description": "Massa crocante e creme de limão",
            "ingredients": "farinha, manteiga, limão, leite condensado",
            "basePrice": "60.00",
            "stock": 0,
            "preparationTime": "1 dia",
            "flavors": ["Limão"],
            "sizes": ["M"],
            "images": [],
            "reviews": [],
        },
    ],
}


def _get_or_create(db, model, account_id, name, **fields):
    obj = db.query(model).filter(model.account_id == account_id, model.name == name).first()
    if obj:
        for k, v in fields.items():
            setattr(obj, k, v)
        return obj, False
    obj = model(account_id=account_id, name=name, **fields)
    db.add(obj)
    db.flush()
    return obj, True


def seed_catalog(db, data: dict, account_id: int) -> dict:
    counts = {"categories": 0, "flavors": 0, "sizes": 0, "confectioners": 0, "products": 0}

    categories, flavors, sizes, confectioners = {}, {}, {}, {}
    for c in data.get("categories", []):
        categories[c["name"]], created = _get_or_create(
            db, Category, account_id, c["name"], description=c.get("description", "")
        )
        counts["categories"] += created
    for f in data.get("flavors", []):
        flavors[f["name"]], created = _get_or_create(
            db, Flavor, account_id, f["name"], description=f.get("description", "")
        )
        counts["flavors"] += created
    for s in data.get("sizes", []):
        sizes[s["name"]], created = _get_or_create(
            db,
            Size,
            account_id,
            s["name"],
            description=s.get("description", ""),
            servings=int(s["servings"]),
            price_modifier=Decimal(str(s.get("priceModifier", 0))),
        )
        counts["sizes"] += created
    for c in data.get("confectioners", []):
        confectioners[c["name"]], created = _get_or_create(
            db, Confectioner, account_id, c["name"], photo=c.get("photo")
        )
        counts["confectioners"] += created

    for entry in data.get("products", []):
        reviews = entry.get("reviews", [])
        ratings = [int(r["rating"]) for r in reviews]
        promo = entry.get("promotionalPrice")
        product, created = _get_or_create(
            db,
            Product,
            account_id,
            entry["name"],
            category_id=categories[entry["category"]].id,
            confectioner_id=confectioners[entry["confectioner"]].id,
            description=entry.get("description", ""),
            ingredients=entry.get("ingredients", ""),
            nutritional_info=entry.get("nutritionalInfo"),
            base_price=Decimal(str(entry["basePrice"])),
            promotional_price=Decimal(str(promo)) if promo is not None else None,
            is_promotion=bool(entry.get("isPromotion", False)),
            available=bool(entry.get("available", True)),
            stock=int(entry.get("stock", 0)),
            preparation_time=entry.get("preparationTime", ""),
            total_sales=int(entry.get("totalSales", 0)),
            total_reviews=len(ratings),
            average_rating=Decimal(sum(ratings)) / len(ratings) if ratings else Decimal(0),
        )
        counts["products"] += created
        if not created:
            # links, images and reviews are only written on first insert
            continue

        for name in entry.get("flavors", []):
            db.add(ProductFlavor(account_id=account_id, product_id=product.id, flavor_id=flavors[name].id))
        for name in entry.get("sizes", []):
            db.add(ProductSize(account_id=account_id, product_id=product.id, size_id=sizes[name].id))
        for order, url in enumerate(entry.get("images", [])):
            db.add(
                ProductImage(
                    account_id=account_id,
                    product_id=product.id,
                    image_url=url,
                    is_primary=order == 0,
                    display_order=order,
                )
            )
        for r in reviews:
            db.add(
                Review(
                    account_id=account_id,
                    product_id=product.id,
                    customer_name=r["customerName"],
                    rating=int(r["rating"]),
                    comment=r.get("comment", ""),
                )
            )
        db.flush()

    return counts


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", default=None, help="Path to a catalog json; built-in demo data when omitted")
    parser.add_argument("--account", "-a", type=int, default=settings.DEFAULT_ACCOUNT_ID)
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables first")
    args = parser.parse_args()

    data = DEFAULT_CATALOG
    if args.file:
        if not os.path.exists(args.file):
            print("File not found:", args.file)
            sys.exit(1)
        with open(args.file, "r", encoding="utf-8") as f:
            data = json.load(f)

    init_db(reset=args.reset)
    db = SessionLocal()
    try:
        counts = seed_catalog(db, data, args.account)
        db.commit()
        print("Seeded:", counts)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
