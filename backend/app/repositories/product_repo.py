import logging
import math
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, not_
from sqlalchemy.orm import Session

from app.errors import (
    ACCOUNT_ID_REQUIRED,
    PRODUCT_DOESNT_EXIST,
    PRODUCT_ID_REQUIRED,
    CriteriaNotImplementedError,
    DomainError,
)
from app.models.catalog import Flavor, Size
from app.models.confectioner import Confectioner
from app.models.product import Product, ProductFlavor, ProductImage, ProductSize
from app.models.review import Review
from app.schemas.product_schema import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_RELATED_LIMIT,
    PAGE_SIZES,
    RELATED_CRITERIA,
    ConfectionerOut,
    FlavorOut,
    Pagination,
    ProductDetail,
    ProductImageOut,
    ProductInfo,
    ProductListParams,
    ProductPage,
    ProductSummary,
    RelatedProduct,
    ReviewOut,
    SizeOut,
)

log = logging.getLogger("catalogue")


def money(value) -> Optional[float]:
    if value is None:
        return None
    return float(Decimal(value).quantize(Decimal("0.01")))


def rating(value) -> float:
    return float(value or 0)


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def _primary_image(self):
        # first primary image per product; the flag is not unique, lowest display order wins
        return (
            self.db.query(ProductImage.image_url)
            .filter(
                ProductImage.account_id == Product.account_id,
                ProductImage.product_id == Product.id,
                ProductImage.is_primary.is_(True),
            )
            .order_by(ProductImage.display_order, ProductImage.id)
            .limit(1)
            .correlate(Product)
            .scalar_subquery()
        )

    def _catalogue_query(self, account_id: int, *columns):
        return (
            self.db.query(*columns)
            .select_from(Product)
            .join(
                Confectioner,
                (Confectioner.account_id == Product.account_id)
                & (Confectioner.id == Product.confectioner_id),
            )
            .filter(
                Product.account_id == account_id,
                Product.deleted.is_(False),
                Confectioner.deleted.is_(False),
            )
        )

    def _list_filters(self, params: ProductListParams) -> list:
        """
        Predicates shared by the page query and the count query.
        Both must see exactly the same list or pagination drifts from the page contents.
        """
        filters = []

        if params.availability == "available":
            filters.append(Product.in_stock)
        elif params.availability == "unavailable":
            filters.append(not_(Product.in_stock))

        if params.category_ids:
            filters.append(Product.category_id.in_(params.category_ids))

        if params.flavor_ids:
            filters.append(
                self.db.query(ProductFlavor)
                .filter(
                    ProductFlavor.account_id == Product.account_id,
                    ProductFlavor.product_id == Product.id,
                    ProductFlavor.flavor_id.in_(params.flavor_ids),
                    ProductFlavor.available.is_(True),
                )
                .exists()
            )

        if params.size_ids:
            filters.append(
                self.db.query(ProductSize)
                .filter(
                    ProductSize.account_id == Product.account_id,
                    ProductSize.product_id == Product.id,
                    ProductSize.size_id.in_(params.size_ids),
                    ProductSize.available.is_(True),
                )
                .exists()
            )

        if params.min_price is not None:
            filters.append(Product.effective_price >= params.min_price)
        if params.max_price is not None:
            filters.append(Product.effective_price <= params.max_price)

        if params.confectioner_ids:
            filters.append(Product.confectioner_id.in_(params.confectioner_ids))

        if params.search_term:
            term = params.search_term
            filters.append(
                Product.name.icontains(term, autoescape=True)
                | Product.description.icontains(term, autoescape=True)
                | Product.ingredients.icontains(term, autoescape=True)
            )

        return filters

    @staticmethod
    def _list_ordering(sort_by: str) -> list:
        ordering = {
            "price_asc": [Product.effective_price.asc()],
            "price_desc": [Product.effective_price.desc()],
            "best_selling": [Product.total_sales.desc()],
            "top_rated": [Product.average_rating.desc()],
            "newest": [Product.created_at.desc()],
        }.get(sort_by, [])
        return ordering + [Product.id.asc()]

    def list_products(self, account_id: Optional[int], params: ProductListParams) -> ProductPage:
        if account_id is None:
            raise DomainError(ACCOUNT_ID_REQUIRED)

        page = max(1, params.page)
        page_size = params.page_size if params.page_size in PAGE_SIZES else DEFAULT_PAGE_SIZE
        filters = self._list_filters(params)

        rows = (
            self._catalogue_query(
                account_id,
                Product,
                Confectioner.name.label("confectioner_name"),
                self._primary_image().label("image_url"),
            )
            .filter(*filters)
            .order_by(*self._list_ordering(params.sort_by))
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

        total = self._catalogue_query(account_id, func.count(Product.id)).filter(*filters).scalar() or 0

        products = [
            ProductSummary(
                id_product=p.id,
                name=p.name,
                image_url=image_url,
                price=money(p.effective_price),
                original_price=money(p.base_price) if p.is_promotion else None,
                is_promotion=p.is_promotion,
                average_rating=rating(p.average_rating),
                total_reviews=p.total_reviews,
                confectioner_name=confectioner_name,
                available=p.available,
                preparation_time=p.preparation_time,
            )
            for p, confectioner_name, image_url in rows
        ]
        log.debug("list_products account=%s page=%s size=%s total=%s", account_id, page, page_size, total)

        return ProductPage(
            products=products,
            pagination=Pagination(
                total_items=total,
                total_pages=math.ceil(total / page_size),
                current_page=page,
                page_size=page_size,
            ),
        )

    def get_active(self, account_id: int, product_id: int) -> Optional[Product]:
        return (
            self.db.query(Product)
            .filter(
                Product.account_id == account_id,
                Product.id == product_id,
                Product.deleted.is_(False),
            )
            .first()
        )

    def _require_product(self, account_id: Optional[int], product_id: Optional[int]) -> Product:
        if account_id is None:
            raise DomainError(ACCOUNT_ID_REQUIRED)
        if product_id is None:
            raise DomainError(PRODUCT_ID_REQUIRED)
        product = self.get_active(account_id, product_id)
        if not product:
            raise DomainError(PRODUCT_DOESNT_EXIST)
        return product

    def get_product(self, account_id: Optional[int], product_id: Optional[int]) -> ProductDetail:
        p = self._require_product(account_id, product_id)

        images = (
            self.db.query(ProductImage)
            .filter(ProductImage.account_id == account_id, ProductImage.product_id == p.id)
            .order_by(ProductImage.is_primary.desc(), ProductImage.display_order.asc(), ProductImage.id.asc())
            .all()
        )
        flavors = (
            self.db.query(Flavor)
            .join(
                ProductFlavor,
                (ProductFlavor.account_id == Flavor.account_id) & (ProductFlavor.flavor_id == Flavor.id),
            )
            .filter(
                Flavor.account_id == account_id,
                ProductFlavor.product_id == p.id,
                ProductFlavor.available.is_(True),
                Flavor.deleted.is_(False),
            )
            .order_by(Flavor.name.asc())
            .all()
        )
        sizes = (
            self.db.query(Size)
            .join(
                ProductSize,
                (ProductSize.account_id == Size.account_id) & (ProductSize.size_id == Size.id),
            )
            .filter(
                Size.account_id == account_id,
                ProductSize.product_id == p.id,
                ProductSize.available.is_(True),
                Size.deleted.is_(False),
            )
            .order_by(Size.servings.asc(), Size.id.asc())
            .all()
        )
        reviews = (
            self.db.query(Review)
            .filter(
                Review.account_id == account_id,
                Review.product_id == p.id,
                Review.deleted.is_(False),
            )
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )
        confectioner = (
            self.db.query(Confectioner)
            .filter(
                Confectioner.account_id == account_id,
                Confectioner.id == p.confectioner_id,
                Confectioner.deleted.is_(False),
            )
            .first()
        )

        return ProductDetail(
            product=ProductInfo(
                id_product=p.id,
                name=p.name,
                description=p.description,
                ingredients=p.ingredients,
                nutritional_info=p.nutritional_info,
                base_price=money(p.base_price),
                promotional_price=money(p.promotional_price),
                is_promotion=p.is_promotion,
                price=money(p.effective_price),
                available=p.available,
                stock=p.stock,
                preparation_time=p.preparation_time,
                average_rating=rating(p.average_rating),
                total_reviews=p.total_reviews,
            ),
            images=[
                ProductImageOut(
                    id_product_image=i.id,
                    image_url=i.image_url,
                    is_primary=i.is_primary,
                    display_order=i.display_order,
                )
                for i in images
            ],
            flavors=[FlavorOut(id_flavor=f.id, name=f.name, description=f.description) for f in flavors],
            sizes=[
                SizeOut(
                    id_size=s.id,
                    name=s.name,
                    description=s.description,
                    servings=s.servings,
                    price_modifier=money(s.price_modifier),
                )
                for s in sizes
            ],
            reviews=[
                ReviewOut(
                    id_review=r.id,
                    customer_name=r.customer_name,
                    rating=r.rating,
                    comment=r.comment,
                    date_created=r.created_at,
                )
                for r in reviews
            ],
            confectioner=ConfectionerOut(
                id_confectioner=confectioner.id,
                name=confectioner.name,
                photo=confectioner.photo,
                average_rating=rating(confectioner.average_rating),
                total_products_sold=confectioner.total_products_sold,
            )
            if confectioner
            else None,
        )

    def related_products(
        self,
        account_id: Optional[int],
        product_id: Optional[int],
        limit: int = DEFAULT_RELATED_LIMIT,
        criteria: str = "category",
    ) -> List[RelatedProduct]:
        if limit is None or limit < 1:
            limit = DEFAULT_RELATED_LIMIT
        if criteria not in RELATED_CRITERIA:
            criteria = "category"

        ref = self._require_product(account_id, product_id)

        if criteria == "flavor":
            # accepted by the public contract but never had a matching rule
            raise CriteriaNotImplementedError(criteria)

        query = self._catalogue_query(
            account_id,
            Product,
            Confectioner.name.label("confectioner_name"),
            self._primary_image().label("image_url"),
        ).filter(Product.id != ref.id, Product.in_stock)

        if criteria == "category":
            query = query.filter(Product.category_id == ref.category_id)
        elif criteria == "confectioner":
            query = query.filter(Product.confectioner_id == ref.confectioner_id)

        if criteria == "popularity":
            ordering = [Product.total_sales.desc(), Product.average_rating.desc()]
        else:
            ordering = [Product.average_rating.desc(), Product.total_sales.desc()]

        rows = query.order_by(*ordering, Product.id.asc()).limit(limit).all()

        return [
            RelatedProduct(
                id_product=p.id,
                name=p.name,
                image_url=image_url,
                price=money(p.effective_price),
                original_price=money(p.base_price) if p.is_promotion else None,
                is_promotion=p.is_promotion,
                average_rating=rating(p.average_rating),
                total_reviews=p.total_reviews,
                confectioner_name=confectioner_name,
            )
            for p, confectioner_name, image_url in rows
        ]
