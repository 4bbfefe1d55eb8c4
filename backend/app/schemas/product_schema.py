# backend/app/schemas/product_schema.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

PAGE_SIZES = (12, 24, 36)
DEFAULT_PAGE_SIZE = 12
DEFAULT_RELATED_LIMIT = 4
# ids are stored as 32-bit integers
MAX_ID = 2**31 - 1

SortKey = Literal["relevance", "price_asc", "price_desc", "best_selling", "top_rated", "newest"]
Availability = Literal["available", "unavailable", "all"]
RELATED_CRITERIA = ("category", "flavor", "confectioner", "popularity")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def parse_id_list(value):
    """Accept "1,2,3", [1, 2] or None; blank input means no filter."""
    if value is None:
        return None
    if isinstance(value, str):
        parts = [p.strip() for p in value.split(",") if p.strip()]
        if not parts:
            return None
        ids = []
        for p in parts:
            if not p.isdigit() or not 1 <= int(p) <= MAX_ID:
                raise ValueError(f"'{p}' is not a positive integer id")
            ids.append(int(p))
        return ids
    return list(value) or None


class ProductListParams(CamelModel):
    page: int = Field(1, ge=1)
    page_size: int = DEFAULT_PAGE_SIZE
    sort_by: SortKey = "relevance"
    category_ids: Optional[List[int]] = None
    flavor_ids: Optional[List[int]] = None
    size_ids: Optional[List[int]] = None
    confectioner_ids: Optional[List[int]] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    availability: Availability = "available"
    search_term: Optional[str] = Field(None, max_length=100)

    @field_validator("page_size", mode="before")
    @classmethod
    def _fallback_page_size(cls, v):
        try:
            v = int(v)
        except (TypeError, ValueError):
            return DEFAULT_PAGE_SIZE
        return v if v in PAGE_SIZES else DEFAULT_PAGE_SIZE

    @field_validator("category_ids", "flavor_ids", "size_ids", "confectioner_ids", mode="before")
    @classmethod
    def _split_ids(cls, v):
        return parse_id_list(v)

    @field_validator("search_term", mode="before")
    @classmethod
    def _blank_search(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


class ProductSummary(CamelModel):
    id_product: int
    name: str
    image_url: Optional[str] = None
    price: float
    original_price: Optional[float] = None
    is_promotion: bool
    average_rating: float
    total_reviews: int
    confectioner_name: str
    available: bool
    preparation_time: str


class Pagination(CamelModel):
    total_items: int
    total_pages: int
    current_page: int
    page_size: int


class ProductPage(CamelModel):
    products: List[ProductSummary]
    pagination: Pagination


class ProductInfo(CamelModel):
    id_product: int
    name: str
    description: str
    ingredients: str
    nutritional_info: Optional[str] = None
    base_price: float
    promotional_price: Optional[float] = None
    is_promotion: bool
    price: float
    available: bool
    stock: int
    preparation_time: str
    average_rating: float
    total_reviews: int


class ProductImageOut(CamelModel):
    id_product_image: int
    image_url: str
    is_primary: bool
    display_order: int


class FlavorOut(CamelModel):
    id_flavor: int
    name: str
    description: str


class SizeOut(CamelModel):
    id_size: int
    name: str
    description: str
    servings: int
    price_modifier: float


class ReviewOut(CamelModel):
    id_review: int
    customer_name: str
    rating: int
    comment: str
    date_created: datetime


class ConfectionerOut(CamelModel):
    id_confectioner: int
    name: str
    photo: Optional[str] = None
    average_rating: float
    total_products_sold: int


class ProductDetail(CamelModel):
    product: ProductInfo
    images: List[ProductImageOut]
    flavors: List[FlavorOut]
    sizes: List[SizeOut]
    reviews: List[ReviewOut]
    confectioner: Optional[ConfectionerOut] = None


class RelatedParams(CamelModel):
    limit: int = DEFAULT_RELATED_LIMIT
    criteria: str = "category"

    @field_validator("limit", mode="before")
    @classmethod
    def _fallback_limit(cls, v):
        try:
            v = int(v)
        except (TypeError, ValueError):
            return DEFAULT_RELATED_LIMIT
        return v if v > 0 else DEFAULT_RELATED_LIMIT

    @field_validator("criteria", mode="before")
    @classmethod
    def _fallback_criteria(cls, v):
        return v if v in RELATED_CRITERIA else "category"


class RelatedProduct(CamelModel):
    id_product: int
    name: str
    image_url: Optional[str] = None
    price: float
    original_price: Optional[float] = None
    is_promotion: bool
    average_rating: float
    total_reviews: int
    confectioner_name: str
