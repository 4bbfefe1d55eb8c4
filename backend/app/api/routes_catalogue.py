from fastapi import APIRouter, Depends, Path, Query
from fastapi.exceptions import RequestValidationError
from typing import Optional
from pydantic import ValidationError
from sqlalchemy.orm import Session
from app.api.responses import success_response
from app.db import get_db
from app.repositories.product_repo import ProductRepository
from app.schemas.product_schema import MAX_ID, ProductListParams, RelatedParams
from app.security.context import RequestContext, get_request_context

router = APIRouter(prefix="/product", tags=["catalogue"])


def _query_params(model, values: dict):
    """Build a typed params model from raw query values; failures are client input errors."""
    try:
        return model.model_validate({k: v for k, v in values.items() if v is not None})
    except ValidationError as exc:
        raise RequestValidationError(
            [{**err, "loc": ("query", *err["loc"])} for err in exc.errors(include_url=False)]
        ) from exc


@router.get("", summary="List products")
def list_products(
    page: int = Query(1, ge=1),
    page_size: Optional[str] = Query(None, alias="pageSize", description="12, 24 or 36; anything else means 12"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    category_ids: Optional[str] = Query(None, alias="categoryIds", max_length=500),
    flavor_ids: Optional[str] = Query(None, alias="flavorIds", max_length=500),
    size_ids: Optional[str] = Query(None, alias="sizeIds", max_length=500),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    confectioner_ids: Optional[str] = Query(None, alias="confectionerIds", max_length=500),
    availability: Optional[str] = Query(None),
    search_term: Optional[str] = Query(None, alias="searchTerm", max_length=100),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    params = _query_params(
        ProductListParams,
        {
            "page": page,
            "pageSize": page_size,
            "sortBy": sort_by,
            "categoryIds": category_ids,
            "flavorIds": flavor_ids,
            "sizeIds": size_ids,
            "minPrice": min_price,
            "maxPrice": max_price,
            "confectionerIds": confectioner_ids,
            "availability": availability,
            "searchTerm": search_term,
        },
    )
    repo = ProductRepository(db)
    result = repo.list_products(ctx.account_id, params)
    return success_response(result.model_dump(by_alias=True, mode="json"))


@router.get("/{id}", summary="Get product details")
def get_product(
    id: int = Path(..., gt=0, le=MAX_ID),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    repo = ProductRepository(db)
    detail = repo.get_product(ctx.account_id, id)
    return success_response(detail.model_dump(by_alias=True, mode="json"))


@router.get("/{id}/related", summary="Get related products")
def related_products(
    id: int = Path(..., gt=0, le=MAX_ID),
    limit: Optional[str] = Query(None, description="non-positive or invalid values mean 4"),
    criteria: Optional[str] = Query(None, description="category, flavor, confectioner or popularity"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    params = _query_params(RelatedParams, {"limit": limit, "criteria": criteria})
    repo = ProductRepository(db)
    items = repo.related_products(ctx.account_id, id, limit=params.limit, criteria=params.criteria)
    return success_response([p.model_dump(by_alias=True, mode="json") for p in items])
