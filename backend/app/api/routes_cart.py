from app.api.responses import success_response
from app.db import get_db
from app.schemas.cart_schema import CartItemAddIn
from app.security.context import RequestContext, get_request_context
from app.services.cart_service import CartService
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

router = APIRouter(prefix="/cart", tags=["cart"])


@router.post("/item", summary="Add item to cart")
def add_item(
    payload: CartItemAddIn,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """
    Adds a product (with flavor and size) to the session cart, or increases
    the quantity of the matching line if the same combination is already there.
    """
    svc = CartService(db)
    item = svc.add_item(ctx, payload)
    return success_response(item.model_dump(by_alias=True, mode="json"))
