from typing import Optional

from pydantic import Field, field_validator

from app.models.cart_item import MAX_CART_ITEM_QUANTITY
from app.schemas.product_schema import MAX_ID, CamelModel


class CartItemAddIn(CamelModel):
    session_id: str = Field(..., min_length=1, max_length=255)
    id_product: int = Field(..., gt=0, le=MAX_ID)
    id_flavor: int = Field(..., gt=0, le=MAX_ID)
    id_size: int = Field(..., gt=0, le=MAX_ID)
    quantity: int = Field(..., ge=1, le=MAX_CART_ITEM_QUANTITY)
    observations: Optional[str] = Field(None, max_length=200)

    @field_validator("session_id")
    @classmethod
    def _session_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("sessionId must not be blank")
        return v


class CartItemResult(CamelModel):
    id_cart_item: int
    id_cart: int
    quantity: int
    unit_price: float
    total_price: float
