import logging

from sqlalchemy.orm import Session

from app.errors import DomainError
from app.repositories.cart_repo import CartRepository
from app.schemas.cart_schema import CartItemAddIn, CartItemResult
from app.security.context import RequestContext

log = logging.getLogger("cart")


class CartService:
    def __init__(self, db: Session):
        self.db = db
        self.cart_repo = CartRepository(db)

    def add_item(self, ctx: RequestContext, payload: CartItemAddIn) -> CartItemResult:
        try:
            result = self.cart_repo.add_item(
                account_id=ctx.account_id,
                session_id=payload.session_id,
                product_id=payload.id_product,
                flavor_id=payload.id_flavor,
                size_id=payload.id_size,
                quantity=payload.quantity,
                observations=payload.observations,
            )
        except DomainError as e:
            log.warning(
                "add_item rejected: %s (account=%s product=%s flavor=%s size=%s qty=%s)",
                e.message,
                ctx.account_id,
                payload.id_product,
                payload.id_flavor,
                payload.id_size,
                payload.quantity,
            )
            raise
        # no-op when the repository already committed its own transaction
        self.db.commit()
        log.info(
            "cart %s item %s now qty=%s total=%s",
            result.id_cart,
            result.id_cart_item,
            result.quantity,
            result.total_price,
        )
        return result

