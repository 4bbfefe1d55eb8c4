import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import (
    ACCOUNT_ID_REQUIRED,
    FLAVOR_ID_REQUIRED,
    FLAVOR_NOT_AVAILABLE,
    PRODUCT_DOESNT_EXIST,
    PRODUCT_ID_REQUIRED,
    PRODUCT_NOT_AVAILABLE,
    QUANTITY_EXCEEDS_MAXIMUM,
    QUANTITY_MUST_BE_POSITIVE,
    SESSION_ID_REQUIRED,
    SIZE_ID_REQUIRED,
    SIZE_NOT_AVAILABLE,
    DomainError,
)
from app.models.cart import Cart
from app.models.cart_item import MAX_CART_ITEM_QUANTITY, CartItem
from app.models.catalog import Size
from app.models.product import Product, ProductFlavor, ProductSize
from app.repositories.product_repo import money
from app.schemas.cart_schema import CartItemResult
from app.utils.clock import utcnow
from app.utils.transactions import smart_transaction

log = logging.getLogger("cart")


class CartRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_session(self, account_id: int, session_id: str, lock: bool = False) -> Optional[Cart]:
        qry = self.db.query(Cart).filter(Cart.account_id == account_id, Cart.session_id == session_id)
        if lock:
            # ignored by dialects without row locks (sqlite); the unique constraints still hold
            qry = qry.with_for_update()
        return qry.first()

    def create_session_cart(self, account_id: int, session_id: str) -> Cart:
        c = Cart(account_id=account_id, session_id=session_id)
        self.db.add(c)
        self.db.flush()
        return c

    def get_or_create_session_cart(self, account_id: int, session_id: str) -> Cart:
        cart = self.get_by_session(account_id, session_id, lock=True)
        if cart:
            return cart
        try:
            with self.db.begin_nested():
                return self.create_session_cart(account_id, session_id)
        except IntegrityError:
            # another request created the cart for this session first
            log.info("cart for session %r created concurrently, reusing it", session_id)
            cart = self.get_by_session(account_id, session_id, lock=True)
            if cart is None:
                raise
            return cart

    def _find_item(self, cart_id: int, product_id: int, flavor_id: int, size_id: int) -> Optional[CartItem]:
        return (
            self.db.query(CartItem)
            .filter(
                CartItem.cart_id == cart_id,
                CartItem.product_id == product_id,
                CartItem.flavor_id == flavor_id,
                CartItem.size_id == size_id,
            )
            .with_for_update()
            .first()
        )

    def _merge_into(
        self, item: CartItem, quantity: int, unit_price: Decimal, observations: Optional[str]
    ) -> CartItem:
        new_quantity = item.quantity + quantity
        if new_quantity > MAX_CART_ITEM_QUANTITY:
            raise DomainError(
                QUANTITY_EXCEEDS_MAXIMUM,
                details={"current": item.quantity, "requested": quantity, "maximum": MAX_CART_ITEM_QUANTITY},
            )
        item.quantity = new_quantity
        item.unit_price = unit_price
        item.total_price = unit_price * new_quantity
        if observations is not None:
            item.observations = observations
        item.updated_at = utcnow()
        self.db.flush()
        return item

    def add_item(
        self,
        account_id: Optional[int],
        session_id: Optional[str],
        product_id: Optional[int],
        flavor_id: Optional[int],
        size_id: Optional[int],
        quantity: Optional[int],
        observations: Optional[str] = None,
    ) -> CartItemResult:
        """
        Add a product/flavor/size choice to the session cart, merging with an
        existing line for the same combination.

        Runs as one transaction: every rejection below rolls back all writes,
        including a cart created earlier in the same call.
        """
        if account_id is None:
            raise DomainError(ACCOUNT_ID_REQUIRED)
        if not session_id:
            raise DomainError(SESSION_ID_REQUIRED)
        if product_id is None:
            raise DomainError(PRODUCT_ID_REQUIRED)
        if flavor_id is None:
            raise DomainError(FLAVOR_ID_REQUIRED)
        if size_id is None:
            raise DomainError(SIZE_ID_REQUIRED)
        if quantity is None or quantity < 1:
            raise DomainError(QUANTITY_MUST_BE_POSITIVE)
        if quantity > MAX_CART_ITEM_QUANTITY:
            raise DomainError(QUANTITY_EXCEEDS_MAXIMUM)

        with smart_transaction(self.db, write_lock=True):
            product = (
                self.db.query(Product)
                .filter(
                    Product.account_id == account_id,
                    Product.id == product_id,
                    Product.deleted.is_(False),
                )
                .first()
            )
            if not product:
                raise DomainError(PRODUCT_DOESNT_EXIST)
            if not product.in_stock:
                raise DomainError(PRODUCT_NOT_AVAILABLE)

            flavor_link = (
                self.db.query(ProductFlavor)
                .filter(
                    ProductFlavor.account_id == account_id,
                    ProductFlavor.product_id == product_id,
                    ProductFlavor.flavor_id == flavor_id,
                    ProductFlavor.available.is_(True),
                )
                .first()
            )
            if not flavor_link:
                raise DomainError(FLAVOR_NOT_AVAILABLE)

            size = (
                self.db.query(Size)
                .join(
                    ProductSize,
                    (ProductSize.account_id == Size.account_id) & (ProductSize.size_id == Size.id),
                )
                .filter(
                    ProductSize.account_id == account_id,
                    ProductSize.product_id == product_id,
                    ProductSize.size_id == size_id,
                    ProductSize.available.is_(True),
                )
                .first()
            )
            if not size:
                raise DomainError(SIZE_NOT_AVAILABLE)

            cart = self.get_or_create_session_cart(account_id, session_id)

            unit_price = Decimal(product.effective_price) + Decimal(size.price_modifier or 0)

            item = self._find_item(cart.id, product_id, flavor_id, size_id)
            if item:
                item = self._merge_into(item, quantity, unit_price, observations)
            else:
                new_item = CartItem(
                    account_id=account_id,
                    cart_id=cart.id,
                    product_id=product_id,
                    flavor_id=flavor_id,
                    size_id=size_id,
                    quantity=quantity,
                    unit_price=unit_price,
                    total_price=unit_price * quantity,
                    observations=observations,
                )
                try:
                    with self.db.begin_nested():
                        self.db.add(new_item)
                        self.db.flush()
                    item = new_item
                except IntegrityError:
                    # lost the race against a concurrent insert of the same combination
                    log.info("cart item for cart=%s product=%s created concurrently, merging", cart.id, product_id)
                    item = self._find_item(cart.id, product_id, flavor_id, size_id)
                    if item is None:
                        raise
                    item = self._merge_into(item, quantity, unit_price, observations)

            result = CartItemResult(
                id_cart_item=item.id,
                id_cart=cart.id,
                quantity=item.quantity,
                unit_price=money(item.unit_price),
                total_price=money(item.total_price),
            )

        return result
