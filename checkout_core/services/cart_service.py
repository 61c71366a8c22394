# checkout_core/services/cart_service.py
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from checkout_core.data.models.cart import CART_ACTIVE, CART_CONVERTED, CartModel
from checkout_core.data.models.cart_item import CartItemModel
from checkout_core.domain.errors import (
    CartConflict,
    InvalidInput,
    NotFound,
    ProfileIncomplete,
    StorageUnavailable,
)
from checkout_core.domain.profile import check_profile
from checkout_core.repos.cart_repo import CartRepo
from checkout_core.repos.customer_repo import CustomerRepo
from checkout_core.services.stock_ledger import StockLedger
from checkout_core.utils.logging import get_logger
from checkout_core.utils.retry import cart_conflict_retry

logger = get_logger(__name__)


def item_summary(item) -> Dict[str, Any]:
    return {
        "id": item.id,
        "item_name": item.item_name,
        "item_code": item.item_code,
        "price": item.price,
        "quantity": item.quantity,
        "description": item.description,
    }


def line_view(line: CartItemModel) -> Dict[str, Any]:
    return {
        "id": line.id,
        "quantity": line.quantity,
        "unit_price": line.unit_price,
        "added_at": line.added_at,
        "item": item_summary(line.item) if line.item is not None else None,
    }


class CartService:
    """
    Use case'y koszyka: jeden aktywny koszyk na klienta, linie pilnowane
    wzgledem dostepnego stanu w chwili operacji.
    commands (add, update, remove, clear, convert) modyfikuja stan
    query (get) tylko czyta, ale tworzy pusty koszyk jesli go nie ma
    """

    def __init__(self, db: Session, ledger: StockLedger | None = None):
        self.db = db
        self.repo = CartRepo(db)
        self.customers = CustomerRepo(db)
        self.ledger = ledger or StockLedger(db)

    # query

    def get_active_cart(self, customer_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_active_cart(customer_id)
        items = self.repo.get_cart_items(cart.id)

        return {
            "cart": {
                "id": cart.id,
                "customer_id": cart.customer_id,
                "status": cart.status,
                "last_updated": cart.last_updated,
                "item_count": len(items),
            },
            "items": [line_view(i) for i in items],
        }

    def get_or_create_active_cart(self, customer_id: int) -> CartModel:
        cart = self.repo.get_active_cart(customer_id)
        if cart:
            return cart

        if self.customers.get_customer(customer_id) is None:
            raise NotFound("Customer not found")

        # insert-or-fetch: przy wyscigu drugi insert nic nie robi, oba czytaja ten sam wiersz
        try:
            self.repo.insert_active_cart_if_absent(customer_id)
            self.repo.commit()
        except OperationalError as e:
            self.repo.rollback()
            raise StorageUnavailable() from e

        cart = self.repo.get_active_cart(customer_id)
        logger.info(f"Active cart {cart.id} ready for customer {customer_id}")
        return cart

    # commands

    @cart_conflict_retry()
    def add_item(self, customer_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity is None or quantity < 1:
            raise InvalidInput("Item ID and quantity (minimum 1) are required")

        item = self.ledger.get_item(item_id)
        self.ledger.ensure_available(item, quantity)

        cart = self.get_or_create_active_cart(customer_id)
        existing = self.repo.get_cart_item(cart.id, item_id)

        if existing:
            new_quantity = existing.quantity + quantity
            self.ledger.ensure_available(
                item,
                new_quantity,
                f"Cannot add {quantity} more. Total would exceed available stock: {item.quantity}",
            )
            logger.info(
                f"Item {item_id} already in cart {cart.id}, quantity "
                f"{existing.quantity} -> {new_quantity}"
            )
            existing.quantity = new_quantity
            existing.unit_price = item.price  # snapshot ceny przy kazdym dodaniu
            line = existing
        else:
            line = CartItemModel(
                cart_id=cart.id,
                item_id=item_id,
                quantity=quantity,
                unit_price=item.price,
            )
            self.db.add(line)

        self._commit_touch(cart)
        logger.info(f"Item {item_id} x{quantity} added to cart {cart.id}")

        self.db.refresh(line)
        return line_view(line)

    @cart_conflict_retry()
    def update_item_quantity(self, cart_item_id: int, quantity: int, customer_id: int | None = None) -> Dict[str, Any]:
        if quantity is None or quantity < 1:
            raise InvalidInput("Quantity must be at least 1")

        line = self._get_owned_line(cart_item_id, customer_id)
        self.ledger.ensure_available(line.item, quantity)

        line.quantity = quantity
        line.unit_price = line.item.price
        self._commit_touch(line.cart)
        logger.info(f"Cart item {cart_item_id} quantity set to {quantity}")

        self.db.refresh(line)
        return line_view(line)

    @cart_conflict_retry()
    def remove_item(self, cart_item_id: int, customer_id: int | None = None) -> None:
        line = self._get_owned_line(cart_item_id, customer_id)
        cart = line.cart

        self.repo.delete_cart_item(line)
        self._commit_touch(cart)
        logger.info(f"Cart item {cart_item_id} removed from cart {cart.id}")

    @cart_conflict_retry()
    def clear_cart(self, customer_id: int) -> int:
        cart = self._get_active_or_404(customer_id)

        removed = self.repo.delete_cart_items(cart.id)
        self._commit_touch(cart)
        logger.info(f"Cart {cart.id} cleared, {removed} lines removed")
        return removed

    @cart_conflict_retry()
    def convert_cart(self, customer_id: int) -> Dict[str, Any]:
        customer = self.customers.get_customer(customer_id)
        if customer is None:
            raise NotFound("Customer not found")

        profile = check_profile(customer)
        if not profile.is_complete:
            raise ProfileIncomplete(profile.missing_fields)

        cart = self._get_active_or_404(customer_id)
        cart_id = cart.id

        self._commit_touch(cart, status=CART_CONVERTED)
        logger.info(f"Cart {cart_id} of customer {customer_id} marked converted")
        return {"id": cart_id, "customer_id": customer_id, "status": CART_CONVERTED}

    # helpers

    def _get_active_or_404(self, customer_id: int) -> CartModel:
        cart = self.repo.get_active_cart(customer_id)
        if not cart:
            raise NotFound("No active cart found for customer")
        return cart

    def _get_owned_line(self, cart_item_id: int, customer_id: int | None) -> CartItemModel:
        line = self.repo.get_cart_item_by_id(cart_item_id)
        if line is None:
            raise NotFound("Cart item not found")
        # cudza linia albo linia zamrozonego koszyka wyglada tak samo jak nieistniejaca
        if line.cart.status != CART_ACTIVE:
            raise NotFound("Cart item not found")
        if customer_id is not None and line.cart.customer_id != customer_id:
            raise NotFound("Cart item not found")
        return line

    def _commit_touch(self, cart: CartModel, **changes) -> None:
        """
        Bump wersji + last_updated (compare-and-set) i commit calej operacji.
        Przegrany wyscig = rollback i CartConflict, ktory ponawia tenacity.
        """
        cart_id, version = cart.id, cart.version
        try:
            rowcount = self.repo.touch_cart(cart_id, version, **changes)
            if rowcount == 0:
                raise CartConflict()
            self.repo.commit()
        except CartConflict:
            self.repo.rollback()
            logger.warning(f"Concurrent modification of cart {cart_id}, rolling back")
            raise
        except IntegrityError as e:
            # rownolegle dodanie tej samej pozycji (unique cart_id, item_id)
            self.repo.rollback()
            logger.warning(f"Integrity conflict on cart {cart_id}: {e.orig}")
            raise CartConflict() from e
        except OperationalError as e:
            self.repo.rollback()
            raise StorageUnavailable() from e
