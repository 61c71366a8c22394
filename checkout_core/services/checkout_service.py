# checkout_core/services/checkout_service.py
import random
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from checkout_core.data.database import unit_of_work
from checkout_core.data.models.cart_item import CartItemModel
from checkout_core.data.models.order import ORDER_PENDING, OrderModel
from checkout_core.domain.errors import (
    CartConflict,
    CheckoutError,
    InvalidSelection,
    NotFound,
    OrderNumberCollision,
    ProfileIncomplete,
    StorageUnavailable,
    Unexpected,
)
from checkout_core.domain.pricing import PricedLine, compute_best_of
from checkout_core.domain.profile import address_snapshot, check_profile
from checkout_core.repos.cart_repo import CartRepo
from checkout_core.repos.customer_repo import CustomerRepo
from checkout_core.repos.order_repo import OrderRepo
from checkout_core.services.notification_service import NotificationService
from checkout_core.services.selection import SelectionResolver
from checkout_core.services.stock_ledger import StockLedger
from checkout_core.utils.logging import get_logger
from checkout_core.utils.retry import order_number_retry
from checkout_core.utils.settings import DEFAULT_PAYMENT_TERMS

logger = get_logger(__name__)

UNKNOWN_ITEM = "Unknown Item"


def generate_order_number(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now:%Y%m%d}-{random.randint(1000, 9999)}"


def line_unit_price(line: CartItemModel) -> Decimal:
    # snapshot z koszyka, a jak go brak to aktualna cena produktu
    if line.unit_price is not None:
        return Decimal(line.unit_price)
    return Decimal(line.item.price)


def draft_lines(lines: List[CartItemModel]) -> List[Dict[str, Any]]:
    """Plain snapshot of the resolved lines, safe to reuse after a rollback."""
    drafts = []
    for li in lines:
        unit_price = line_unit_price(li)
        drafts.append(
            {
                "cart_item_id": li.id,
                "item_id": li.item_id,
                "name": li.item.item_name if li.item is not None else UNKNOWN_ITEM,
                "quantity": int(li.quantity),
                "unit_price": unit_price,
                "total_price": unit_price * int(li.quantity),
            }
        )
    return drafts


def client_line(draft: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "item_id": draft["item_id"],
        "name": draft["name"],
        "price": draft["unit_price"],
        "quantity": draft["quantity"],
        "total": draft["total_price"],
    }


def order_view(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "customer_id": order.customer_id,
        "user_id": order.user_id,
        "status": order.status,
        "total_amount": order.total_amount,
        "final_amount": order.final_amount,
        "shipping_address": order.shipping_address,
        "billing_address": order.billing_address,
        "notes": order.notes,
        "payment_terms": order.payment_terms,
        "order_date": order.order_date,
        "items": [
            {
                "id": oi.id,
                "item_id": oi.item_id,
                "quantity": oi.quantity,
                "unit_price": oi.unit_price,
                "total_price": oi.total_price,
            }
            for oi in order.items
        ],
    }


class CheckoutService:
    """
    Checkout zaznaczonych pozycji koszyka.

    preview - tylko odczyt, niekompletny profil to ostrzezenie
    confirm - jedna transakcja: naglowek zamowienia, linie, usuniecie
              wybranych linii koszyka, touch koszyka; wszystko albo nic
    """

    def __init__(
        self,
        db: Session,
        ledger: StockLedger | None = None,
        notifications: NotificationService | None = None,
    ):
        self.db = db
        self.carts = CartRepo(db)
        self.orders = OrderRepo(db)
        self.customers = CustomerRepo(db)
        self.resolver = SelectionResolver(db)
        self.ledger = ledger or StockLedger(db)
        self.notifications = notifications or NotificationService()

    # query

    def preview_checkout(
        self,
        customer_id: int,
        cart_item_ids: List[int] | None = None,
        item_ids: List[int] | None = None,
    ) -> Dict[str, Any]:
        customer = self._get_customer(customer_id)
        profile = check_profile(customer)

        cart, lines = self._resolve(customer_id, cart_item_ids, item_ids)
        drafts = draft_lines(lines)
        total = sum((d["total_price"] for d in drafts), Decimal("0"))

        pricing = compute_best_of(
            [
                PricedLine(
                    base_unit_price=d["unit_price"],
                    quantity=d["quantity"],
                    discounted_unit_price=self.ledger.discounted_unit_price(d["item_id"], d["unit_price"]),
                )
                for d in drafts
            ],
            customer.tier_discount_percent,
        )

        now = datetime.now(timezone.utc)
        logger.info(
            f"Checkout preview for customer {customer_id}: {len(drafts)} lines, total {total}, "
            f"best-of {pricing.applied}"
        )

        preview = {
            "order_number": generate_order_number(now),
            "status": ORDER_PENDING,
            "order_date": now,
            "items": [client_line(d) for d in drafts],
            "total_amount": total,
            "pricing": pricing.as_dict(),
        }
        warnings = None
        if not profile.is_complete:
            warnings = {"profile_incomplete": True, "missing_fields": profile.missing_fields}
        return {"preview": preview, "warnings": warnings}

    # command

    def confirm_checkout(
        self,
        customer_id: int,
        user_id: int,
        cart_item_ids: List[int] | None = None,
        item_ids: List[int] | None = None,
        notes: str | None = None,
        payment_terms: str | None = None,
    ) -> Dict[str, Any]:
        customer = self._get_customer(customer_id)
        profile = check_profile(customer)
        if not profile.is_complete:
            logger.warning(f"Checkout rejected for customer {customer_id}: missing {profile.missing_fields}")
            raise ProfileIncomplete(profile.missing_fields)

        cart, lines = self._resolve(customer_id, cart_item_ids, item_ids)

        # wszystko co potrzebne w transakcji zbieramy przed nia jako zwykle dane
        drafts = draft_lines(lines)
        address = address_snapshot(customer)
        cart_id, cart_version = cart.id, cart.version

        order_id, order_number = self._place_order(
            customer_id=customer_id,
            user_id=user_id,
            cart_id=cart_id,
            cart_version=cart_version,
            drafts=drafts,
            address=address,
            notes=notes,
            payment_terms=payment_terms or DEFAULT_PAYMENT_TERMS,
        )

        logger.info(
            f"Order {order_number} (id {order_id}) created for customer {customer_id} "
            f"by user {user_id} from cart {cart_id}, {len(drafts)} lines"
        )
        self.notifications.send_order_notification(customer_id, order_id, order_number)

        order = self.orders.get_order(order_id)
        view = order_view(order)
        client_view = {
            "id": order.id,
            "order_number": order.order_number,
            "order_date": order.order_date,
            "status": order.status,
            "total_amount": order.total_amount,
            # nazwy z joina sprzed transakcji, OrderItem trzyma tylko id
            "items": [client_line(d) for d in drafts],
        }
        return {"order": view, "client_view": client_view}

    @order_number_retry()
    def _place_order(
        self,
        customer_id: int,
        user_id: int,
        cart_id: int,
        cart_version: int,
        drafts: List[Dict[str, Any]],
        address: Dict[str, Any],
        notes: str | None,
        payment_terms: str,
    ):
        now = datetime.now(timezone.utc)
        order_number = generate_order_number(now)
        total = sum((d["total_price"] for d in drafts), Decimal("0"))
        selected_ids = [d["cart_item_id"] for d in drafts]

        try:
            with unit_of_work(self.db):
                order = OrderModel(
                    customer_id=customer_id,
                    user_id=user_id,
                    order_number=order_number,
                    status=ORDER_PENDING,
                    total_amount=total,
                    final_amount=total,
                    shipping_address=dict(address),
                    billing_address=dict(address),
                    notes=notes,
                    payment_terms=payment_terms,
                    order_date=now,
                )
                try:
                    self.orders.add_order(order)
                except IntegrityError as e:
                    raise OrderNumberCollision(order_number) from e
                order_id = order.id

                self.orders.add_order_items(order_id, drafts)

                # dokladnie wybrane linie; mniej usunietych = ktos juz je kupil
                deleted = self.carts.delete_cart_items(cart_id, selected_ids)
                if deleted != len(selected_ids):
                    raise InvalidSelection("Selected cart items changed during checkout, please refresh the cart")

                # koszyk zostaje active, zmienia sie tylko wersja i last_updated
                if self.carts.touch_cart(cart_id, cart_version) == 0:
                    raise CartConflict()
        except OrderNumberCollision:
            logger.warning(f"Order number {order_number} collided, transaction rolled back")
            raise
        except CheckoutError as e:
            logger.error(f"Checkout for customer {customer_id} rolled back: {e.message}")
            raise
        except OperationalError as e:
            logger.error(f"Checkout for customer {customer_id} rolled back, storage unavailable: {e}")
            raise StorageUnavailable() from e
        except Exception as e:
            logger.error(f"Checkout for customer {customer_id} rolled back: {e!r}")
            raise Unexpected("Failed to create order", cause=e) from e

        return order_id, order_number

    # helpers

    def _get_customer(self, customer_id: int):
        customer = self.customers.get_customer(customer_id)
        if customer is None:
            raise NotFound("Customer not found")
        return customer

    def _resolve(self, customer_id: int, cart_item_ids, item_ids):
        cart, lines = self.resolver.resolve(customer_id, cart_item_ids=cart_item_ids, item_ids=item_ids)
        if cart is None:
            raise NotFound("No active cart found for customer")
        if not lines:
            raise InvalidSelection("No selected items found in cart")
        return cart, lines
