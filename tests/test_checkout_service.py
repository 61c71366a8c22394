import re
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from checkout_core.data.models import CartItemModel, CartModel, OrderItemModel, OrderModel
from checkout_core.domain.errors import (
    CartConflict,
    InvalidSelection,
    NotFound,
    OrderNumberCollision,
    ProfileIncomplete,
    StorageUnavailable,
    Unexpected,
)
from checkout_core.repos.cart_repo import CartRepo
from checkout_core.repos.order_repo import OrderRepo
from checkout_core.services import checkout_service, notification_service
from checkout_core.services.cart_service import CartService
from checkout_core.services.checkout_service import CheckoutService, generate_order_number

ORDER_NUMBER = re.compile(r"^ORD-\d{8}-\d{4}$")


@pytest.fixture()
def notifier():
    return MagicMock()


@pytest.fixture()
def stocked_cart(db, make_customer, make_item):
    """Klient z kompletnym profilem i trzema pozycjami w koszyku."""
    customer = make_customer()
    items = [
        make_item(name="Laptop", price="1000.00", quantity=5),
        make_item(name="Mouse", price="20.00", quantity=50),
        make_item(name="Cable", price="5.50", quantity=100),
    ]
    svc = CartService(db)
    lines = [svc.add_item(customer.id, items[0].id, 1)]
    lines.append(svc.add_item(customer.id, items[1].id, 2))
    lines.append(svc.add_item(customer.id, items[2].id, 4))
    return customer, items, [li["id"] for li in lines]


def _cart_version(db, customer_id):
    db.expire_all()
    return db.query(CartModel).filter_by(customer_id=customer_id, status="active").one().version


def test_generate_order_number_format():
    now = datetime(2024, 3, 9, tzinfo=timezone.utc)

    number = generate_order_number(now)

    assert ORDER_NUMBER.match(number)
    assert number.startswith("ORD-20240309-")


# preview


def test_preview_builds_draft_without_writing(db, stocked_cart, count_rows, notifier):
    customer, items, line_ids = stocked_cart
    version = _cart_version(db, customer.id)

    result = CheckoutService(db, notifications=notifier).preview_checkout(customer.id, cart_item_ids=line_ids[:2])

    preview = result["preview"]
    assert ORDER_NUMBER.match(preview["order_number"])
    assert preview["status"] == "pending"
    assert preview["total_amount"] == Decimal("1040.00")
    assert {li["name"] for li in preview["items"]} == {"Laptop", "Mouse"}
    assert result["warnings"] is None

    assert count_rows(OrderModel) == 0
    assert count_rows(CartItemModel) == 3
    assert _cart_version(db, customer.id) == version
    notifier.send_order_notification.assert_not_called()


def test_preview_warns_on_incomplete_profile(db, make_customer, make_item):
    customer = make_customer(complete=False)
    item = make_item()
    CartService(db).add_item(customer.id, item.id, 1)

    result = CheckoutService(db).preview_checkout(customer.id, item_ids=[item.id])

    assert result["warnings"]["profile_incomplete"] is True
    assert "Street" in result["warnings"]["missing_fields"]


def test_preview_best_of_diverges_from_confirm(db, make_customer, make_item, notifier):
    customer = make_customer(tier=Decimal("15"))
    item = make_item(name="Laptop", price="1000.00", quantity=3, discount_percent=10)
    CartService(db).add_item(customer.id, item.id, 1)
    svc = CheckoutService(db, notifications=notifier)

    preview = svc.preview_checkout(customer.id, item_ids=[item.id])["preview"]

    assert preview["total_amount"] == Decimal("1000.00")
    pricing = preview["pricing"]
    assert pricing["applied"] == "tier"
    assert pricing["product_total"] == Decimal("900.00")
    assert pricing["chosen_total"] == Decimal("850.00")
    assert pricing["savings_amount"] == Decimal("50.00")

    # confirm zapisuje zwykla sume linii, bez rabatow
    confirmed = svc.confirm_checkout(customer.id, user_id=7, item_ids=[item.id])
    assert confirmed["order"]["total_amount"] == Decimal("1000.00")
    assert confirmed["order"]["final_amount"] == Decimal("1000.00")


def test_preview_without_active_cart(db, make_customer):
    customer = make_customer()

    with pytest.raises(NotFound) as exc:
        CheckoutService(db).preview_checkout(customer.id, item_ids=[1])

    assert exc.value.message == "No active cart found for customer"


def test_preview_empty_selection(db, stocked_cart):
    customer, _, _ = stocked_cart

    with pytest.raises(InvalidSelection) as exc:
        CheckoutService(db).preview_checkout(customer.id, cart_item_ids=[99999])

    assert exc.value.message == "No selected items found in cart"


# confirm


def test_confirm_drains_only_selected_lines(db, stocked_cart, count_rows, cart_lines, notifier):
    customer, items, line_ids = stocked_cart
    version = _cart_version(db, customer.id)

    result = CheckoutService(db, notifications=notifier).confirm_checkout(
        customer.id, user_id=42, cart_item_ids=line_ids[:2], notes="leave at door"
    )

    order = result["order"]
    assert ORDER_NUMBER.match(order["order_number"])
    assert order["order_number"][4:12] == order["order_date"].strftime("%Y%m%d")
    assert order["status"] == "pending"
    assert order["user_id"] == 42
    assert order["customer_id"] == customer.id
    assert order["total_amount"] == Decimal("1040.00")
    assert order["notes"] == "leave at door"
    assert order["payment_terms"] == "30 days"
    assert order["shipping_address"]["postalCode"] == "12345"
    assert order["shipping_address"] == order["billing_address"]
    assert {(oi["item_id"], oi["quantity"]) for oi in order["items"]} == {(items[0].id, 1), (items[1].id, 2)}

    client_view = result["client_view"]
    assert client_view["order_number"] == order["order_number"]
    assert {li["name"] for li in client_view["items"]} == {"Laptop", "Mouse"}

    remaining = cart_lines(customer.id)
    assert [li.id for li in remaining] == [line_ids[2]]
    assert _cart_version(db, customer.id) == version + 1
    assert count_rows(CartModel, customer_id=customer.id, status="active") == 1
    notifier.send_order_notification.assert_called_once_with(customer.id, order["id"], order["order_number"])


def test_assisted_order_records_acting_user(db, stocked_cart, notifier):
    customer, items, _ = stocked_cart

    result = CheckoutService(db, notifications=notifier).confirm_checkout(
        customer.id, user_id=900, item_ids=[items[2].id], payment_terms="14 days"
    )

    assert result["order"]["user_id"] == 900
    assert result["order"]["payment_terms"] == "14 days"


def test_confirm_requires_complete_profile(db, make_customer, make_item, count_rows, cart_lines):
    customer = make_customer(complete=False)
    item = make_item()
    CartService(db).add_item(customer.id, item.id, 1)

    with pytest.raises(ProfileIncomplete) as exc:
        CheckoutService(db).confirm_checkout(customer.id, user_id=1, item_ids=[item.id])

    assert exc.value.missing_fields
    assert count_rows(OrderModel) == 0
    assert len(cart_lines(customer.id)) == 1


def test_confirm_unknown_customer(db):
    with pytest.raises(NotFound):
        CheckoutService(db).confirm_checkout(404, user_id=1, item_ids=[1])


def test_second_checkout_of_same_lines_finds_nothing(db, stocked_cart, notifier):
    customer, _, line_ids = stocked_cart
    svc = CheckoutService(db, notifications=notifier)
    svc.confirm_checkout(customer.id, user_id=1, cart_item_ids=[line_ids[0]])

    with pytest.raises(InvalidSelection):
        svc.confirm_checkout(customer.id, user_id=1, cart_item_ids=[line_ids[0]])


def _boom(*args, **kwargs):
    raise RuntimeError("disk on fire")


def _storage_down(*args, **kwargs):
    raise OperationalError("INSERT", {}, Exception("connection lost"))


@pytest.mark.parametrize(
    "target, name, replacement, expected",
    [
        (OrderRepo, "add_order_items", _boom, Unexpected),
        (OrderRepo, "add_order_items", _storage_down, StorageUnavailable),
        (CartRepo, "delete_cart_items", _boom, Unexpected),
        (CartRepo, "delete_cart_items", lambda self, cart_id, ids=None: 0, InvalidSelection),
        (CartRepo, "touch_cart", _boom, Unexpected),
        (CartRepo, "touch_cart", lambda self, cart_id, old_version, **changes: 0, CartConflict),
    ],
)
def test_confirm_is_all_or_nothing(
    db, stocked_cart, count_rows, cart_lines, notifier, monkeypatch, target, name, replacement, expected
):
    customer, _, line_ids = stocked_cart
    version = _cart_version(db, customer.id)
    monkeypatch.setattr(target, name, replacement)

    with pytest.raises(expected):
        CheckoutService(db, notifications=notifier).confirm_checkout(
            customer.id, user_id=1, cart_item_ids=line_ids[:2]
        )

    assert count_rows(OrderModel) == 0
    assert count_rows(OrderItemModel) == 0
    assert [li.id for li in cart_lines(customer.id)] == line_ids
    assert _cart_version(db, customer.id) == version
    notifier.send_order_notification.assert_not_called()


def _existing_order(db, customer_id, number):
    db.add(
        OrderModel(
            customer_id=customer_id,
            user_id=1,
            order_number=number,
            status="pending",
            total_amount=Decimal("1.00"),
            final_amount=Decimal("1.00"),
            shipping_address={},
            billing_address={},
        )
    )
    db.commit()


def test_order_number_collision_retries_whole_transaction(db, stocked_cart, count_rows, cart_lines, notifier, monkeypatch):
    customer, _, line_ids = stocked_cart
    taken = "ORD-20240101-1111"
    _existing_order(db, customer.id, taken)
    numbers = iter([taken, "ORD-20240101-2222"])
    monkeypatch.setattr(checkout_service, "generate_order_number", lambda now=None: next(numbers))

    result = CheckoutService(db, notifications=notifier).confirm_checkout(
        customer.id, user_id=1, cart_item_ids=[line_ids[0]]
    )

    assert result["order"]["order_number"] == "ORD-20240101-2222"
    assert count_rows(OrderModel) == 2
    assert count_rows(OrderItemModel) == 1
    assert [li.id for li in cart_lines(customer.id)] == line_ids[1:]


def test_order_number_collision_gives_up(db, stocked_cart, count_rows, cart_lines, notifier, monkeypatch):
    customer, _, line_ids = stocked_cart
    taken = "ORD-20240101-1111"
    _existing_order(db, customer.id, taken)
    monkeypatch.setattr(checkout_service, "generate_order_number", lambda now=None: taken)

    with pytest.raises(OrderNumberCollision):
        CheckoutService(db, notifications=notifier).confirm_checkout(
            customer.id, user_id=1, cart_item_ids=[line_ids[0]]
        )

    assert count_rows(OrderModel) == 1
    assert [li.id for li in cart_lines(customer.id)] == line_ids


def test_notification_failure_keeps_order(db, stocked_cart, count_rows, monkeypatch):
    customer, _, line_ids = stocked_cart
    broken_task = MagicMock()
    broken_task.delay.side_effect = RuntimeError("broker down")
    monkeypatch.setattr(notification_service, "send_order_notification_task", broken_task)

    result = CheckoutService(db).confirm_checkout(customer.id, user_id=1, cart_item_ids=[line_ids[0]])

    assert result["order"]["id"]
    assert count_rows(OrderModel) == 1


def test_missing_email_warns_on_preview_and_blocks_confirm(db, make_customer, make_item, count_rows, cart_lines):
    customer = make_customer(email1=None)
    item = make_item()
    CartService(db).add_item(customer.id, item.id, 2)
    version = _cart_version(db, customer.id)
    svc = CheckoutService(db)

    preview = svc.preview_checkout(customer.id, item_ids=[item.id])

    assert preview["warnings"]["missing_fields"] == ["Email 1"]
    assert preview["preview"]["total_amount"] == Decimal("20.00")

    with pytest.raises(ProfileIncomplete) as exc:
        svc.confirm_checkout(customer.id, user_id=1, item_ids=[item.id])

    assert exc.value.missing_fields == ["Email 1"]
    assert count_rows(OrderModel) == 0
    assert len(cart_lines(customer.id)) == 1
    assert _cart_version(db, customer.id) == version


def test_order_address_is_a_frozen_snapshot(db, stocked_cart, notifier):
    customer, items, _ = stocked_cart
    result = CheckoutService(db, notifications=notifier).confirm_checkout(customer.id, user_id=1, item_ids=[items[0].id])

    customer.city = "Shelbyville"
    db.commit()

    db.expire_all()
    order = db.get(OrderModel, result["order"]["id"])
    assert order.shipping_address["city"] == "Springfield"
