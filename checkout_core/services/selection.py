# checkout_core/services/selection.py
from typing import Iterable, List, Tuple

from sqlalchemy.orm import Session

from checkout_core.data.models.cart import CartModel
from checkout_core.data.models.cart_item import CartItemModel
from checkout_core.repos.cart_repo import CartRepo


class SelectionResolver:
    """
    Zamienia wybor z checkoutu (id linii albo id produktow) na linie
    aktywnego koszyka danego klienta. Id spoza koszyka sa po cichu pomijane,
    wiec nieaktualny wybor po stronie klienta nie jest bledem.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)

    def resolve(
        self,
        customer_id: int,
        cart_item_ids: Iterable[int] | None = None,
        item_ids: Iterable[int] | None = None,
    ) -> Tuple[CartModel | None, List[CartItemModel]]:
        cart = self.repo.get_active_cart(customer_id)
        if cart is None:
            return None, []

        cart_item_ids = list(cart_item_ids or [])
        item_ids = list(item_ids or [])

        # id linii maja pierwszenstwo
        if cart_item_ids:
            return cart, self.repo.get_cart_items_by_ids(cart.id, cart_item_ids)

        if item_ids:
            wanted = {int(i) for i in item_ids}
            lines = self.repo.get_cart_items(cart.id)
            return cart, [li for li in lines if li.item_id in wanted]

        return cart, []
