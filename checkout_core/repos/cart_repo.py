# checkout_core/repos/cart_repo.py
from typing import Iterable, List

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, joinedload

from checkout_core.data.models.cart import CART_ACTIVE, CartModel, utcnow
from checkout_core.data.models.cart_item import CartItemModel

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    # koszyk

    def get_active_cart(self, customer_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(
                CartModel.customer_id == customer_id,
                CartModel.status == CART_ACTIVE,
            )
        ).scalar_one_or_none()

    def insert_active_cart_if_absent(self, customer_id: int) -> None:
        """
        INSERT ... ON CONFLICT DO NOTHING na czesciowym indeksie unikalnym.
        Dwa rownolegle pierwsze wejscia klienta koncza sie jednym wierszem.
        """
        insert = _UPSERT_DIALECTS[self.db.get_bind().dialect.name]
        now = utcnow()
        stmt = (
            insert(CartModel)
            .values(
                customer_id=customer_id,
                status=CART_ACTIVE,
                version=1,
                last_updated=now,
                created_at=now,
            )
            .on_conflict_do_nothing()
        )
        self.db.execute(stmt)

    def update_cart_version(self, cart_id: int, old_version: int, new_data: dict) -> int:
        # optimistic locking: update ... where id = :id and version = :old
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def touch_cart(self, cart_id: int, old_version: int, **changes) -> int:
        values = {"version": old_version + 1, "last_updated": utcnow()}
        values.update(changes)
        return self.update_cart_version(cart_id, old_version, values)

    # linie koszyka

    def get_cart_items(self, cart_id: int) -> List[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .options(joinedload(CartItemModel.item))
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.added_at.desc(), CartItemModel.id.desc())
            ).scalars().unique()
        )

    def get_cart_items_by_ids(self, cart_id: int, cart_item_ids: Iterable[int]) -> List[CartItemModel]:
        ids = list(cart_item_ids)
        if not ids:
            return []
        return list(
            self.db.execute(
                select(CartItemModel)
                .options(joinedload(CartItemModel.item))
                .where(CartItemModel.cart_id == cart_id, CartItemModel.id.in_(ids))
                .order_by(CartItemModel.added_at.desc(), CartItemModel.id.desc())
            ).scalars().unique()
        )

    def get_cart_item(self, cart_id: int, item_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.item_id == item_id,
            )
        ).unique().scalar_one_or_none()

    def get_cart_item_by_id(self, cart_item_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel)
            .options(joinedload(CartItemModel.item), joinedload(CartItemModel.cart))
            .where(CartItemModel.id == cart_item_id)
        ).unique().scalar_one_or_none()

    def delete_cart_item(self, cart_item: CartItemModel) -> None:
        self.db.delete(cart_item)
        self.db.flush()

    def delete_cart_items(self, cart_id: int, cart_item_ids: Iterable[int] | None = None) -> int:
        """Usuwa wskazane linie (albo wszystkie) jednego koszyka, zwraca liczbe usunietych."""
        stmt = delete(CartItemModel).where(CartItemModel.cart_id == cart_id)
        if cart_item_ids is not None:
            stmt = stmt.where(CartItemModel.id.in_(list(cart_item_ids)))
        result = self.db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
