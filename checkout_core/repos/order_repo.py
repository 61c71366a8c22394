# checkout_core/repos/order_repo.py
from typing import Iterable

from sqlalchemy import insert, select
from sqlalchemy.orm import Session, selectinload

from checkout_core.data.models.order import OrderItemModel, OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        # flush zeby dostac id i od razu trafic na unique(order_number)
        self.db.add(order)
        self.db.flush()
        return order

    def add_order_items(self, order_id: int, lines: Iterable[dict]) -> int:
        rows = [
            {
                "order_id": order_id,
                "item_id": li["item_id"],
                "quantity": li["quantity"],
                "unit_price": li["unit_price"],
                "total_price": li["total_price"],
            }
            for li in lines
        ]
        if rows:
            self.db.execute(insert(OrderItemModel), rows)
        return len(rows)

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == order_id)
        ).scalar_one_or_none()
