# checkout_core/services/stock_ledger.py
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from checkout_core.data.models.item import ItemModel, ProductDiscountModel
from checkout_core.domain.errors import InsufficientStock, NotFound


class StockLedger:
    """
    Widok tylko do odczytu: cena, dostepna ilosc i aktywne promocje produktu.
    Nic tu nie rezerwuje ani nie zdejmuje stanu.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_item(self, item_id: int) -> ItemModel:
        item = self.db.get(ItemModel, item_id)
        if item is None:
            raise NotFound("Item not found")
        return item

    @staticmethod
    def ensure_available(item: ItemModel, requested: int, message: str | None = None) -> None:
        if requested > item.quantity:
            raise InsufficientStock(
                message or f"Insufficient stock. Available: {item.quantity}",
                available=item.quantity,
            )

    def active_discount_percent(self, item_id: int, today: date | None = None) -> Decimal | None:
        today = today or datetime.now(timezone.utc).date()
        row = self.db.execute(
            select(ProductDiscountModel.discount_percentage)
            .where(
                ProductDiscountModel.item_id == item_id,
                ProductDiscountModel.is_active.is_(True),
                or_(ProductDiscountModel.start_date.is_(None), ProductDiscountModel.start_date <= today),
                or_(ProductDiscountModel.end_date.is_(None), ProductDiscountModel.end_date >= today),
            )
            .order_by(ProductDiscountModel.id.desc())
            .limit(1)
        ).scalar_one_or_none()
        if row is None or Decimal(row) <= 0:
            return None
        return Decimal(row)

    def discounted_unit_price(self, item_id: int, base_price: Decimal, today: date | None = None) -> Decimal | None:
        percent = self.active_discount_percent(item_id, today)
        if percent is None:
            return None
        return max(Decimal("0"), Decimal(base_price) * (1 - percent / 100))
