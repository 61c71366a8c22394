from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship

from checkout_core.data.database import Base
from checkout_core.data.models.cart import utcnow


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)  # snapshot ceny z chwili add/update
    added_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    cart = relationship("CartModel", back_populates="items")
    item = relationship("ItemModel", lazy="joined")

    __table_args__ = (
        UniqueConstraint("cart_id", "item_id", name="uq_cart_items_cart_item"),
        CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_min"),
    )
