from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from checkout_core.data.database import Base
from checkout_core.data.models.cart import utcnow

ORDER_PENDING = "pending"


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False)  # kto zlozyl (klient albo pracownik)

    order_number = Column(String(32), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default=ORDER_PENDING)  # pending, approved, processing, ...
    total_amount = Column(Numeric(12, 2), nullable=False)
    final_amount = Column(Numeric(12, 2), nullable=False)

    # zamrozony snapshot profilu klienta, nie FK
    shipping_address = Column(JSON, nullable=False)
    billing_address = Column(JSON, nullable=False)

    notes = Column(Text, nullable=True)
    payment_terms = Column(String(50), nullable=True)
    order_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    items = relationship("OrderItemModel", back_populates="order", order_by="OrderItemModel.id")


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)

    order = relationship("OrderModel", back_populates="items")
