from sqlalchemy import Boolean, Column, Date, ForeignKey, Integer, Numeric, String, Text

from checkout_core.data.database import Base


class ItemModel(Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True)
    item_name = Column(String(200), nullable=False)
    item_code = Column(String(64), nullable=True)
    description = Column(Text, nullable=True)

    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)  # dostepna ilosc


class ProductDiscountModel(Base):
    __tablename__ = "product_discounts"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)

    discount_percentage = Column(Numeric(5, 2), nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
