from sqlalchemy import Column, Integer, Numeric, String

from checkout_core.data.database import Base


class CustomerModel(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=True, index=True)

    customer_name = Column(String(200), nullable=True)
    street = Column(String(200), nullable=True)
    city = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)
    telephone1 = Column(String(40), nullable=True)
    telephone2 = Column(String(40), nullable=True)
    email1 = Column(String(200), nullable=True)
    email2 = Column(String(200), nullable=True)

    tier_discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
