# checkout_core/data/seed.py
from datetime import date, timedelta
from decimal import Decimal

from checkout_core.data.database import SessionLocal
from checkout_core.data.models import CustomerModel, ItemModel, ProductDiscountModel
from checkout_core.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_CUSTOMERS = [
    dict(
        customer_name="Hurtownia Nowak Sp. z o.o.",
        street="ul. Prosta 12",
        city="Warszawa",
        postal_code="00-850",
        country="Poland",
        telephone1="+48 22 555 01 01",
        email1="zamowienia@nowak.example",
        tier_discount_percent=Decimal("15"),
    ),
    # niepelny profil: preview dziala, confirm odrzuca
    dict(
        customer_name="Sklep Kowalski",
        city="Krakow",
        country="Poland",
        tier_discount_percent=Decimal("0"),
    ),
]

DEMO_ITEMS = [
    dict(item_name="Laptop 14", item_code="LAP-14", price=Decimal("1000.00"), quantity=5),
    dict(item_name="Monitor 27", item_code="MON-27", price=Decimal("450.00"), quantity=20),
    dict(item_name="Keyboard", item_code="KBD-01", price=Decimal("25.50"), quantity=100),
]


def seed(session_factory=SessionLocal):
    db = session_factory()
    try:
        # not forcing: only seed if empty
        if db.query(CustomerModel).first() or db.query(ItemModel).first():
            logger.info("Demo data already present, skipping seed")
            return

        db.add_all(CustomerModel(**c) for c in DEMO_CUSTOMERS)
        items = [ItemModel(**i) for i in DEMO_ITEMS]
        db.add_all(items)
        db.flush()

        db.add(
            ProductDiscountModel(
                item_id=items[0].id,
                discount_percentage=Decimal("10"),
                start_date=date.today() - timedelta(days=1),
                end_date=date.today() + timedelta(days=30),
                is_active=True,
            )
        )
        db.commit()
        logger.info(f"Seeded {len(DEMO_CUSTOMERS)} customers and {len(DEMO_ITEMS)} items")
    finally:
        db.close()
