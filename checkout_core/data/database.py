# checkout_core/data/database.py
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from checkout_core.utils.settings import DATABASE_URL

# sqlite tylko dla testow / lokalnie
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Jedna transakcja: commit na koncu bloku, rollback przy dowolnym wyjatku.
    Nic z bloku nie jest widoczne dla innych polaczen przed commitem.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
