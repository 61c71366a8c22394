# checkout_core/utils/retry.py
from sqlalchemy.exc import OperationalError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_none,
)

from checkout_core.domain.errors import CartConflict, OrderNumberCollision
from checkout_core.utils.settings import (
    CART_UPDATE_MAX_ATTEMPTS,
    DB_CONNECT_ATTEMPTS,
    ORDER_NUMBER_MAX_ATTEMPTS,
)


def cart_conflict_retry():
    # przegrany compare-and-set na carts.version albo zdublowana linia
    return retry(
        reraise=True,
        stop=stop_after_attempt(CART_UPDATE_MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        retry=retry_if_exception_type(CartConflict),
    )


def order_number_retry():
    # nowy numer od razu, kazda proba to osobna transakcja
    return retry(
        reraise=True,
        stop=stop_after_attempt(ORDER_NUMBER_MAX_ATTEMPTS),
        wait=wait_none(),
        retry=retry_if_exception_type(OrderNumberCollision),
    )


def db_connect_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(DB_CONNECT_ATTEMPTS),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        retry=retry_if_exception_type(OperationalError),
    )
