# checkout_core/api/routers/checkout.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from checkout_core.api.deps import Actor, get_actor
from checkout_core.data.database import get_db
from checkout_core.domain.schemas import CheckoutIn, ConfirmOut, DraftOrderOut, Envelope
from checkout_core.services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["checkout"])


def get_service(db: Session):
    return CheckoutService(db)


@router.post(
    "/{customer_id}/preview",
    response_model=Envelope[DraftOrderOut],
    response_model_exclude_none=True,
)
def preview_checkout(
    customer_id: int,
    payload: CheckoutIn | None = None,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """
    Szkic zamówienia z wybranych pozycji. Nic nie zapisuje.
    Niekompletny profil klienta wraca jako warnings, nie jako błąd.
    """
    payload = payload or CheckoutIn()
    svc = get_service(db)
    result = svc.preview_checkout(
        actor.scope(customer_id),
        cart_item_ids=payload.cart_item_ids,
        item_ids=payload.item_ids,
    )
    return {"data": result["preview"], "warnings": result["warnings"]}


@router.post(
    "/{customer_id}/confirm",
    response_model=Envelope[ConfirmOut],
    response_model_exclude_none=True,
    status_code=201,
)
def confirm_checkout(
    customer_id: int,
    payload: CheckoutIn | None = None,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """
    Tworzy zamówienie z wybranych pozycji i usuwa je z koszyka w jednej transakcji.
    Reszta koszyka zostaje, koszyk pozostaje aktywny.
    """
    payload = payload or CheckoutIn()
    svc = get_service(db)
    result = svc.confirm_checkout(
        actor.scope(customer_id),
        actor.user_id,
        cart_item_ids=payload.cart_item_ids,
        item_ids=payload.item_ids,
        notes=payload.notes,
        payment_terms=payload.payment_terms,
    )
    return {"message": "Order created", "data": result}
