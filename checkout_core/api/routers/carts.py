# checkout_core/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from checkout_core.api.deps import Actor, get_actor
from checkout_core.data.database import get_db
from checkout_core.domain.schemas import (
    AddItemIn,
    CartLineOut,
    CartOut,
    CartStatusOut,
    ClearCartOut,
    Envelope,
    UpdateQuantityIn,
)
from checkout_core.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("/{customer_id}", response_model=Envelope[CartOut], response_model_exclude_none=True)
def get_cart(
    customer_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """
    Aktywny koszyk klienta; pusty koszyk powstaje przy pierwszym wejściu.
    """
    svc = get_service(db)
    return {"data": svc.get_active_cart(actor.scope(customer_id))}


@router.post("/{customer_id}/items", response_model=Envelope[CartLineOut], response_model_exclude_none=True)
def add_item(
    customer_id: int,
    payload: AddItemIn,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    line = svc.add_item(actor.scope(customer_id), payload.item_id, payload.quantity)
    return {"message": "Item added to cart", "data": line}


@router.put("/items/{cart_item_id}", response_model=Envelope[CartLineOut], response_model_exclude_none=True)
def update_item(
    cart_item_id: int,
    payload: UpdateQuantityIn,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    line = svc.update_item_quantity(cart_item_id, payload.quantity, customer_id=actor.customer_id)
    return {"message": "Cart item updated", "data": line}


@router.delete("/items/{cart_item_id}", response_model=Envelope, response_model_exclude_none=True)
def remove_item(
    cart_item_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    svc.remove_item(cart_item_id, customer_id=actor.customer_id)
    return {"message": "Item removed from cart"}


@router.delete("/{customer_id}/clear", response_model=Envelope[ClearCartOut], response_model_exclude_none=True)
def clear_cart(
    customer_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    scoped = actor.scope(customer_id)
    removed = svc.clear_cart(scoped)
    return {"message": "Cart cleared", "data": {"customer_id": scoped, "removed": removed}}


@router.post("/{customer_id}/convert", response_model=Envelope[CartStatusOut], response_model_exclude_none=True)
def convert_cart(
    customer_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """
    Zamraża cały koszyk (status converted). Kolejne wejście tworzy nowy aktywny koszyk.
    """
    svc = get_service(db)
    cart = svc.convert_cart(actor.scope(customer_id))
    return {"message": "Cart converted", "data": cart}
