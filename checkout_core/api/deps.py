# checkout_core/api/deps.py
from dataclasses import dataclass

from fastapi import Header, HTTPException


@dataclass(frozen=True)
class Actor:
    """
    Tozsamosc przekazana przez warstwe auth przed nami.
    customer_id ustawione = zalogowany klient, dziala tylko na swoim koszyku.
    customer_id puste = pracownik, dziala na kliencie z URL (zamowienia asystowane).
    """

    user_id: int
    customer_id: int | None = None

    def scope(self, path_customer_id: int) -> int:
        if self.customer_id is not None:
            return self.customer_id
        return path_customer_id


def get_actor(
    x_user_id: int | None = Header(None),
    x_customer_id: int | None = Header(None),
) -> Actor:
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Missing user identity")
    return Actor(user_id=x_user_id, customer_id=x_customer_id)
