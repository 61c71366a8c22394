# checkout_core/domain/profile.py
from dataclasses import dataclass, field
from typing import Any, Dict, List

# pole modelu -> etykieta pokazywana klientowi
REQUIRED_PROFILE_FIELDS = (
    ("customer_name", "Customer name"),
    ("street", "Street"),
    ("city", "City"),
    ("postal_code", "Postal code"),
    ("country", "Country"),
    ("telephone1", "Telephone 1"),
    ("email1", "Email 1"),
)


@dataclass(frozen=True)
class ProfileCheck:
    missing_fields: List[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields


def check_profile(customer: Any) -> ProfileCheck:
    """
    Zwraca brakujace pola profilu zamiast rzucac wyjatek.
    Preview traktuje brak jako ostrzezenie, confirm jako blad.
    """
    missing = []
    for attr, label in REQUIRED_PROFILE_FIELDS:
        value = getattr(customer, attr, None)
        if value is None or str(value).strip() == "":
            missing.append(label)
    return ProfileCheck(missing_fields=missing)


def address_snapshot(customer: Any) -> Dict[str, Any]:
    return {
        "name": customer.customer_name,
        "street": customer.street,
        "city": customer.city,
        "postalCode": customer.postal_code,
        "country": customer.country,
        "phone": customer.telephone1,
        "email": customer.email1,
    }
