# checkout_core/domain/pricing.py
"""
Best-of pricing: customer tier discount OR product discounts, never both.

Pure functions, no database access. Amounts are Decimal; comparisons are made
on the exact values and only the reported figures are rounded to cents.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, List

APPLIED_TIER = "tier"
APPLIED_PRODUCT = "product"
APPLIED_NONE = "none"

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class PricedLine:
    base_unit_price: Any
    quantity: int
    discounted_unit_price: Any = None


@dataclass(frozen=True)
class BestOfPricing:
    applied: str
    tier_percent: Decimal
    base_subtotal: Decimal
    product_total: Decimal
    tier_total: Decimal
    chosen_total: Decimal
    savings_amount: Decimal
    savings_percent_of_product: Decimal

    def as_dict(self) -> dict:
        return {
            "applied": self.applied,
            "tier_percent": self.tier_percent,
            "base_subtotal": self.base_subtotal,
            "product_total": self.product_total,
            "tier_total": self.tier_total,
            "chosen_total": self.chosen_total,
            "savings_amount": self.savings_amount,
            "savings_percent_of_product": self.savings_percent_of_product,
        }


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not number.is_finite():
        return None
    return number


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _base_price(line: PricedLine) -> Decimal:
    return _to_decimal(line.base_unit_price) or ZERO


def _discounted_price(line: PricedLine) -> Decimal | None:
    # ujemna albo nienumeryczna cena promocyjna = brak promocji
    price = _to_decimal(line.discounted_unit_price)
    if price is None or price < 0:
        return None
    return price


def base_subtotal(lines: Iterable[PricedLine]) -> Decimal:
    return sum((_base_price(li) * int(li.quantity) for li in lines), ZERO)


def product_path_total(lines: Iterable[PricedLine]) -> Decimal:
    total = ZERO
    for li in lines:
        unit = _discounted_price(li)
        if unit is None:
            unit = _base_price(li)
        total += unit * int(li.quantity)
    return total


def clamp_tier_percent(tier_percent: Any) -> Decimal:
    return max(ZERO, _to_decimal(tier_percent) or ZERO)


def tier_path_total(lines: Iterable[PricedLine], tier_percent: Any) -> Decimal:
    tier = clamp_tier_percent(tier_percent)
    subtotal = base_subtotal(lines)
    return max(ZERO, subtotal * (1 - tier / HUNDRED))


def compute_best_of(lines: Iterable[PricedLine], tier_percent: Any) -> BestOfPricing:
    """Pick the cheaper of the tier path and the product path for one order.

    The tier path wins only when the tier percent is positive and it is
    strictly cheaper than the product path. Otherwise the product path is
    used if it is strictly cheaper than the undiscounted subtotal.
    """
    lines: List[PricedLine] = list(lines)
    tier = clamp_tier_percent(tier_percent)

    base = base_subtotal(lines)
    product = product_path_total(lines)
    tier_total = tier_path_total(lines, tier)

    if tier > 0 and tier_total < product:
        applied, chosen = APPLIED_TIER, tier_total
    elif product < base:
        applied, chosen = APPLIED_PRODUCT, product
    else:
        applied, chosen = APPLIED_NONE, product

    savings = max(ZERO, product - chosen)
    savings_pct = (savings / product * HUNDRED) if product > 0 else ZERO

    return BestOfPricing(
        applied=applied,
        tier_percent=tier,
        base_subtotal=_money(base),
        product_total=_money(product),
        tier_total=_money(tier_total),
        chosen_total=_money(chosen),
        savings_amount=_money(savings),
        savings_percent_of_product=_money(savings_pct),
    )
