"""Best-price calculation for bulk "buy N for P" discounts.

Given a regular unit price, a quantity and the product's discount tiers,
``calculate_best_price`` returns what the shopper actually pays:

* Units that do not fill a whole bundle are charged at the regular price.
* A capped tier only discounts up to ``max_discounted_qty`` units; the rest
  revert to the regular price.
* Of all tiers the quantity qualifies for, the strictly cheapest total wins
  (first one on ties). A tier that does not beat the regular total is not
  applied.
* If nothing applies, the cheapest tier still within reach is reported as a
  hint; the charged amount is unchanged.

Club-only tiers are priced like any other tier and only flagged in the
annotation, since the caller's membership is not known here.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import DiscountTier, PriceQuote
from .utils import format_amount

CLUB_NOTE = " (Club members only)"


def tier_total(tier: DiscountTier, regular_unit_price: float, quantity: int) -> float:
    """Total cost of ``quantity`` units under ``tier``."""
    if tier.is_capped:
        discounted_qty = min(quantity, tier.max_discounted_qty)
        regular_remainder = quantity - discounted_qty
        full_bundles, leftover = divmod(discounted_qty, tier.threshold_qty)
        return (
            full_bundles * tier.bundle_price
            + leftover * regular_unit_price
            + regular_remainder * regular_unit_price
        )

    full_bundles, leftover = divmod(quantity, tier.threshold_qty)
    return full_bundles * tier.bundle_price + leftover * regular_unit_price


def effective_threshold(tier: DiscountTier) -> int:
    if tier.is_capped:
        return min(tier.threshold_qty, tier.max_discounted_qty)
    return tier.threshold_qty


def _notes(tier: DiscountTier) -> str:
    notes = CLUB_NOTE if tier.club_only else ""
    if tier.is_capped:
        notes += f" (Max {tier.max_discounted_qty} items on sale)"
    return notes


def applied_annotation(tier: DiscountTier, savings: float, currency: str) -> str:
    return (
        f"Sale: {tier.threshold_qty} for {format_amount(tier.bundle_price)} {currency} "
        f"(Save {savings:.2f} {currency}){_notes(tier)}"
    )


def potential_annotation(tier: DiscountTier, needed: int, currency: str) -> str:
    return (
        f"Add {needed} more for sale: {tier.threshold_qty} for "
        f"{format_amount(tier.bundle_price)} {currency}{_notes(tier)}"
    )


def find_best_tier(
    regular_unit_price: float, quantity: int, tiers: Iterable[DiscountTier]
) -> tuple[DiscountTier | None, float]:
    """Return the winning tier (or None) and the total it yields."""
    best_tier: DiscountTier | None = None
    best_total = regular_unit_price * quantity

    for tier in tiers:
        if not tier.is_well_formed or quantity < tier.threshold_qty:
            continue
        total = tier_total(tier, regular_unit_price, quantity)
        if total < best_total:
            best_tier, best_total = tier, total

    return best_tier, best_total


def find_potential_tier(quantity: int, tiers: Iterable[DiscountTier]) -> DiscountTier | None:
    """Cheapest-per-unit tier the shopper could still reach by adding units."""
    best: DiscountTier | None = None
    for tier in tiers:
        if not tier.is_well_formed:
            continue
        if tier.is_capped and quantity >= tier.max_discounted_qty:
            continue
        if quantity >= effective_threshold(tier):
            continue
        if best is None or tier.bundle_price / tier.threshold_qty < best.bundle_price / best.threshold_qty:
            best = tier
    return best


def calculate_best_price(
    regular_unit_price: float,
    quantity: int,
    tiers: Iterable[DiscountTier] | None,
    currency: str = "ILS",
) -> PriceQuote:
    """Lowest achievable total for ``quantity`` units.

    Only the savings figure inside the annotation is rounded; the returned
    totals are exact.
    """
    tiers = list(tiers or [])
    regular_total = regular_unit_price * quantity

    if quantity == 0 or not tiers:
        return PriceQuote(unit_price=regular_unit_price, total_price=regular_total)

    best_tier, best_total = find_best_tier(regular_unit_price, quantity, tiers)
    if best_tier is not None:
        return PriceQuote(
            unit_price=best_total / quantity,
            total_price=best_total,
            sale_annotation=applied_annotation(best_tier, regular_total - best_total, currency),
        )

    if (potential := find_potential_tier(quantity, tiers)) is not None:
        needed = effective_threshold(potential) - quantity
        return PriceQuote(
            unit_price=regular_unit_price,
            total_price=regular_total,
            sale_annotation=potential_annotation(potential, needed, currency),
        )

    return PriceQuote(unit_price=regular_unit_price, total_price=regular_total)
