"""
Price computation for a resolved discount percentage
"""

import os
import logging
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional

from .models import EffectivePrice, PriceRange, Product, clamp_percentage, to_decimal

logger = logging.getLogger(__name__)

DECIMALS_ENV_VAR = "ROLEPRICING_DECIMALS"
DEFAULT_DECIMALS = 2


def default_decimals() -> int:
    """Price precision from $ROLEPRICING_DECIMALS, falling back to 2"""
    raw = os.environ.get(DECIMALS_ENV_VAR)
    if raw is None:
        return DEFAULT_DECIMALS
    try:
        return max(0, int(raw))
    except ValueError:
        logger.warning(f"Invalid {DECIMALS_ENV_VAR}={raw!r}, using {DEFAULT_DECIMALS}")
        return DEFAULT_DECIMALS


class PriceCalculator:
    """
    Turns a discount percentage and a product's prices into the final price

    Discounts only ever lower a price: an existing sale price that already
    beats the role discount is kept, and the result never exceeds the
    regular price.
    """

    def __init__(self, decimals: Optional[int] = None):
        """
        Initialize the calculator

        Args:
            decimals: currency precision used for rounding (uses $ROLEPRICING_DECIMALS or 2 if None)
        """
        self.decimals = max(0, int(decimals)) if decimals is not None else default_decimals()
        self.quantum = Decimal(1).scaleb(-self.decimals)

    def round(self, amount: Any) -> Decimal:
        """Round half-up to the configured precision"""
        return to_decimal(amount).quantize(self.quantum, rounding=ROUND_HALF_UP)

    def round_capped(self, amount: Any, ceiling: Any) -> Decimal:
        """
        Round half-up without ending above ceiling
        Falls back to rounding down when half-up would cross it
        """
        rounded = self.round(amount)
        if rounded > to_decimal(ceiling):
            rounded = to_decimal(amount).quantize(self.quantum, rounding=ROUND_FLOOR)
        return rounded

    def apply_discount_to_price(self, price: Any, percentage: Any) -> Decimal:
        """
        Apply a bare percentage to a price, ignoring sale prices
        Returns the rounded discounted price
        """
        price = to_decimal(price)
        pct = clamp_percentage(percentage)
        if price <= 0 or pct <= 0:
            return self.round_capped(price, price)
        return self.round_capped(price * (1 - Decimal(str(pct)) / 100), price)

    def compute_final(self, percentage: Any, product: Product) -> EffectivePrice:
        """
        Compute the effective price of one product

        Args:
            percentage: resolved discount percentage
            product: product or variation being priced

        Returns an EffectivePrice; not discounted when the percentage is 0 or
        the product has no meaningful regular price
        """
        pct = clamp_percentage(percentage)
        regular = product.regular_price

        if pct <= 0 or not product.has_price:
            return EffectivePrice(
                percentage=0.0,
                regular_price=regular,
                final_price=self.round_capped(product.active_price, regular),
                is_discounted=False,
            )

        final = regular * (1 - Decimal(str(pct)) / 100)
        if product.sale_price is not None and product.sale_price > 0:
            final = min(final, product.sale_price)

        final = self.round_capped(final, regular)

        return EffectivePrice(
            percentage=pct,
            regular_price=regular,
            final_price=final,
            is_discounted=final < regular,
        )

    def compute_variants(self, percentage: Any, variants: Iterable[Product]) -> List[EffectivePrice]:
        """
        Effective prices for each priced variant at one shared percentage
        Variants without a meaningful regular price are left out
        """
        return [
            self.compute_final(percentage, variant)
            for variant in variants
            if variant.has_price
        ]

    def compute_range(self, percentage: Any, variants: Iterable[Product]) -> Optional[PriceRange]:
        """
        Price range of a variable product

        Every variant is priced at the same percentage, then the bounds of
        the regular prices and of the final prices are taken.

        Returns None when no variant carries a price
        """
        prices = self.compute_variants(percentage, variants)
        if not prices:
            return None

        regulars = [price.regular_price for price in prices]
        finals = [price.final_price for price in prices]

        return PriceRange(
            original_min=min(regulars),
            original_max=max(regulars),
            final_min=min(finals),
            final_max=max(finals),
            percentage=clamp_percentage(percentage),
        )
