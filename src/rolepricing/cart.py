"""
Cart integration: role prices for cart lines and totals
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional

from .service import PricingService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartLine:
    """
    One line of a cart

    Attributes:
        product_id: product added to the cart
        quantity: number of units
        variation_id: chosen variation of a variable product, if any
    """
    product_id: str
    quantity: int
    variation_id: Optional[str] = None

    @property
    def priced_id(self) -> str:
        return self.variation_id or self.product_id


@dataclass(frozen=True)
class CartLinePrice:
    """Role pricing applied to one cart line"""
    line: CartLine
    unit_regular: Decimal
    unit_final: Decimal
    percentage: float
    is_discounted: bool

    @property
    def line_regular(self) -> Decimal:
        return self.unit_regular * self.line.quantity

    @property
    def line_total(self) -> Decimal:
        return self.unit_final * self.line.quantity


@dataclass
class CartTotals:
    """Aggregated cart amounts before and after role discounts"""
    lines: List[CartLinePrice] = field(default_factory=list)
    skipped: List[CartLine] = field(default_factory=list)

    @property
    def subtotal(self) -> Decimal:
        return sum((price.line_regular for price in self.lines), Decimal("0"))

    @property
    def total(self) -> Decimal:
        return sum((price.line_total for price in self.lines), Decimal("0"))

    @property
    def discount_total(self) -> Decimal:
        return self.subtotal - self.total


class CartIntegration:
    """
    Applies role discounts to cart contents

    Lines are priced at the unit level with the same rules as product
    pages, so the cart never disagrees with what the shop displayed.
    """

    def __init__(self, service: PricingService):
        self.service = service

    def price_line(self, roles: Optional[Iterable[str]], line: CartLine) -> Optional[CartLinePrice]:
        """
        Price one cart line

        Returns None when the line cannot be priced (unknown product or
        non-positive quantity)
        """
        if line.quantity <= 0:
            logger.debug(f"Skipping cart line for {line.priced_id} with quantity {line.quantity}")
            return None

        price = self.service.effective_price(roles, line.priced_id)
        if price is None:
            logger.warning(f"Cart line references unknown product {line.priced_id}, leaving it unpriced")
            return None

        return CartLinePrice(
            line=line,
            unit_regular=price.regular_price if price.regular_price > 0 else price.final_price,
            unit_final=price.final_price,
            percentage=price.percentage,
            is_discounted=price.is_discounted,
        )

    def cart_totals(self, roles: Optional[Iterable[str]], lines: Iterable[CartLine]) -> CartTotals:
        """
        Price every line of a cart
        Returns CartTotals with per-line prices and the lines that were skipped
        """
        roles = list(roles or [])
        totals = CartTotals()

        for line in lines:
            price = self.price_line(roles, line)
            if price is None:
                totals.skipped.append(line)
            else:
                totals.lines.append(price)

        logger.debug(
            f"Cart priced: {len(totals.lines)} lines, subtotal {totals.subtotal}, "
            f"discount {totals.discount_total}"
        )
        return totals
