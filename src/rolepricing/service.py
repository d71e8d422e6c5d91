"""
Storefront pricing service

Routes every price request through the resolver, the calculator and,
for display, the formatter. Missing data never raises into the pricing
path: the worst case is the regular price.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from rich.text import Text

from .models import DiscountConfiguration, EffectivePrice, PriceRange, Product
from .catalog import CatalogProvider
from .config_store import ConfigStore
from .resolver import DiscountResolver
from .calculator import PriceCalculator
from .formatter import PriceFormatter, DEFAULT_ROLE_LABEL
from .compatibility import (
    ExternalPriceFilter,
    NoExternalPricing,
    PricingOrder,
    SOURCE_EXTERNAL,
    SOURCE_ROLE,
    hook_priority,
    reconcile,
)
from .exceptions import CompatibilityError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceDisplay:
    """
    What the storefront should show for one product

    Attributes:
        source: "role" when the role price is shown, "external" for the external filter's price
        text: rich text to render
        effective: role pricing result (None for variable products)
        price_range: role pricing range (variable products only)
    """
    source: str
    text: Text
    effective: Optional[EffectivePrice] = None
    price_range: Optional[PriceRange] = None

    @property
    def plain(self) -> str:
        return self.text.plain


class PricingService:
    """
    Role and category pricing for products, variations and variable products
    """

    def __init__(
        self,
        config_store: ConfigStore,
        catalog: CatalogProvider,
        calculator: Optional[PriceCalculator] = None,
        external: Optional[ExternalPriceFilter] = None,
        order: PricingOrder = PricingOrder.AFTER_EXTERNAL,
        formatter: Optional[PriceFormatter] = None
    ):
        """
        Initialize the service

        Args:
            config_store: discount configuration source
            catalog: product and category lookups
            calculator: price calculator (default precision if None)
            external: competing price filter (none if None)
            order: declared ordering against the external filter
            formatter: display formatter (matching the calculator precision if None)
        """
        self.catalog = catalog
        self.resolver = DiscountResolver(config_store, catalog)
        self.calculator = calculator or PriceCalculator()
        self.external = external or NoExternalPricing()
        self.order = order
        self.formatter = formatter or PriceFormatter(decimals=self.calculator.decimals)
        self.priority = hook_priority(order, self.external.is_active())

        logger.debug(f"Pricing service ready (order={order.value}, priority={self.priority})")

    def applicable_roles(
        self,
        roles: Optional[Iterable[str]],
        config: Optional[DiscountConfiguration] = None
    ) -> List[str]:
        return self.resolver.applicable_roles(roles, config)

    def primary_role(
        self,
        roles: Optional[Iterable[str]],
        config: Optional[DiscountConfiguration] = None
    ) -> str:
        """First applicable role, used for labels"""
        applicable = self.applicable_roles(roles, config)
        return applicable[0] if applicable else DEFAULT_ROLE_LABEL

    def discount_percentage(self, roles: Optional[Iterable[str]], product_id: str) -> float:
        """
        Percentage the visitor gets on a product
        Variations resolve through their parent product
        """
        product = self.catalog.find_product(product_id)
        if product is None:
            return 0.0
        return self.resolver.resolve(roles, self._pricing_product(product))

    def has_role_pricing(self, roles: Optional[Iterable[str]], product_id: str) -> bool:
        return self.discount_percentage(roles, product_id) > 0

    def formatted_discount_percentage(self, roles: Optional[Iterable[str]], product_id: str) -> str:
        return self.formatter.format_discount_percentage(self.discount_percentage(roles, product_id))

    def effective_price(self, roles: Optional[Iterable[str]], product_id: str) -> Optional[EffectivePrice]:
        """
        Effective price of a simple product or a variation

        Returns None for unknown products
        """
        product = self.catalog.find_product(product_id)
        if product is None:
            logger.debug(f"Unknown product {product_id}, nothing to price")
            return None
        return self._effective_price(roles, product)

    def price_range(self, roles: Optional[Iterable[str]], product_id: str) -> Optional[PriceRange]:
        """
        Discounted price range of a variable product

        The percentage is resolved once for the parent and shared by every
        variation. Variations that vanished from the catalog are skipped.

        Returns None for unknown products or products without priced variations
        """
        product = self.catalog.find_product(product_id)
        if product is None or not product.is_variable:
            return None
        return self._price_range(roles, product)

    def variation_price_data(self, roles: Optional[Iterable[str]], variation_id: str) -> Dict[str, Any]:
        """
        Price data for one variation, as consumed by variation pickers

        Returns an empty dict when the variation is unknown or has no price
        """
        variation = self.catalog.find_product(variation_id)
        if variation is None or not variation.has_price:
            return {}

        config = self.resolver.load_config()
        price = self._effective_price(roles, variation, config)
        role = self.primary_role(roles, config)
        price_html = self.formatter.format_effective_price(price, role).plain

        return {
            "variation_id": variation.id,
            "original_price": price.regular_price,
            "discounted_price": price.final_price,
            "has_discount": price.is_discounted,
            "role": role,
            "role_display": self.formatter.role_display_name(role),
            "savings_amount": price.savings_amount,
            "savings_percentage": price.savings_percentage,
            "price_html": price_html,
        }

    def price_display(
        self,
        roles: Optional[Iterable[str]],
        product_id: str,
        external_price: Union[Decimal, Mapping[str, Decimal], None] = None
    ) -> Optional[PriceDisplay]:
        """
        Decide what to show for a product

        The role price is always computed. When the external filter prices
        the product too, the lower price wins (ties go to the later filter).
        Variable products are reconciled variation by variation before the
        range bounds are taken.

        Args:
            roles: visitor roles
            product_id: product to display
            external_price: price already produced by the external filter, or a
                mapping of variation id to price for variable products
                (asked from the adapter when None)

        Returns None for unknown products
        """
        roles = list(roles or [])
        product = self.catalog.find_product(product_id)
        if product is None:
            return None

        config = self.resolver.load_config()
        role = self.primary_role(roles, config)

        if product.is_variable:
            return self._range_display(roles, product, role, config, external_price)

        price = self._effective_price(roles, product, config)
        choice = reconcile(price, self._external_price(product, roles, external_price), self.order)
        if choice.source == SOURCE_EXTERNAL:
            logger.debug(f"External price {choice.price} beats role price {price.final_price} for {product.id}")
            text = self.formatter.format_price(price.regular_price, choice.price, 0.0, show_label=False)
            return PriceDisplay(source=SOURCE_EXTERNAL, text=text, effective=price)

        return PriceDisplay(
            source=SOURCE_ROLE,
            text=self.formatter.format_effective_price(price, role),
            effective=price,
        )

    def _range_display(
        self,
        roles: List[str],
        product: Product,
        role: str,
        config: DiscountConfiguration,
        external_price: Union[Decimal, Mapping[str, Decimal], None]
    ) -> Optional[PriceDisplay]:
        percentage = self.resolver.resolve(roles, product, config)
        variants = [variant for variant in self.catalog.get_variants(product) if variant.has_price]
        price_range = self.calculator.compute_range(percentage, variants)
        if price_range is None:
            return None

        finals = []
        external_won = False
        for variant in variants:
            own = self.calculator.compute_final(percentage, variant)
            choice = reconcile(own, self._external_price(variant, roles, external_price), self.order)
            external_won = external_won or choice.source == SOURCE_EXTERNAL
            finals.append(choice.price)

        if not external_won:
            return PriceDisplay(
                source=SOURCE_ROLE,
                text=self.formatter.format_range_price(price_range, role),
                price_range=price_range,
            )

        logger.debug(f"External prices beat role prices for some variations of {product.id}")
        shown = PriceRange(
            original_min=price_range.original_min,
            original_max=price_range.original_max,
            final_min=min(finals),
            final_max=max(finals),
            percentage=0.0,
        )
        return PriceDisplay(
            source=SOURCE_EXTERNAL,
            text=self.formatter.format_range_price(shown, show_label=False),
            price_range=price_range,
        )

    def _pricing_product(self, product: Product) -> Product:
        """Product whose categories drive the discount (the parent for variations)"""
        if product.is_variation:
            parent = self.catalog.find_product(product.parent_id)
            if parent is not None:
                return parent
        return product

    def _effective_price(
        self,
        roles: Optional[Iterable[str]],
        product: Product,
        config: Optional[DiscountConfiguration] = None
    ) -> EffectivePrice:
        percentage = self.resolver.resolve(roles, self._pricing_product(product), config)
        return self.calculator.compute_final(percentage, product)

    def _price_range(self, roles: Optional[Iterable[str]], product: Product) -> Optional[PriceRange]:
        percentage = self.resolver.resolve(roles, product)
        variants = self.catalog.get_variants(product)
        return self.calculator.compute_range(percentage, variants)

    def _external_price(
        self,
        product: Product,
        roles: List[str],
        given: Union[Decimal, Mapping[str, Decimal], None] = None
    ) -> Optional[Decimal]:
        if isinstance(given, Mapping):
            return given.get(product.id)
        if given is not None:
            return given
        if not self.external.is_active():
            return None
        try:
            return self.external.final_price(product, roles)
        except CompatibilityError as e:
            logger.warning(f"Ignoring external price: {e}")
            return None
