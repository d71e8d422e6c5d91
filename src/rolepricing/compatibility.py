"""
Compatibility with an external wholesale-pricing plugin
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .models import EffectivePrice, Product, to_decimal
from .exceptions import CompatibilityError

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 10
BEFORE_EXTERNAL_PRIORITY = 5
AFTER_EXTERNAL_MIN_PRIORITY = 50
OVERRIDE_PRIORITY = 999

SOURCE_ROLE = "role"
SOURCE_EXTERNAL = "external"


class PricingOrder(Enum):
    """Declared execution order relative to the external price filter"""
    BEFORE_EXTERNAL = "before"
    AFTER_EXTERNAL = "after"


def hook_priority(
    order: PricingOrder,
    external_active: bool,
    configured: Optional[int] = None
) -> int:
    """
    Filter priority for the role pricing filter

    Higher values run later. Without an active external filter the plain
    default is used. Running after it forces a priority of at least 50.
    """
    if not external_active:
        return configured if configured is not None else DEFAULT_PRIORITY

    if order == PricingOrder.AFTER_EXTERNAL:
        return max(configured if configured is not None else DEFAULT_PRIORITY, AFTER_EXTERNAL_MIN_PRIORITY)

    if configured is not None:
        return min(configured, BEFORE_EXTERNAL_PRIORITY)
    return BEFORE_EXTERNAL_PRIORITY


class ExternalPriceFilter(ABC):
    """
    Narrow adapter interface over a competing price filter

    Only the final price it would produce is needed, never its internals.
    """

    version: Optional[str] = None

    @abstractmethod
    def final_price(self, product: Product, roles: Iterable[str]) -> Optional[Decimal]:
        """
        Price the external filter would show for this product and visitor

        Returns None when it does not price the product for these roles
        """
        pass

    @abstractmethod
    def is_active(self) -> bool:
        """Check if the external filter is installed and usable"""
        pass


class NoExternalPricing(ExternalPriceFilter):
    """Stand-in used when no external pricing plugin is present"""

    def final_price(self, product: Product, roles: Iterable[str]) -> Optional[Decimal]:
        return None

    def is_active(self) -> bool:
        return False


class WholesalePricesAdapter(ExternalPriceFilter):
    """
    Adapter for a wholesale prices plugin object

    Plugin releases expose the price lookup under different names. The
    supported name is picked once here; callers only see final_price().
    """

    PRICE_METHODS = (
        "get_product_wholesale_price",
        "get_wholesale_price",
        "get_product_raw_wholesale_price",
    )
    VERSION_ATTRIBUTES = ("VERSION", "version", "__version__")

    def __init__(self, plugin: Any, wholesale_roles: Optional[Iterable[str]] = None):
        """
        Initialize the adapter

        Args:
            plugin: third-party plugin instance (None when not installed)
            wholesale_roles: roles the plugin prices for (all roles if None)
        """
        self.plugin = plugin
        self.wholesale_roles = set(wholesale_roles) if wholesale_roles else set()
        self._price_method = self._find_price_method(plugin)
        self.version = self._find_version(plugin)

        if plugin is not None and self._price_method is None:
            logger.warning("External wholesale plugin has no supported price method, ignoring it")

    def _find_price_method(self, plugin: Any):
        if plugin is None:
            return None
        for name in self.PRICE_METHODS:
            method = getattr(plugin, name, None)
            if callable(method):
                logger.debug(f"Using external price method {name}")
                return method
        return None

    def _find_version(self, plugin: Any) -> Optional[str]:
        if plugin is None:
            return None
        for name in self.VERSION_ATTRIBUTES:
            value = getattr(plugin, name, None)
            if isinstance(value, str) and value:
                return value
        return None

    def is_active(self) -> bool:
        return self._price_method is not None

    def applies_to(self, roles: Iterable[str]) -> bool:
        if not self.wholesale_roles:
            return True
        return bool(self.wholesale_roles.intersection(roles))

    def final_price(self, product: Product, roles: Iterable[str]) -> Optional[Decimal]:
        roles = list(roles)
        if not self.is_active() or not self.applies_to(roles):
            return None

        try:
            raw = self._price_method(product.id, roles)
        except Exception as e:
            raise CompatibilityError(f"External price lookup failed for product {product.id}: {e}") from e

        if raw is None or raw == "":
            return None

        price = to_decimal(raw)
        return price if price > 0 else None


@dataclass(frozen=True)
class PriceChoice:
    """Price picked at the presentation boundary and where it came from"""
    source: str
    price: Decimal


def reconcile(
    own: EffectivePrice,
    external_price: Optional[Decimal],
    order: PricingOrder = PricingOrder.AFTER_EXTERNAL
) -> PriceChoice:
    """
    Choose between the role price and the external filter's price

    The lower price wins. On a tie, whichever filter runs later wins.
    """
    if external_price is None:
        return PriceChoice(SOURCE_ROLE, own.final_price)

    if external_price < own.final_price:
        return PriceChoice(SOURCE_EXTERNAL, external_price)
    if own.final_price < external_price:
        return PriceChoice(SOURCE_ROLE, own.final_price)

    if order == PricingOrder.AFTER_EXTERNAL:
        return PriceChoice(SOURCE_ROLE, own.final_price)
    return PriceChoice(SOURCE_EXTERNAL, external_price)


def compatibility_status(
    external: ExternalPriceFilter,
    order: PricingOrder = PricingOrder.AFTER_EXTERNAL
) -> Dict[str, Any]:
    """
    Summary of how role pricing coexists with the external filter
    """
    active = external.is_active()
    issues: List[str] = []

    if active and not external.version:
        issues.append("Could not detect the external pricing plugin version")
    if active and order == PricingOrder.BEFORE_EXTERNAL:
        issues.append("Role pricing runs before external pricing; its output may be replaced")

    return {
        "is_active": active,
        "version": external.version,
        "order": order.value,
        "priority": hook_priority(order, active),
        "override_priority": OVERRIDE_PRIORITY,
        "issues": issues,
    }
