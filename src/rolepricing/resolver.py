"""
Discount resolution: pick the single best percentage for a visitor and product
"""

import logging
from typing import Iterable, List, Optional, Set

from .models import DiscountConfiguration, Product, unique_roles
from .catalog import CatalogProvider
from .config_store import ConfigStore, load_config_safely
from .exceptions import CatalogError

logger = logging.getLogger(__name__)


def resolve_percentage(
    roles: Iterable[str],
    closure: Set[str],
    config: DiscountConfiguration
) -> float:
    """
    Best discount percentage for a role set over a category closure

    For every enabled role the largest category override in the closure and
    the role's default are two independent candidates; the larger one wins.
    Across roles the best value wins. Nothing is ever summed.
    """
    best = 0.0
    for role in unique_roles(roles):
        if not config.is_enabled(role):
            continue
        best = max(best, role_percentage(role, closure, config))
    return best


def role_percentage(role: str, closure: Set[str], config: DiscountConfiguration) -> float:
    """Percentage one enabled role earns for a category closure"""
    category_pct = max(
        (config.category_percent(category_id, role) for category_id in closure),
        default=0.0
    )
    return max(category_pct, config.default_percent(role))


class DiscountResolver:
    """
    Resolves the discount percentage for a visitor's roles and a product
    """

    def __init__(self, config_store: ConfigStore, catalog: CatalogProvider):
        """
        Initialize the resolver

        Args:
            config_store: where the discount configuration is read from
            catalog: product and category lookups
        """
        self.config_store = config_store
        self.catalog = catalog

    def load_config(self) -> DiscountConfiguration:
        """Current configuration, empty if the store is unreadable"""
        return load_config_safely(self.config_store)

    def applicable_roles(
        self,
        roles: Optional[Iterable[str]],
        config: Optional[DiscountConfiguration] = None
    ) -> List[str]:
        """
        Enabled subset of the given roles, in the caller's order
        """
        config = config if config is not None else self.load_config()
        return [role for role in unique_roles(roles) if config.is_enabled(role)]

    def resolve(
        self,
        roles: Optional[Iterable[str]],
        product: Product,
        config: Optional[DiscountConfiguration] = None
    ) -> float:
        """
        Resolve the discount percentage for a product

        Args:
            roles: role keys held by the visitor (empty for anonymous visitors)
            product: product or variation being priced
            config: configuration snapshot (read from the store if None)

        Returns a percentage in [0, 100]
        """
        config = config if config is not None else self.load_config()

        roles = self.applicable_roles(roles, config)
        if not roles:
            return 0.0

        closure = self._closure(product)
        percentage = resolve_percentage(roles, closure, config)

        logger.debug(
            f"Resolved {percentage}% for product {product.id} "
            f"(roles={roles}, categories={sorted(closure)})"
        )
        return percentage

    def resolve_for_product_id(
        self,
        roles: Optional[Iterable[str]],
        product_id: str,
        config: Optional[DiscountConfiguration] = None
    ) -> float:
        """Resolve by product id; unknown products get no discount"""
        product = self.catalog.find_product(product_id)
        if product is None:
            return 0.0
        return self.resolve(roles, product, config)

    def _closure(self, product: Product) -> Set[str]:
        try:
            return self.catalog.category_closure(product)
        except CatalogError as e:
            logger.warning(f"Category lookup failed for product {product.id}, using direct categories: {e}")
            return set(product.category_ids)
