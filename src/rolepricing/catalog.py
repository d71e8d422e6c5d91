"""
Catalog access: products, variations and the category tree
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from .models import Product
from .exceptions import CatalogError

logger = logging.getLogger(__name__)


class CatalogProvider(ABC):
    """
    Abstract base class for catalog providers

    This defines the only view of the shop's object model the pricing
    core needs: product prices, category membership and variations.
    """

    @abstractmethod
    def get_product(self, product_id: str) -> Product:
        """
        Look up a product or variation

        Raises CatalogError when the product does not exist.
        """
        pass

    @abstractmethod
    def get_category_ancestors(self, category_id: str) -> List[str]:
        """
        Ancestors of a category, root-most first

        Unknown categories have no ancestors.
        """
        pass

    def find_product(self, product_id: str) -> Optional[Product]:
        """Look up a product, returning None when it does not exist"""
        try:
            return self.get_product(product_id)
        except CatalogError as e:
            logger.debug(f"Product lookup failed: {e}")
            return None

    def get_variants(self, product: Product) -> List[Product]:
        """
        Resolve the variations of a variable product, in catalog order

        A variation that cannot be looked up is skipped.
        """
        variants = []
        for variant_id in product.variant_ids:
            variant = self.find_product(variant_id)
            if variant is None:
                logger.warning(f"Variation {variant_id} of product {product.id} is unavailable, skipping")
                continue
            variants.append(variant)
        return variants

    def pricing_categories(self, product: Product) -> List[str]:
        """
        Categories used for discount lookup

        Variations inherit the assignment of their parent product.
        """
        if product.is_variation:
            parent = self.find_product(product.parent_id)
            if parent is not None:
                return list(parent.category_ids)
        return list(product.category_ids)

    def category_closure(self, product: Product) -> Set[str]:
        """Direct categories of a product plus all of their ancestors"""
        return category_closure(self.pricing_categories(product), self.get_category_ancestors)


def category_closure(category_ids: Iterable[str], ancestors_of) -> Set[str]:
    """
    Transitive closure of categories up the category tree

    Args:
        category_ids: directly assigned categories
        ancestors_of: callable returning the ancestors of one category

    Returns the set of the given ids and every ancestor id
    """
    closure: Set[str] = set()
    for category_id in category_ids:
        category_id = str(category_id)
        if category_id in closure:
            continue
        closure.add(category_id)
        for ancestor in ancestors_of(category_id):
            closure.add(str(ancestor))
    return closure


class InMemoryCatalog(CatalogProvider):
    """
    Catalog backed by plain dictionaries

    Attributes:
        products: product id -> Product
        parents: category id -> parent category id (None for roots)
    """

    def __init__(
        self,
        products: Optional[Iterable[Product]] = None,
        parents: Optional[Mapping[Any, Any]] = None
    ):
        self.products: Dict[str, Product] = {}
        self.parents: Dict[str, Optional[str]] = {}

        for product in products or []:
            self.add_product(product)
        for category_id, parent_id in (parents or {}).items():
            self.add_category(category_id, parent_id)

    def add_product(self, product: Product) -> None:
        self.products[product.id] = product

    def remove_product(self, product_id: str) -> None:
        self.products.pop(str(product_id), None)

    def add_category(self, category_id: Any, parent_id: Any = None) -> None:
        self.parents[str(category_id)] = str(parent_id) if parent_id not in (None, "") else None

    def get_product(self, product_id: str) -> Product:
        try:
            return self.products[str(product_id)]
        except KeyError:
            raise CatalogError(f"Unknown product: {product_id}")

    def get_category_ancestors(self, category_id: str) -> List[str]:
        ancestors: List[str] = []
        visited = {str(category_id)}
        current = self.parents.get(str(category_id))

        while current is not None:
            if current in visited:
                logger.warning(f"Category cycle detected at {current}, stopping ancestor walk")
                break
            visited.add(current)
            ancestors.append(current)
            current = self.parents.get(current)

        ancestors.reverse()
        return ancestors

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InMemoryCatalog":
        """
        Build a catalog from a plain mapping

        Expected shape:
            {
              "categories": {"<id>": "<parent id>" | null},
              "products": {
                "<id>": {"regular_price": ..., "sale_price": ..., "categories": [...],
                         "variations": {"<id>": {...}}, "name": ...}
              }
            }

        Variations listed under a product get the product as their parent.
        """
        if not isinstance(data, Mapping):
            raise CatalogError("Catalog data must be a mapping")

        catalog = cls(parents=data.get("categories") or {})

        try:
            for product_id, entry in (data.get("products") or {}).items():
                variations = entry.get("variations") or {}
                catalog.add_product(Product(
                    id=product_id,
                    regular_price=entry.get("regular_price"),
                    sale_price=entry.get("sale_price"),
                    category_ids=entry.get("categories") or [],
                    variant_ids=list(variations.keys()),
                    name=entry.get("name", ""),
                ))
                for variation_id, variation in variations.items():
                    catalog.add_product(Product(
                        id=variation_id,
                        regular_price=variation.get("regular_price"),
                        sale_price=variation.get("sale_price"),
                        parent_id=product_id,
                        name=variation.get("name", ""),
                    ))
        except (AttributeError, TypeError) as e:
            raise CatalogError(f"Malformed catalog data: {e}") from e

        return catalog
