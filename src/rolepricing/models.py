"""
Core data model: configuration, products and computed prices
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from .exceptions import ConfigError

CONFIG_VERSION = "1.0.0"

_TRUTHY = {"1", "true", "yes", "on"}


def clamp_percentage(value: Any) -> float:
    """
    Coerce a percentage to a float in [0, 100] with 2-decimal precision
    Non-numeric input becomes 0
    """
    if isinstance(value, str):
        value = value.strip().rstrip("%").strip()
    try:
        pct = float(value)
    except (TypeError, ValueError):
        return 0.0

    if math.isnan(pct):
        return 0.0

    return round(min(max(pct, 0.0), 100.0), 2)


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a price to Decimal, unset or invalid prices read as 0
    """
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")
    if value is None or value == "":
        return Decimal("0")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return result if result.is_finite() else Decimal("0")


def as_bool(value: Any) -> bool:
    """Interpret form-style flags ("on", "1", "yes", True)"""
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


@dataclass
class DiscountConfiguration:
    """
    Flat discount configuration as persisted by a ConfigStore

    Attributes:
        enabled_roles: role key -> whether discounting is active for it
        default_percent_by_role: role key -> "all categories" percentage
        category_overrides: category id -> role key -> percentage
        version: schema version of the stored document
    """
    enabled_roles: Dict[str, bool] = field(default_factory=dict)
    default_percent_by_role: Dict[str, float] = field(default_factory=dict)
    category_overrides: Dict[str, Dict[str, float]] = field(default_factory=dict)
    version: str = CONFIG_VERSION

    @classmethod
    def empty(cls) -> "DiscountConfiguration":
        return cls()

    @property
    def active_roles(self) -> Set[str]:
        return {role for role, enabled in self.enabled_roles.items() if enabled}

    def is_enabled(self, role: str) -> bool:
        return bool(self.enabled_roles.get(role, False))

    def default_percent(self, role: str) -> float:
        return self.default_percent_by_role.get(role, 0.0)

    def category_percent(self, category_id: str, role: str) -> float:
        return self.category_overrides.get(str(category_id), {}).get(role, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "enabled_roles": dict(self.enabled_roles),
            "default_percent_by_role": dict(self.default_percent_by_role),
            "category_overrides": {
                category: dict(roles)
                for category, roles in self.category_overrides.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DiscountConfiguration":
        """
        Build a configuration from its stored mapping
        Percentages are clamped, flags coerced. Structural problems raise ConfigError
        """
        if not isinstance(data, Mapping):
            raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")

        enabled = _section(data, "enabled_roles")
        defaults = _section(data, "default_percent_by_role")
        overrides = _section(data, "category_overrides")

        category_overrides: Dict[str, Dict[str, float]] = {}
        for category, roles in overrides.items():
            if not isinstance(roles, Mapping):
                raise ConfigError(f"Overrides for category {category!r} must be a mapping")
            category_overrides[str(category)] = {
                str(role): clamp_percentage(pct) for role, pct in roles.items()
            }

        return cls(
            enabled_roles={str(role): as_bool(flag) for role, flag in enabled.items()},
            default_percent_by_role={
                str(role): clamp_percentage(pct) for role, pct in defaults.items()
            },
            category_overrides=category_overrides,
            version=str(data.get("version", CONFIG_VERSION)),
        )


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"Configuration section {key!r} must be a mapping")
    return value


@dataclass
class Product:
    """
    Read-only view of a catalog product or variation

    Attributes:
        id: product identifier
        regular_price: undiscounted reference price (<= 0 means "no price")
        sale_price: pre-existing promotional price, if any
        category_ids: categories the product directly belongs to
        variant_ids: ordered child variation ids (variable products only)
        parent_id: parent product id (variations only)
        name: display name
    """
    id: str
    regular_price: Decimal
    sale_price: Optional[Decimal] = None
    category_ids: List[str] = field(default_factory=list)
    variant_ids: List[str] = field(default_factory=list)
    parent_id: Optional[str] = None
    name: str = ""

    def __post_init__(self):
        self.id = str(self.id)
        self.regular_price = to_decimal(self.regular_price)
        if self.sale_price is not None and self.sale_price != "":
            self.sale_price = to_decimal(self.sale_price)
        else:
            self.sale_price = None
        self.category_ids = [str(c) for c in self.category_ids]
        self.variant_ids = [str(v) for v in self.variant_ids]
        if self.parent_id is not None:
            self.parent_id = str(self.parent_id)

    @property
    def has_price(self) -> bool:
        return self.regular_price > 0

    @property
    def is_variable(self) -> bool:
        return len(self.variant_ids) > 0

    @property
    def is_variation(self) -> bool:
        return self.parent_id is not None

    @property
    def active_price(self) -> Decimal:
        """Sale price when present and lower, else regular price"""
        if self.sale_price is not None and 0 < self.sale_price < self.regular_price:
            return self.sale_price
        return self.regular_price


@dataclass(frozen=True)
class EffectivePrice:
    """
    Price computed for one (requester, product) pair

    Attributes:
        percentage: discount percentage that was applied
        regular_price: undiscounted reference price
        final_price: price to display and charge
        is_discounted: whether the role discount produced a lower price
    """
    percentage: float
    regular_price: Decimal
    final_price: Decimal
    is_discounted: bool

    @property
    def savings_amount(self) -> Decimal:
        if self.final_price >= self.regular_price:
            return Decimal("0")
        return self.regular_price - self.final_price

    @property
    def savings_percentage(self) -> float:
        if self.regular_price <= 0:
            return 0.0
        return float(self.savings_amount / self.regular_price * 100)


@dataclass(frozen=True)
class PriceRange:
    """Min/max price bounds of a variable product, before and after discount"""
    original_min: Decimal
    original_max: Decimal
    final_min: Decimal
    final_max: Decimal
    percentage: float

    @property
    def has_discount(self) -> bool:
        return self.final_min < self.original_min or self.final_max < self.original_max

    @property
    def max_savings(self) -> Decimal:
        """Largest saving a buyer can see across the range"""
        return max(self.original_max - self.final_min, Decimal("0"))


def unique_roles(roles: Optional[Iterable[str]]) -> List[str]:
    """Deduplicate role keys, keeping first-seen order"""
    if not roles:
        return []
    seen: List[str] = []
    for role in roles:
        role = str(role)
        if role and role not in seen:
            seen.append(role)
    return seen
