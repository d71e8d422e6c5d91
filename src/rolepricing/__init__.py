__version__ = "1.0.0"

# Package metadata
__description__ = "Role and category based percentage discounts for e-commerce catalogs"

# Public API
from .models import (
    DiscountConfiguration,
    Product,
    EffectivePrice,
    PriceRange,
    clamp_percentage,
)
from .config_store import ConfigStore, InMemoryConfigStore, JsonFileConfigStore, load_config_safely
from .catalog import CatalogProvider, InMemoryCatalog, category_closure
from .resolver import DiscountResolver
from .calculator import PriceCalculator
from .compatibility import (
    ExternalPriceFilter,
    NoExternalPricing,
    WholesalePricesAdapter,
    PricingOrder,
    hook_priority,
    reconcile,
)
from .formatter import PriceFormatter
from .service import PricingService, PriceDisplay
from .cart import CartIntegration, CartLine
from .settings import SettingsController
from .exceptions import (
    RolePricingError,
    ConfigError,
    CatalogError,
    CompatibilityError,
    FormattingError
)

__all__ = [
    # Version
    "__version__",

    # Main classes
    "DiscountResolver",
    "PriceCalculator",
    "PricingService",
    "CartIntegration",
    "SettingsController",
    "PriceFormatter",

    # Collaborators
    "ConfigStore",
    "InMemoryConfigStore",
    "JsonFileConfigStore",
    "load_config_safely",
    "CatalogProvider",
    "InMemoryCatalog",
    "category_closure",

    # External pricing
    "ExternalPriceFilter",
    "NoExternalPricing",
    "WholesalePricesAdapter",
    "PricingOrder",
    "hook_priority",
    "reconcile",

    # Data classes
    "DiscountConfiguration",
    "Product",
    "EffectivePrice",
    "PriceRange",
    "PriceDisplay",
    "CartLine",
    "clamp_percentage",

    # Exceptions
    "RolePricingError",
    "ConfigError",
    "CatalogError",
    "CompatibilityError",
    "FormattingError"
]
