"""
Custom exceptions
"""


class RolePricingError(Exception):
    """Base exception"""
    pass


class ConfigError(RolePricingError):
    """Issues reading or writing the discount configuration"""
    pass


class CatalogError(RolePricingError):
    """Issues looking up products or categories"""
    pass


class CompatibilityError(RolePricingError):
    """Issues talking to an external pricing plugin"""
    pass


class FormattingError(RolePricingError):
    """Issues formatting output"""
    pass
