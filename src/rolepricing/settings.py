"""
Settings controller: turns admin input into a stored configuration
"""

import logging
from typing import Any, Dict, Mapping, Optional

from .models import DiscountConfiguration, as_bool, clamp_percentage
from .config_store import ConfigStore

logger = logging.getLogger(__name__)


class SettingsController:
    """
    Validates admin input and saves it wholesale

    Input is never rejected: percentages are clamped to [0, 100] and
    anything non-numeric becomes 0.
    """

    def __init__(self, store: ConfigStore):
        self.store = store

    def build(self, raw: Mapping[str, Any]) -> DiscountConfiguration:
        """
        Normalize form-like input into a configuration

        Args:
            raw: mapping with "enabled_roles", "default_percent_by_role" and
                "category_overrides" sections; missing sections are empty

        Returns the normalized configuration
        """
        enabled = _mapping(raw.get("enabled_roles"))
        defaults = _mapping(raw.get("default_percent_by_role"))
        overrides = _mapping(raw.get("category_overrides"))

        enabled_roles: Dict[str, bool] = {
            str(role).strip(): as_bool(flag) for role, flag in enabled.items() if str(role).strip()
        }

        default_percent_by_role: Dict[str, float] = {}
        for role, pct in defaults.items():
            role = str(role).strip()
            if role:
                default_percent_by_role[role] = clamp_percentage(pct)

        category_overrides: Dict[str, Dict[str, float]] = {}
        for category, roles in overrides.items():
            category = str(category).strip()
            cleaned = {
                str(role).strip(): clamp_percentage(pct)
                for role, pct in _mapping(roles).items()
                if str(role).strip()
            }
            if category and cleaned:
                category_overrides[category] = cleaned

        # Every role that carries a percentage must be known, even if disabled
        for role in default_percent_by_role:
            enabled_roles.setdefault(role, False)
        for roles in category_overrides.values():
            for role in roles:
                enabled_roles.setdefault(role, False)

        return DiscountConfiguration(
            enabled_roles=enabled_roles,
            default_percent_by_role=default_percent_by_role,
            category_overrides=category_overrides,
        )

    def save(self, raw: Mapping[str, Any]) -> DiscountConfiguration:
        """
        Replace the stored configuration with normalized admin input
        Returns the configuration as stored
        """
        config = self.build(raw)
        self.store.save(config)
        logger.info(
            f"Saved discount settings: {len(config.active_roles)} enabled roles, "
            f"{len(config.category_overrides)} category overrides"
        )
        return config

    def enable_role(self, role: str, enabled: bool = True) -> DiscountConfiguration:
        raw = self._current()
        raw["enabled_roles"][role] = enabled
        return self.save(raw)

    def set_default(self, role: str, percentage: Any) -> DiscountConfiguration:
        raw = self._current()
        raw["default_percent_by_role"][role] = percentage
        return self.save(raw)

    def set_category_override(self, category_id: Any, role: str, percentage: Any) -> DiscountConfiguration:
        raw = self._current()
        raw["category_overrides"].setdefault(str(category_id), {})[role] = percentage
        return self.save(raw)

    def remove_category_override(self, category_id: Any, role: Optional[str] = None) -> DiscountConfiguration:
        """Drop one role's override for a category, or all of them when role is None"""
        raw = self._current()
        overrides = raw["category_overrides"]
        category_id = str(category_id)
        if role is None:
            overrides.pop(category_id, None)
        elif category_id in overrides:
            overrides[category_id].pop(role, None)
        return self.save(raw)

    def _current(self) -> Dict[str, Any]:
        # Edits start from what is stored; a corrupt store surfaces as ConfigError here
        return self.store.load().to_dict()


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}
