"""
Tests for external pricing compatibility
"""

import pytest
from decimal import Decimal
from unittest.mock import Mock

from rolepricing.compatibility import (
    AFTER_EXTERNAL_MIN_PRIORITY,
    BEFORE_EXTERNAL_PRIORITY,
    DEFAULT_PRIORITY,
    NoExternalPricing,
    PricingOrder,
    SOURCE_EXTERNAL,
    SOURCE_ROLE,
    WholesalePricesAdapter,
    compatibility_status,
    hook_priority,
    reconcile,
)
from rolepricing.models import EffectivePrice, Product
from rolepricing.exceptions import CompatibilityError


class LegacyWholesalePlugin:
    """Plugin exposing the older price method name"""
    VERSION = "1.4.2"

    def __init__(self, prices):
        self.prices = prices

    def get_wholesale_price(self, product_id, roles):
        return self.prices.get(product_id)


class CurrentWholesalePlugin:
    """Plugin exposing the newer price method name and no version"""

    def get_product_wholesale_price(self, product_id, roles):
        return "42.00"


class TestHookPriority:
    """Test cases for filter ordering"""

    def test_default_without_external(self):
        """Test the plain default is used without an external filter"""
        assert hook_priority(PricingOrder.AFTER_EXTERNAL, False) == DEFAULT_PRIORITY
        assert hook_priority(PricingOrder.BEFORE_EXTERNAL, False) == DEFAULT_PRIORITY

    def test_after_external_minimum(self):
        """Test running after an active external filter forces a late priority"""
        assert hook_priority(PricingOrder.AFTER_EXTERNAL, True) == AFTER_EXTERNAL_MIN_PRIORITY
        assert hook_priority(PricingOrder.AFTER_EXTERNAL, True, configured=20) == AFTER_EXTERNAL_MIN_PRIORITY
        assert hook_priority(PricingOrder.AFTER_EXTERNAL, True, configured=80) == 80
        assert hook_priority(PricingOrder.AFTER_EXTERNAL, True, configured=0) == AFTER_EXTERNAL_MIN_PRIORITY

    def test_explicit_zero_priority(self):
        """Test a configured priority of 0 is kept rather than read as unset"""
        assert hook_priority(PricingOrder.AFTER_EXTERNAL, False, configured=0) == 0
        assert hook_priority(PricingOrder.BEFORE_EXTERNAL, True, configured=0) == 0

    def test_before_external(self):
        """Test running before an active external filter uses an early priority"""
        assert hook_priority(PricingOrder.BEFORE_EXTERNAL, True) == BEFORE_EXTERNAL_PRIORITY
        assert hook_priority(PricingOrder.BEFORE_EXTERNAL, True, configured=1) == 1


class TestWholesalePricesAdapter:
    """Test cases for WholesalePricesAdapter"""

    def setup_method(self):
        """Set up test fixtures"""
        self.product = Product(id="tee", regular_price="100")

    def test_missing_plugin(self):
        """Test the adapter is inactive without a plugin"""
        adapter = WholesalePricesAdapter(None)

        assert not adapter.is_active()
        assert adapter.version is None
        assert adapter.final_price(self.product, ["wholesale"]) is None

    def test_legacy_method_name(self):
        """Test the older method name is picked up at construction"""
        adapter = WholesalePricesAdapter(LegacyWholesalePlugin({"tee": 75}))

        assert adapter.is_active()
        assert adapter.version == "1.4.2"
        assert adapter.final_price(self.product, ["wholesale"]) == Decimal("75")

    def test_current_method_name(self):
        """Test the newer method name is picked up at construction"""
        adapter = WholesalePricesAdapter(CurrentWholesalePlugin())

        assert adapter.is_active()
        assert adapter.version is None
        assert adapter.final_price(self.product, []) == Decimal("42.00")

    def test_unsupported_plugin(self):
        """Test a plugin without a known method is ignored"""
        adapter = WholesalePricesAdapter(object())
        assert not adapter.is_active()

    def test_role_filtering(self):
        """Test the adapter only prices for its wholesale roles"""
        adapter = WholesalePricesAdapter(LegacyWholesalePlugin({"tee": 75}), wholesale_roles=["wholesale"])

        assert adapter.final_price(self.product, ["educator"]) is None
        assert adapter.final_price(self.product, ["educator", "wholesale"]) == Decimal("75")

    def test_unpriced_product(self):
        """Test missing or non-positive external prices read as no price"""
        adapter = WholesalePricesAdapter(LegacyWholesalePlugin({"tee": 0}))
        assert adapter.final_price(self.product, ["wholesale"]) is None

        adapter = WholesalePricesAdapter(LegacyWholesalePlugin({}))
        assert adapter.final_price(self.product, ["wholesale"]) is None

    def test_plugin_failure(self):
        """Test plugin errors surface as CompatibilityError"""
        plugin = Mock(spec=["get_wholesale_price"])
        plugin.get_wholesale_price.side_effect = RuntimeError("boom")
        adapter = WholesalePricesAdapter(plugin)

        with pytest.raises(CompatibilityError):
            adapter.final_price(self.product, ["wholesale"])


class TestReconcile:
    """Test cases for choosing between role and external prices"""

    def setup_method(self):
        """Set up test fixtures"""
        self.own = EffectivePrice(10.0, Decimal("100"), Decimal("90"), True)

    def test_no_external_price(self):
        """Test the role price is used when the external filter is silent"""
        choice = reconcile(self.own, None)
        assert choice.source == SOURCE_ROLE
        assert choice.price == Decimal("90")

    def test_lower_external_price_wins(self):
        """Test a cheaper external price is shown"""
        choice = reconcile(self.own, Decimal("80"))
        assert choice.source == SOURCE_EXTERNAL
        assert choice.price == Decimal("80")

    def test_lower_role_price_wins(self):
        """Test a cheaper role price is shown"""
        choice = reconcile(self.own, Decimal("95"))
        assert choice.source == SOURCE_ROLE

    def test_tie_goes_to_later_filter(self):
        """Test ties are won by whichever filter runs later"""
        assert reconcile(self.own, Decimal("90"), PricingOrder.AFTER_EXTERNAL).source == SOURCE_ROLE
        assert reconcile(self.own, Decimal("90"), PricingOrder.BEFORE_EXTERNAL).source == SOURCE_EXTERNAL


class TestCompatibilityStatus:
    """Test cases for the compatibility summary"""

    def test_inactive(self):
        """Test status without an external filter"""
        status = compatibility_status(NoExternalPricing())

        assert status["is_active"] is False
        assert status["priority"] == DEFAULT_PRIORITY
        assert status["issues"] == []

    def test_active_issues(self):
        """Test issues are reported for an unversioned filter running after role pricing"""
        status = compatibility_status(
            WholesalePricesAdapter(CurrentWholesalePlugin()),
            PricingOrder.BEFORE_EXTERNAL
        )

        assert status["is_active"] is True
        assert status["order"] == "before"
        assert len(status["issues"]) == 2

    def test_active_versioned(self):
        """Test a versioned filter with the default ordering has no issues"""
        status = compatibility_status(WholesalePricesAdapter(LegacyWholesalePlugin({})))

        assert status["version"] == "1.4.2"
        assert status["priority"] == AFTER_EXTERNAL_MIN_PRIORITY
        assert status["issues"] == []
