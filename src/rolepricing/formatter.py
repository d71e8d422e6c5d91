"""
Rich text formatter for displaying role prices
"""

import os
from decimal import Decimal
from typing import Any, Dict, Optional

from rich.text import Text
from rich.console import Console
from rich.table import Table

from .models import EffectivePrice, PriceRange, to_decimal
from .exceptions import FormattingError

CURRENCY_ENV_VAR = "ROLEPRICING_CURRENCY"
DEFAULT_ROLE_LABEL = "Member"


class PriceFormatter:
    """
    Formatter for role price output with rich text features
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        currency_symbol: Optional[str] = None,
        decimals: int = 2,
        role_labels: Optional[Dict[str, str]] = None
    ):
        """
        Initialize the formatter

        Args:
            console: console used by print helpers
            currency_symbol: prefix for amounts (uses $ROLEPRICING_CURRENCY or "$" if None)
            decimals: digits after the decimal point
            role_labels: explicit display names for role keys
        """
        self.console = console or Console()
        self.currency_symbol = currency_symbol if currency_symbol is not None else os.environ.get(CURRENCY_ENV_VAR, "$")
        self.decimals = max(0, decimals)
        self.role_labels = dict(role_labels or {})

        self.styles = {
            "original": "strike dim",
            "final": "bold green",
            "annotation": "yellow",
            "label": "italic cyan",
        }

    def format_amount(self, amount: Any) -> str:
        """Format a single amount, e.g. "$12.50" """
        value = to_decimal(amount)
        return f"{self.currency_symbol}{value:,.{self.decimals}f}"

    def format_range(self, low: Any, high: Any) -> str:
        """Format a price range, collapsing to one amount when both ends match"""
        if to_decimal(low) == to_decimal(high):
            return self.format_amount(low)
        return f"{self.format_amount(low)} - {self.format_amount(high)}"

    def format_discount_percentage(self, percentage: float) -> str:
        """Short "-X.X%" annotation, empty when there is no discount"""
        if percentage is None or percentage <= 0:
            return ""
        return f"-{percentage:.1f}%"

    def role_display_name(self, role: Optional[str]) -> str:
        """
        Human readable name for a role key
        Explicit labels win, otherwise "wholesale_buyer" becomes "Wholesale Buyer"
        """
        if not role:
            return DEFAULT_ROLE_LABEL
        if role in self.role_labels:
            return self.role_labels[role]
        return role.replace("_", " ").title()

    def format_price(
        self,
        regular_price: Any,
        final_price: Any,
        percentage: float,
        role: Optional[str] = None,
        show_label: bool = True
    ) -> Text:
        """
        Format a discounted price
        Returns Rich Text: struck-through original, new price, percentage off and role label
        """
        try:
            regular = to_decimal(regular_price)
            final = to_decimal(final_price)

            text = Text()
            if final >= regular:
                text.append(self.format_amount(final), style=self.styles["final"])
                return text

            text.append(self.format_amount(regular), style=self.styles["original"])
            text.append(" ")
            text.append(self.format_amount(final), style=self.styles["final"])

            annotation = self.format_discount_percentage(percentage)
            if annotation:
                text.append(f" {annotation}", style=self.styles["annotation"])

            if show_label:
                text.append(f" {self.role_display_name(role)} Price", style=self.styles["label"])
            return text

        except Exception as e:
            raise FormattingError(f"Failed to format price: {e}") from e

    def format_effective_price(self, price: EffectivePrice, role: Optional[str] = None) -> Text:
        """
        Format a role pricing result
        Prices the role discount did not lower show as the plain amount, without a role label
        """
        if not price.is_discounted or price.percentage <= 0:
            return Text(self.format_amount(price.final_price), style=self.styles["final"])
        return self.format_price(price.regular_price, price.final_price, price.percentage, role)

    def format_range_price(
        self,
        price_range: PriceRange,
        role: Optional[str] = None,
        show_label: bool = True
    ) -> Text:
        """
        Format a variable product's price range
        Returns Rich Text with the original range struck through and an "Up to ... off" note

        A labelled range needs a role discount: ranges lowered only by
        variation sale prices show the plain final range.
        """
        try:
            text = Text()
            final_range = self.format_range(price_range.final_min, price_range.final_max)

            if not price_range.has_discount or (show_label and price_range.percentage <= 0):
                text.append(final_range, style=self.styles["final"])
                return text

            original_range = self.format_range(price_range.original_min, price_range.original_max)
            text.append(original_range, style=self.styles["original"])
            text.append(" ")
            text.append(final_range, style=self.styles["final"])
            if not show_label:
                return text

            text.append(f" {self.role_display_name(role)} Price", style=self.styles["label"])
            text.append(f" (Up to {self.format_amount(price_range.max_savings)} off)", style=self.styles["annotation"])
            return text

        except Exception as e:
            raise FormattingError(f"Failed to format price range: {e}") from e

    def create_summary_table(
        self,
        title: str,
        price: Optional[EffectivePrice] = None,
        price_range: Optional[PriceRange] = None
    ) -> Table:
        """
        Table with the numbers behind a displayed price
        Returns a Rich Table
        """
        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("Field", style="bold")
        table.add_column("Value")

        if price is not None:
            table.add_row("Regular price", self.format_amount(price.regular_price))
            table.add_row("Final price", self.format_amount(price.final_price))
            table.add_row("Discount", f"{price.percentage:.2f}%")
            table.add_row("Savings", self._format_savings(price.savings_amount, price.savings_percentage))
            table.add_row("Discounted", "yes" if price.is_discounted else "no")

        if price_range is not None:
            table.add_row("Regular range", self.format_range(price_range.original_min, price_range.original_max))
            table.add_row("Final range", self.format_range(price_range.final_min, price_range.final_max))
            table.add_row("Discount", f"{price_range.percentage:.2f}%")
            table.add_row("Discounted", "yes" if price_range.has_discount else "no")

        return table

    def _format_savings(self, amount: Decimal, percentage: float) -> str:
        if amount <= 0:
            return "-"
        return f"{self.format_amount(amount)} ({percentage:.1f}%)"
