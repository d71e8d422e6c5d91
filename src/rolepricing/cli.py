"""
Command Line Interface for Role Category Pricing
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .catalog import InMemoryCatalog
from .calculator import PriceCalculator
from .config_store import JsonFileConfigStore, activate, uninstall
from .formatter import PriceFormatter
from .service import PricingService
from .settings import SettingsController
from .exceptions import RolePricingError, CatalogError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)]
)
logger = logging.getLogger("rolepricing")

app = typer.Typer(
    name="rolepricing",
    help="Role and category based discount pricing",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Inspect and edit the discount configuration", no_args_is_help=True)
app.add_typer(config_app, name="config")

console = Console()

CONFIG_OPTION_HELP = "Configuration file (defaults to $ROLEPRICING_CONFIG or ./rolepricing.json)"


def version_callback(value: bool) -> None:
    """Display version information."""
    if value:
        from . import __version__
        console.print(f"Role Category Pricing version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output"
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version information"
    ),
) -> None:
    if verbose:
        logger.setLevel(logging.DEBUG)
        logger.debug("Verbose mode enabled")


@app.command()
def price(
    product_id: str = typer.Argument(..., help="Product, variable product or variation id"),
    roles: Optional[List[str]] = typer.Option(
        None,
        "--role",
        "-r",
        help="Role held by the visitor (can be used multiple times)"
    ),
    catalog_file: Path = typer.Option(
        ...,
        "--catalog",
        "-c",
        help="Catalog JSON file with categories and products"
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", help=CONFIG_OPTION_HELP),
    decimals: Optional[int] = typer.Option(
        None,
        "--decimals",
        "-d",
        help="Currency precision (defaults to $ROLEPRICING_DECIMALS or 2)"
    ),
    details: bool = typer.Option(
        False,
        "--details",
        help="Show the numbers behind the displayed price"
    ),
) -> None:
    """Show the price a visitor with the given roles would see."""
    try:
        catalog = _load_catalog(catalog_file)
        calculator = PriceCalculator(decimals=decimals)
        service = PricingService(
            JsonFileConfigStore(config_file),
            catalog,
            calculator=calculator,
            formatter=PriceFormatter(decimals=calculator.decimals),
        )

        roles = roles or []
        logger.debug(f"Pricing {product_id} for roles {roles}")

        display = service.price_display(roles, product_id)
        if display is None:
            raise CatalogError(f"Product {product_id} not found or has no price")

        console.print(display.text)

        if details:
            table = service.formatter.create_summary_table(
                f"Product {escape(product_id)}",
                price=display.effective,
                price_range=display.price_range,
            )
            console.print(table)

    except RolePricingError as e:
        logger.error(f"Pricing error: {e}")
        raise typer.Exit(code=1)


@config_app.command("show")
def config_show(
    config_file: Optional[Path] = typer.Option(None, "--config", help=CONFIG_OPTION_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print the raw stored document"),
) -> None:
    """Display the current discount configuration."""
    try:
        config = JsonFileConfigStore(config_file).load()
    except RolePricingError as e:
        logger.error(f"Configuration error: {e}")
        raise typer.Exit(code=1)

    if as_json:
        console.print_json(json.dumps(config.to_dict()))
        return

    if not config.enabled_roles:
        console.print("[yellow]No roles configured.[/yellow]")
        return

    roles_table = Table(title="Roles", show_header=True, header_style="bold")
    roles_table.add_column("Role")
    roles_table.add_column("Enabled")
    roles_table.add_column("All categories", justify="right")
    for role in sorted(config.enabled_roles):
        roles_table.add_row(
            escape(role),
            "[green]yes[/green]" if config.is_enabled(role) else "[red]no[/red]",
            f"{config.default_percent(role):.2f}%",
        )
    console.print(roles_table)

    if config.category_overrides:
        overrides_table = Table(title="Category overrides", show_header=True, header_style="bold")
        overrides_table.add_column("Category")
        overrides_table.add_column("Role")
        overrides_table.add_column("Discount", justify="right")
        for category in sorted(config.category_overrides):
            for role, pct in sorted(config.category_overrides[category].items()):
                overrides_table.add_row(escape(category), escape(role), f"{pct:.2f}%")
        console.print(overrides_table)


@config_app.command("enable")
def config_enable(
    role: str = typer.Argument(..., help="Role key"),
    config_file: Optional[Path] = typer.Option(None, "--config", help=CONFIG_OPTION_HELP),
) -> None:
    """Enable discounting for a role."""
    _run_settings(config_file, lambda settings: settings.enable_role(role, True),
                  f"Role {role} enabled")


@config_app.command("disable")
def config_disable(
    role: str = typer.Argument(..., help="Role key"),
    config_file: Optional[Path] = typer.Option(None, "--config", help=CONFIG_OPTION_HELP),
) -> None:
    """Disable discounting for a role, keeping its percentages."""
    _run_settings(config_file, lambda settings: settings.enable_role(role, False),
                  f"Role {role} disabled")


@config_app.command("set-default")
def config_set_default(
    role: str = typer.Argument(..., help="Role key"),
    percentage: str = typer.Argument(..., help="Discount for all categories (clamped to 0-100)"),
    config_file: Optional[Path] = typer.Option(None, "--config", help=CONFIG_OPTION_HELP),
) -> None:
    """Set a role's all-categories discount."""
    config = _run_settings(config_file, lambda settings: settings.set_default(role, percentage))
    console.print(f"[green]✓ {escape(role)}: {config.default_percent(role):.2f}% on all categories[/green]")


@config_app.command("set-category")
def config_set_category(
    category_id: str = typer.Argument(..., help="Category id"),
    role: str = typer.Argument(..., help="Role key"),
    percentage: str = typer.Argument(..., help="Discount for this category (clamped to 0-100)"),
    config_file: Optional[Path] = typer.Option(None, "--config", help=CONFIG_OPTION_HELP),
) -> None:
    """Set a role's discount for one category and its subcategories."""
    config = _run_settings(
        config_file,
        lambda settings: settings.set_category_override(category_id, role, percentage)
    )
    pct = config.category_percent(category_id, role)
    console.print(f"[green]✓ {escape(role)}: {pct:.2f}% on category {escape(category_id)}[/green]")


@config_app.command("remove-category")
def config_remove_category(
    category_id: str = typer.Argument(..., help="Category id"),
    role: Optional[str] = typer.Argument(None, help="Role key (all roles if omitted)"),
    config_file: Optional[Path] = typer.Option(None, "--config", help=CONFIG_OPTION_HELP),
) -> None:
    """Remove category overrides."""
    _run_settings(
        config_file,
        lambda settings: settings.remove_category_override(category_id, role),
        f"Overrides removed for category {category_id}"
    )


@config_app.command("reset")
def config_reset(
    config_file: Optional[Path] = typer.Option(None, "--config", help=CONFIG_OPTION_HELP),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Discard all settings and start from empty defaults."""
    if not yes and not typer.confirm("Discard all discount settings?", default=False):
        console.print("[yellow]Configuration not changed.[/yellow]")
        return

    store = JsonFileConfigStore(config_file)
    try:
        uninstall(store)
        activate(store)
    except RolePricingError as e:
        logger.error(f"Configuration error: {e}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Configuration reset at {escape(str(store.path))}[/green]")


def _run_settings(config_file: Optional[Path], action, message: Optional[str] = None):
    """
    Apply one settings change and report it

    Returns the saved configuration
    """
    settings = SettingsController(JsonFileConfigStore(config_file))
    try:
        config = action(settings)
    except RolePricingError as e:
        logger.error(f"Configuration error: {e}")
        raise typer.Exit(code=1)

    if message:
        console.print(f"[green]✓ {escape(message)}[/green]")
    return config


def _load_catalog(path: Path) -> InMemoryCatalog:
    """
    Read a catalog JSON file
    """
    if not path.exists():
        raise CatalogError(f"Catalog file does not exist: {path}")
    if not path.is_file():
        raise CatalogError(f"Path is not a file: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError:
        raise CatalogError(f"Catalog file is not a valid text file: {path}")
    except json.JSONDecodeError as e:
        raise CatalogError(f"Catalog file is not valid JSON: {e}")

    return InMemoryCatalog.from_dict(data)


if __name__ == "__main__":
    app()
