"""
Command-line entry point for Kitchen Ledger.

Prints recipe costing reads as JSON. No UI required - designed for
scripting and for checking costs against a back-office database.

Usage Examples:
    # Cost one recipe with its line breakdown
    kitchen-ledger cost 12

    # Cost all sellable recipes (menu margin list)
    kitchen-ledger menu --active-only

    # Menu-engineering profitability report
    kitchen-ledger report

    # Read a specific database with debug logging
    kitchen-ledger --database-url sqlite:///backup.db --verbose report
"""

import argparse
import json
import logging
import sys
from decimal import Decimal

from src.services.database import configure_database, initialize_app_database
from src.services.exceptions import ServiceError
from src.services.recipe_costing_service import (
    get_profitability_report,
    get_recipe_cost,
    get_recipes_with_costs,
)
from src.utils.config import get_config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _json_default(value):
    """Serialize Decimals as strings so no precision is lost."""
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _print_json(data) -> None:
    print(json.dumps(data, default=_json_default, indent=2))


def cost_cmd(recipe_id: int) -> int:
    """Print one recipe's cost."""
    _print_json(get_recipe_cost(recipe_id))
    return 0


def menu_cmd(include_sub_recipes: bool, active_only: bool) -> int:
    """Print costs for the recipe list."""
    rows = get_recipes_with_costs(
        include_sub_recipes=include_sub_recipes, active_only=active_only
    )
    _print_json(rows)
    return 0


def report_cmd() -> int:
    """Print the profitability report."""
    _print_json(get_profitability_report())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kitchen-ledger",
        description="Recipe costing for Kitchen Ledger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Cost one recipe:
    kitchen-ledger cost 12

  Cost menu recipes only, skipping inactive ones:
    kitchen-ledger menu --active-only

  Profitability report:
    kitchen-ledger report
""",
    )
    parser.add_argument(
        "--database-url",
        help="Database URL (default: from KITCHEN_LEDGER_DATABASE_URL or config)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {get_config().app_version}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    cost_parser = subparsers.add_parser("cost", help="Cost one recipe")
    cost_parser.add_argument("recipe_id", type=int, help="Recipe ID")

    menu_parser = subparsers.add_parser("menu", help="Cost the recipe list")
    menu_parser.add_argument(
        "--include-sub-recipes",
        action="store_true",
        help="Include sub-recipes (default: menu recipes only)",
    )
    menu_parser.add_argument(
        "--active-only",
        action="store_true",
        help="Skip inactive recipes",
    )

    subparsers.add_parser("report", help="Menu-engineering profitability report")

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
    logging.getLogger(__name__).debug(f"Configuration: {get_config()!r}")

    try:
        if args.database_url:
            configure_database(args.database_url)
        initialize_app_database()

        if args.command == "cost":
            return cost_cmd(args.recipe_id)
        elif args.command == "menu":
            return menu_cmd(args.include_sub_recipes, args.active_only)
        elif args.command == "report":
            return report_cmd()
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1

    except ServiceError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
