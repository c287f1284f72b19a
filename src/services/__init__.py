"""Services package - Business logic layer for Kitchen Ledger.

This package contains the service modules that compute recipe costs from
the back-office database.

Architecture:
- Services: Stateless functions; every public read accepts session=None
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy
- Costing engine: src.services.costing (pure reads over a data source)

Service Modules:
- recipe_costing_service: Recipe detail/list costing, profitability report

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- logging_utils: Structured operation logging
"""

from . import database, recipe_costing_service

from .exceptions import (
    ServiceError,
    RecipeNotFound,
    ValidationError,
    DatabaseError,
    CostingError,
    TraversalLimitExceeded,
    InvalidIngredientReference,
)

from .recipe_costing_service import (
    get_recipe_cost,
    get_recipes_with_costs,
    get_profitability_report,
    get_sale_price,
    get_recipes_using_sub_recipe,
)

__all__ = [
    # Modules
    "database",
    "recipe_costing_service",
    # Exceptions
    "ServiceError",
    "RecipeNotFound",
    "ValidationError",
    "DatabaseError",
    "CostingError",
    "TraversalLimitExceeded",
    "InvalidIngredientReference",
    # Recipe costing
    "get_recipe_cost",
    "get_recipes_with_costs",
    "get_profitability_report",
    "get_sale_price",
    "get_recipes_using_sub_recipe",
]
