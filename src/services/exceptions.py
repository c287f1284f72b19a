"""Service layer exception classes for Kitchen Ledger.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application.

Missing cost data and cyclic sub-recipe references are expected data states
and are reported on cost results, not raised. Only conditions that must stop
a computation are exceptions.

Exception Hierarchy:
    ServiceError (base)
    ├── RecipeNotFound
    ├── ValidationError
    ├── DatabaseError
    └── CostingError
        ├── TraversalLimitExceeded
        └── InvalidIngredientReference
"""

from typing import List, Optional, Sequence


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


class RecipeNotFound(ServiceError):
    """Raised when a recipe cannot be found by ID."""

    def __init__(self, recipe_id: int):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class ValidationError(ServiceError):
    """Raised when data validation fails."""

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class CostingError(ServiceError):
    """Base exception for recipe cost resolution errors."""

    pass


class TraversalLimitExceeded(CostingError):
    """Raised when a cost request walks past its depth or expansion ceiling.

    This aborts the computation for the offending top-level recipe. It
    usually means a pathological fan-out or a data-integrity problem, so it
    is surfaced instead of returning a truncated figure.

    Args:
        recipe_id: Recipe being entered when the ceiling was hit
        path: Recipe IDs from the top-level recipe down to recipe_id
        limit_kind: "depth" or "expansions"
        limit: The configured ceiling

    Example:
        >>> raise TraversalLimitExceeded(7, [1, 4, 7], "depth", 2)
        TraversalLimitExceeded: Recipe 7 exceeds max depth of 2 (path: 1 -> 4 -> 7)
    """

    def __init__(self, recipe_id: int, path: Sequence[int], limit_kind: str, limit: int):
        self.recipe_id = recipe_id
        self.path: List[int] = list(path)
        self.limit_kind = limit_kind
        self.limit = limit
        path_str = " -> ".join(str(rid) for rid in self.path)
        if limit_kind == "depth":
            message = f"Recipe {recipe_id} exceeds max depth of {limit}"
        else:
            message = f"Recipe {recipe_id} exceeds max of {limit} recipe expansions"
        super().__init__(f"{message} (path: {path_str})")


class InvalidIngredientReference(CostingError):
    """Raised when an ingredient line fails costing validation.

    The line calculator catches this, skips the line, and reports the line
    on the recipe's cost result.

    Args:
        line_id: RecipeIngredient ID
        errors: Validation messages
    """

    def __init__(self, line_id: Optional[int], errors: List[str]):
        self.line_id = line_id
        self.errors = errors
        super().__init__(f"Ingredient line {line_id} is invalid: {'; '.join(errors)}")
