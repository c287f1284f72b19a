"""
Input validation functions for the Kitchen Ledger costing engine.

This module provides validation functions for recipe data read from the
store:
- Numeric validation (positive, non-negative)
- Ingredient line reference validation (exactly one of item / sub-recipe)
- Yield validation

All validators return (is_valid, error_message) tuples and never raise, so
callers can decide whether a failure skips a line or aborts a request.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Tuple

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Must be a valid number"
ERROR_INVALID_POSITIVE = "Must be greater than zero"
ERROR_INVALID_NON_NEGATIVE = "Must be zero or greater"
ERROR_BOTH_REFERENCES = "References both an item and a sub-recipe"
ERROR_NO_REFERENCE = "References neither an item nor a sub-recipe"


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a number-like value to Decimal, or None if it isn't one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def validate_positive_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a positive number (> 0).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None:
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    num_value = _to_decimal(value)
    if num_value is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if num_value <= 0:
        return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
    return True, ""


def validate_non_negative_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a non-negative number (>= 0).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    num_value = _to_decimal(value)
    if num_value is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if num_value < 0:
        return False, f"{field_name}: {ERROR_INVALID_NON_NEGATIVE}"
    return True, ""


def validate_ingredient_reference(
    item_id: Optional[int], sub_recipe_id: Optional[int]
) -> Tuple[bool, str]:
    """
    Validate that an ingredient line references exactly one target.

    Args:
        item_id: Referenced item ID, if any
        sub_recipe_id: Referenced sub-recipe ID, if any

    Returns:
        Tuple of (is_valid, error_message)
    """
    if item_id is not None and sub_recipe_id is not None:
        return False, ERROR_BOTH_REFERENCES
    if item_id is None and sub_recipe_id is None:
        return False, ERROR_NO_REFERENCE
    return True, ""


def validate_ingredient_line(
    item_id: Optional[int],
    sub_recipe_id: Optional[int],
    quantity: Any,
    waste_factor: Any,
) -> Tuple[bool, List[str]]:
    """
    Validate all costing-relevant fields of an ingredient line.

    Args:
        item_id: Referenced item ID, if any
        sub_recipe_id: Referenced sub-recipe ID, if any
        quantity: Line quantity
        waste_factor: Fractional waste factor (None means no waste)

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    is_valid, error = validate_ingredient_reference(item_id, sub_recipe_id)
    if not is_valid:
        errors.append(error)

    is_valid, error = validate_non_negative_number(quantity, "Quantity")
    if not is_valid:
        errors.append(error)

    if waste_factor is not None:
        is_valid, error = validate_non_negative_number(waste_factor, "Waste Factor")
        if not is_valid:
            errors.append(error)

    return len(errors) == 0, errors


def validate_yield_quantity(value: Any) -> Tuple[bool, str]:
    """
    Validate a recipe yield quantity.

    Args:
        value: Yield quantity

    Returns:
        Tuple of (is_valid, error_message)
    """
    return validate_positive_number(value, "Yield Quantity")
