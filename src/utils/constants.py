"""
Constants for the Kitchen Ledger costing engine.

This module defines system-wide constants including:
- Application metadata
- Database and environment settings
- Recipe traversal ceilings
- Profitability report thresholds
"""

from decimal import Decimal

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Kitchen Ledger"
APP_VERSION = "0.1.0"
DATABASE_FILENAME = "kitchen_ledger.db"

# ============================================================================
# Environment Variables
# ============================================================================

ENV_VAR_ENVIRONMENT = "KITCHEN_LEDGER_ENV"
ENV_VAR_DATABASE_URL = "KITCHEN_LEDGER_DATABASE_URL"
ENV_VAR_MAX_RECIPE_DEPTH = "KITCHEN_LEDGER_MAX_RECIPE_DEPTH"
ENV_VAR_MAX_RECIPE_EXPANSIONS = "KITCHEN_LEDGER_MAX_RECIPE_EXPANSIONS"

# ============================================================================
# Recipe Traversal Ceilings
# ============================================================================

# Deepest sub-recipe chain a single cost request may walk
DEFAULT_MAX_RECIPE_DEPTH = 64

# Recipe expansions (ingredient lists loaded) allowed per top-level recipe
DEFAULT_MAX_RECIPE_EXPANSIONS = 5000

# ============================================================================
# Money and Percentages
# ============================================================================

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENTS_PER_UNIT = Decimal("100")

# Output precision of serialized figures
UNIT_COST_PRECISION = Decimal("0.0001")
MONEY_PRECISION = Decimal("0.01")
PERCENT_PRECISION = Decimal("0.01")

# ============================================================================
# Profitability Report
# ============================================================================

# Margin bands (percent of sale price), lower bounds inclusive
MARGIN_HIGH_THRESHOLD = Decimal("70")
MARGIN_GOOD_THRESHOLD = Decimal("50")
MARGIN_LOW_THRESHOLD = Decimal("30")

# Food cost distribution buckets (percent of sale price)
FOOD_COST_BUCKETS = (
    ("under25", None, Decimal("25")),
    ("between25And30", Decimal("25"), Decimal("30")),
    ("between30And35", Decimal("30"), Decimal("35")),
    ("over35", Decimal("35"), None),
)

# Number of recipes listed as top/bottom performers
PERFORMER_COUNT = 5
