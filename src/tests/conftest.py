"""Pytest configuration and fixtures for costing tests."""

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

from src.models import Item, MovementType, PosItemMapping, Recipe, RecipeIngredient, StockMovement
from src.models.base import Base
from src.utils.config import reset_config


def _dec(value):
    if value is None:
        return None
    return Decimal(str(value))


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    # Create in-memory SQLite database for testing
    engine = create_engine("sqlite:///:memory:", echo=False)

    # Create all tables
    Base.metadata.create_all(engine)

    # Create session factory
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import src.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    # Provide database to test
    yield Session

    # Cleanup
    Session.remove()
    Base.metadata.drop_all(engine)

    # Restore original session factory
    db_module.get_session_factory = original_get_session


@pytest.fixture(autouse=True)
def fresh_config():
    """Make every test read configuration from its own environment."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def session(test_db):
    """The thread-local session behind test_db."""
    return test_db()


# ============================================================================
# Factory fixtures
# ============================================================================


@pytest.fixture
def make_item(session):
    """Create an inventory item."""

    def _make(name, unit="kg", cost_price=None, **kwargs):
        item = Item(name=name, unit=unit, cost_price=_dec(cost_price), **kwargs)
        session.add(item)
        session.flush()
        return item

    return _make


@pytest.fixture
def add_purchase(session):
    """Record a stock movement (a purchase receipt by default)."""

    def _add(item, cost_price, created_at=None, movement_type=MovementType.PURCHASE, quantity=1):
        movement = StockMovement(
            item_id=item.id,
            movement_type=movement_type,
            quantity=_dec(quantity),
            cost_price=_dec(cost_price),
        )
        if created_at is not None:
            movement.created_at = created_at
        session.add(movement)
        session.flush()
        return movement

    return _add


@pytest.fixture
def make_recipe(session):
    """Create a recipe (yield 1 portion unless told otherwise)."""

    def _make(name, yield_quantity="1", yield_unit="portion", is_sub_recipe=False, is_active=True):
        recipe = Recipe(
            name=name,
            yield_quantity=_dec(yield_quantity),
            yield_unit=yield_unit,
            is_sub_recipe=is_sub_recipe,
            is_active=is_active,
        )
        session.add(recipe)
        session.flush()
        return recipe

    return _make


@pytest.fixture
def add_line(session):
    """Add an ingredient line to a recipe."""

    def _add(recipe, quantity, unit, item=None, sub_recipe=None, waste_factor="0", sort_order=0):
        line = RecipeIngredient(
            recipe_id=recipe.id,
            item_id=item.id if item is not None else None,
            sub_recipe_id=sub_recipe.id if sub_recipe is not None else None,
            quantity=_dec(quantity),
            unit=unit,
            waste_factor=_dec(waste_factor),
            sort_order=sort_order,
        )
        session.add(line)
        session.flush()
        return line

    return _add


@pytest.fixture
def add_pos_mapping(session):
    """Link a recipe to a POS catalog item with prices in cents."""

    def _add(recipe, variation_price_cents=None, catalog_price_cents=None, catalog_item_id=None):
        mapping = PosItemMapping(
            recipe_id=recipe.id,
            catalog_item_id=catalog_item_id or f"CAT-{recipe.id}",
            catalog_item_name=recipe.name,
            variation_price_cents=variation_price_cents,
            catalog_price_cents=catalog_price_cents,
        )
        session.add(mapping)
        session.flush()
        return mapping

    return _add


@pytest.fixture
def burger(make_item, make_recipe, add_line):
    """Burger with a beef line and a bun sub-recipe.

    - Beef: 0.2 kg at 8.00/kg with 5% waste -> 1.68
    - Bun: 1 piece of a 4-piece batch costing 0.40 -> 0.10
    """
    beef = make_item("Beef Mince", unit="kg", cost_price="8.00")
    bun_dough = make_item("Bun Dough Batch", unit="batch", cost_price="0.40")

    bun = make_recipe("Bun", yield_quantity="4", yield_unit="pieces", is_sub_recipe=True)
    add_line(bun, "1", "batch", item=bun_dough)

    recipe = make_recipe("Burger", yield_quantity="1", yield_unit="portion")
    add_line(recipe, "0.2", "kg", item=beef, waste_factor="0.05", sort_order=1)
    add_line(recipe, "1", "pieces", sub_recipe=bun, sort_order=2)

    return {"burger": recipe, "bun": bun, "beef": beef, "bun_dough": bun_dough}
