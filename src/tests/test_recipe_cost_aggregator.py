"""
Tests for the Recipe Cost Aggregator.

Tests cover:
- Empty recipes, line summing, cost per yield unit
- Cycle detection (self-reference, 3-cycle) without recursion errors
- Request-scoped memoization of shared sub-recipes
- Missing cost and missing/zero yield reporting
- Invalid lines skipped and reported
- Depth and expansion ceilings
- Idempotence and isolation between requests
"""

import logging
from decimal import Decimal
from unittest.mock import patch

import pytest

from src.services.costing import cost_source
from src.services.costing.aggregator import CostingRequest, resolve_recipe_cost
from src.services.costing.data_source import CostingDataSource
from src.services.exceptions import RecipeNotFound, TraversalLimitExceeded, ValidationError


@pytest.fixture
def data_source(session):
    return CostingDataSource(session)


def _cost(data_source, recipe, **kwargs):
    return CostingRequest(data_source, **kwargs).cost_recipe(recipe.id)


def _chain(make_item, make_recipe, add_line, length, prefix="Level"):
    """Build recipes Level1 -> Level2 -> ... -> LevelN; LevelN uses one item."""
    salt = make_item(f"{prefix} Salt", cost_price="1.00")
    recipes = [
        make_recipe(f"{prefix} {i}", is_sub_recipe=i > 1) for i in range(1, length + 1)
    ]
    for parent, child in zip(recipes, recipes[1:]):
        add_line(parent, "1", "portion", sub_recipe=child)
    add_line(recipes[-1], "1", "kg", item=salt)
    return recipes


class TestBasicAggregation:
    """Tests for totals and per-yield-unit cost."""

    def test_empty_recipe_costs_zero(self, make_recipe, data_source):
        """Given a recipe with no lines, Then total and per-unit cost are zero."""
        recipe = make_recipe("Glass of Water")

        result = _cost(data_source, recipe)

        assert result.total_cost == Decimal("0")
        assert result.cost_per_yield_unit == Decimal("0")
        assert result.lines == ()
        assert result.is_exact is True

    def test_sums_lines_and_divides_by_yield(self, make_item, make_recipe, add_line, data_source):
        flour = make_item("Flour", cost_price="0.80")
        butter = make_item("Butter", cost_price="6.00")
        recipe = make_recipe("Shortbread", yield_quantity="12", yield_unit="pieces")
        add_line(recipe, "0.3", "kg", item=flour)
        add_line(recipe, "0.2", "kg", item=butter)

        result = _cost(data_source, recipe)

        assert result.total_cost == Decimal("1.44")
        assert result.cost_per_yield_unit == Decimal("0.12")
        assert [line.cost for line in result.lines] == [Decimal("0.24"), Decimal("1.2")]

    def test_burger_scenario(self, burger, data_source):
        """Beef 0.2 kg @ 8.00 + 5% waste = 1.68; bun 1 piece of 0.40/4 = 0.10."""
        result = _cost(data_source, burger["burger"])

        beef_line, bun_line = result.lines
        assert beef_line.cost == Decimal("1.68")
        assert bun_line.cost == Decimal("0.10")
        assert result.total_cost == Decimal("1.78")
        assert result.cost_per_yield_unit == Decimal("1.78")
        assert result.missing_cost_count == 0
        assert result.cyclic is False

    def test_nested_movement_cost_overrides_static(
        self, burger, add_purchase, data_source
    ):
        """A new purchase of bun dough flows up through the sub-recipe."""
        add_purchase(burger["bun_dough"], "0.80")

        result = _cost(data_source, burger["burger"])

        assert result.lines[1].cost == Decimal("0.20")
        assert result.total_cost == Decimal("1.88")

    def test_unknown_recipe_raises(self, data_source):
        with pytest.raises(RecipeNotFound):
            CostingRequest(data_source).cost_recipe(424242)


class TestCycleDetection:
    """Tests for cyclic sub-recipe graphs."""

    def test_self_reference(self, make_item, make_recipe, add_line, data_source):
        """Given A contains A, Then A is cyclic and its other lines are still summed."""
        oil = make_item("Oil", cost_price="2.00")
        recipe = make_recipe("Mother Sauce", is_sub_recipe=True)
        add_line(recipe, "1", "l", item=oil)
        add_line(recipe, "1", "portion", sub_recipe=recipe)

        result = _cost(data_source, recipe)

        assert result.cyclic is True
        assert result.total_cost == Decimal("2.00")
        assert result.is_exact is False
        assert result.lines[1].cyclic is True
        assert result.lines[1].cost == Decimal("0")

    def test_three_cycle_detected_for_every_member(
        self, make_item, make_recipe, add_line, data_source
    ):
        """Given A -> B -> C -> A, Then each independent request reports cyclic."""
        salt = make_item("Salt", cost_price="1.00")
        a = make_recipe("A", is_sub_recipe=True)
        b = make_recipe("B", is_sub_recipe=True)
        c = make_recipe("C", is_sub_recipe=True)
        for recipe, child in ((a, b), (b, c), (c, a)):
            add_line(recipe, "1", "kg", item=salt)
            add_line(recipe, "1", "portion", sub_recipe=child)

        for recipe in (a, b, c):
            result = _cost(data_source, recipe)
            assert result.cyclic is True
            # Only the recipe's own item line is outside the cyclic branch
            assert result.total_cost == Decimal("1.00")

    def test_three_cycle_in_one_batch(self, make_item, make_recipe, add_line, data_source):
        """Cyclic results are not memoized, so batch order doesn't matter."""
        a = make_recipe("A", is_sub_recipe=True)
        b = make_recipe("B", is_sub_recipe=True)
        c = make_recipe("C", is_sub_recipe=True)
        add_line(a, "1", "portion", sub_recipe=b)
        add_line(b, "1", "portion", sub_recipe=c)
        add_line(c, "1", "portion", sub_recipe=a)

        request = CostingRequest(data_source)
        batch = request.cost_many([a.id, b.id, c.id])

        assert batch.failures == {}
        assert all(batch.results[r.id].cyclic for r in (a, b, c))
        assert request.memo_size == 0

    def test_diamond_is_not_a_cycle(self, make_item, make_recipe, add_line, data_source):
        """Given Top uses Left and Right, both using Base, Then nothing is cyclic."""
        flour = make_item("Flour", cost_price="1.00")
        base = make_recipe("Base", is_sub_recipe=True)
        add_line(base, "1", "kg", item=flour)
        left = make_recipe("Left", is_sub_recipe=True)
        add_line(left, "1", "portion", sub_recipe=base)
        right = make_recipe("Right", is_sub_recipe=True)
        add_line(right, "1", "portion", sub_recipe=base)
        top = make_recipe("Top")
        add_line(top, "1", "portion", sub_recipe=left)
        add_line(top, "1", "portion", sub_recipe=right)

        result = _cost(data_source, top)

        assert result.cyclic is False
        assert result.total_cost == Decimal("2.00")

    def test_cycle_is_logged(self, make_recipe, add_line, data_source, caplog):
        recipe = make_recipe("Loop", is_sub_recipe=True)
        add_line(recipe, "1", "portion", sub_recipe=recipe)

        with caplog.at_level(logging.WARNING):
            _cost(data_source, recipe)

        assert "resolve_recipe_cost: cyclic_reference" in caplog.text


class TestMemoization:
    """Tests for request-scoped memoization."""

    @pytest.fixture
    def menu_with_shared_stock(self, make_item, make_recipe, add_line):
        bones = make_item("Veal Bones", cost_price="3.00")
        stock = make_recipe("Veal Stock", yield_quantity="10", yield_unit="l", is_sub_recipe=True)
        add_line(stock, "5", "kg", item=bones)

        menu = []
        for i in range(50):
            dish = make_recipe(f"Dish {i:02d}")
            add_line(dish, "0.5", "l", sub_recipe=stock)
            menu.append(dish)
        return menu

    def test_shared_sub_recipe_computed_once(self, menu_with_shared_stock, data_source):
        """Given 50 dishes sharing one stock, Then its item cost is resolved once."""
        with patch(
            "src.services.costing.cost_source.resolve_unit_cost",
            wraps=cost_source.resolve_unit_cost,
        ) as spy:
            batch = CostingRequest(data_source).cost_many([d.id for d in menu_with_shared_stock])

        assert spy.call_count == 1
        assert len(batch.results) == 50
        assert all(r.total_cost == Decimal("0.75") for r in batch.results.values())

    def test_memo_not_shared_across_requests(self, menu_with_shared_stock, data_source):
        dish_ids = [d.id for d in menu_with_shared_stock[:3]]
        with patch(
            "src.services.costing.cost_source.resolve_unit_cost",
            wraps=cost_source.resolve_unit_cost,
        ) as spy:
            CostingRequest(data_source).cost_many(dish_ids)
            CostingRequest(data_source).cost_many(dish_ids)

        assert spy.call_count == 2

    def test_new_request_sees_new_purchase(
        self, make_item, make_recipe, add_line, add_purchase, data_source
    ):
        """Costs memoized in one request never hide a later receipt."""
        cheese = make_item("Cheese", cost_price="10.00")
        recipe = make_recipe("Toastie")
        add_line(recipe, "0.1", "kg", item=cheese)

        first = _cost(data_source, recipe)
        add_purchase(cheese, "12.00")
        second = _cost(data_source, recipe)

        assert first.total_cost == Decimal("1.00")
        assert second.total_cost == Decimal("1.20")


class TestMissingData:
    """Tests for missing cost and yield data."""

    def test_missing_item_cost_counted(self, make_item, make_recipe, add_line, data_source):
        """Given an item with no cost data, Then its line is zero and counted."""
        known = make_item("Rice", cost_price="2.00")
        unknown = make_item("Kombu")
        recipe = make_recipe("Sushi Rice")
        add_line(recipe, "1", "kg", item=known)
        add_line(recipe, "0.01", "kg", item=unknown)

        result = _cost(data_source, recipe)

        assert result.lines[1].cost == Decimal("0")
        assert result.lines[1].missing_cost is True
        assert result.missing_cost_count >= 1
        assert result.total_cost == Decimal("2.00")
        assert result.is_exact is False

    def test_missing_count_sums_through_sub_recipes(
        self, make_item, make_recipe, add_line, data_source
    ):
        unknown = make_item("Unknown Spice")
        rub = make_recipe("Rub", yield_quantity="1", yield_unit="portion", is_sub_recipe=True)
        add_line(rub, "1", "g", item=unknown)
        dish = make_recipe("Ribs")
        add_line(dish, "1", "portion", sub_recipe=rub)
        add_line(dish, "1", "portion", sub_recipe=rub)
        add_line(dish, "1", "g", item=unknown)

        result = _cost(data_source, dish)

        assert result.missing_cost_count == 3

    def test_duplicate_warnings_collapsed(self, make_item, make_recipe, add_line, data_source):
        unknown = make_item("Unknown Spice")
        rub = make_recipe("Rub", is_sub_recipe=True)
        add_line(rub, "1", "g", item=unknown)
        dish = make_recipe("Ribs")
        add_line(dish, "1", "portion", sub_recipe=rub)
        add_line(dish, "2", "portion", sub_recipe=rub)

        result = _cost(data_source, dish)

        assert len(result.warnings) == len(set(result.warnings))
        assert len(result.warnings) == 1

    @pytest.mark.parametrize("yield_quantity", ["0", None])
    def test_unusable_yield_is_missing_cost(
        self, make_item, make_recipe, add_line, data_source, yield_quantity
    ):
        """Given a zero or missing yield, Then per-unit cost is zero, not an error."""
        flour = make_item("Flour", cost_price="5.00")
        recipe = make_recipe("Broken Dough", yield_quantity=yield_quantity)
        add_line(recipe, "1", "kg", item=flour)

        result = _cost(data_source, recipe)

        assert result.total_cost == Decimal("5.00")
        assert result.cost_per_yield_unit == Decimal("0")
        assert result.missing_cost_count == 1
        assert any("no usable yield" in w for w in result.warnings)


class TestInvalidLines:
    """Tests for lines that fail reference validation."""

    def test_invalid_lines_skipped_and_reported(
        self, make_item, make_recipe, add_line, data_source
    ):
        flour = make_item("Flour", cost_price="1.00")
        sugar = make_item("Sugar", cost_price="2.00")
        sub = make_recipe("Crumble", is_sub_recipe=True)
        recipe = make_recipe("Pie")
        good = add_line(recipe, "1", "kg", item=flour)
        both = add_line(recipe, "1", "kg", item=sugar, sub_recipe=sub)
        neither = add_line(recipe, "1", "kg")
        negative_waste = add_line(recipe, "1", "kg", item=sugar, waste_factor="-0.1")

        result = _cost(data_source, recipe)

        assert result.total_cost == Decimal("1.00")
        assert [line.line_id for line in result.lines] == [good.id]
        assert set(result.invalid_line_ids) == {both.id, neither.id, negative_waste.id}
        assert result.is_exact is False
        assert len(result.warnings) == 3

    def test_invalid_lines_reported_through_sub_recipes(
        self, make_recipe, add_line, data_source
    ):
        sub = make_recipe("Filling", is_sub_recipe=True)
        bad = add_line(sub, "1", "kg")
        recipe = make_recipe("Tart")
        add_line(recipe, "1", "portion", sub_recipe=sub)

        result = _cost(data_source, recipe)

        assert result.invalid_line_ids == (bad.id,)


class TestTraversalCeilings:
    """Tests for depth and expansion ceilings."""

    def test_chain_within_depth_limit(self, make_item, make_recipe, add_line, data_source):
        chain = _chain(make_item, make_recipe, add_line, 3)

        result = _cost(data_source, chain[0], max_depth=3)

        assert result.total_cost == Decimal("1.00")

    def test_chain_past_depth_limit_raises(self, make_item, make_recipe, add_line, data_source):
        """Given a 5-level chain and max depth 3, Then the request fails loudly."""
        chain = _chain(make_item, make_recipe, add_line, 5)

        with pytest.raises(TraversalLimitExceeded) as exc_info:
            _cost(data_source, chain[0], max_depth=3)

        error = exc_info.value
        assert error.limit_kind == "depth"
        assert error.limit == 3
        assert error.path == [r.id for r in chain[:4]]
        assert error.recipe_id == chain[3].id

    def test_memo_hit_respects_depth_limit(self, make_item, make_recipe, add_line, data_source):
        """A memoized deep subtree fails the same way a fresh walk would."""
        chain = _chain(make_item, make_recipe, add_line, 3)
        top = make_recipe("Top")
        add_line(top, "1", "portion", sub_recipe=chain[0])

        request = CostingRequest(data_source, max_depth=3)
        batch = request.cost_many([chain[0].id, top.id])

        assert chain[0].id in batch.results
        assert isinstance(batch.failures[top.id], TraversalLimitExceeded)

        with pytest.raises(TraversalLimitExceeded):
            _cost(data_source, top, max_depth=3)

    def test_fan_out_past_expansion_limit_raises(
        self, make_item, make_recipe, add_line, data_source
    ):
        salt = make_item("Salt", cost_price="1.00")
        top = make_recipe("Tasting Menu")
        for i in range(5):
            course = make_recipe(f"Course {i}", is_sub_recipe=True)
            add_line(course, "1", "kg", item=salt)
            add_line(top, "1", "portion", sub_recipe=course)

        with pytest.raises(TraversalLimitExceeded) as exc_info:
            _cost(data_source, top, max_expansions=3)

        assert exc_info.value.limit_kind == "expansions"

    def test_repeated_sub_recipe_counts_once(
        self, make_item, make_recipe, add_line, data_source
    ):
        salt = make_item("Salt", cost_price="1.00")
        garnish = make_recipe("Garnish", is_sub_recipe=True)
        add_line(garnish, "1", "kg", item=salt)
        top = make_recipe("Platter")
        for _ in range(5):
            add_line(top, "1", "portion", sub_recipe=garnish)

        result = _cost(data_source, top, max_expansions=2)

        assert result.total_cost == Decimal("5.00")

    def test_expansion_limit_is_per_top_level_recipe(
        self, make_item, make_recipe, add_line, data_source
    ):
        first = _chain(make_item, make_recipe, add_line, 2, prefix="First")
        second = _chain(make_item, make_recipe, add_line, 2, prefix="Second")

        batch = CostingRequest(data_source, max_expansions=2).cost_many(
            [first[0].id, second[0].id]
        )

        assert batch.failures == {}

    @pytest.fixture
    def dish_over_shared_base(self, make_recipe, add_line):
        """Dish -> Shared Base -> three leaf preparations (5 recipes)."""
        shared = make_recipe("Shared Base", is_sub_recipe=True)
        for i in range(3):
            leaf = make_recipe(f"Leaf {i}", is_sub_recipe=True)
            add_line(shared, "1", "portion", sub_recipe=leaf)
        dish = make_recipe("Dish")
        add_line(dish, "1", "portion", sub_recipe=shared)
        return shared, dish

    @pytest.mark.parametrize("max_expansions, fails", [(4, True), (5, False)])
    def test_memo_hit_counts_toward_expansion_limit(
        self, dish_over_shared_base, data_source, max_expansions, fails
    ):
        """Given Shared Base costed first in a batch, Then Dish fails exactly as it would alone."""
        shared, dish = dish_over_shared_base

        batch = CostingRequest(data_source, max_expansions=max_expansions).cost_many(
            [shared.id, dish.id]
        )

        assert shared.id in batch.results
        assert (dish.id in batch.failures) is fails
        if fails:
            assert batch.failures[dish.id].limit_kind == "expansions"
            with pytest.raises(TraversalLimitExceeded):
                _cost(data_source, dish, max_expansions=max_expansions)
        else:
            assert _cost(data_source, dish, max_expansions=max_expansions) == (
                batch.results[dish.id]
            )

    @pytest.mark.parametrize("shared_first", [True, False])
    def test_memo_hit_skips_recipes_already_expanded(
        self, make_recipe, add_line, data_source, shared_first
    ):
        """Given Dish uses Leaf directly and via Shared, Then Leaf counts once in any order."""
        leaf = make_recipe("Leaf", is_sub_recipe=True)
        shared = make_recipe("Shared", is_sub_recipe=True)
        add_line(shared, "1", "portion", sub_recipe=leaf)
        dish = make_recipe("Dish")
        add_line(dish, "1", "portion", sub_recipe=leaf, sort_order=1)
        add_line(dish, "1", "portion", sub_recipe=shared, sort_order=2)

        order = [shared.id, dish.id] if shared_first else [dish.id, shared.id]
        batch = CostingRequest(data_source, max_expansions=3).cost_many(order)

        assert batch.failures == {}

    def test_batch_continues_after_failure(self, make_item, make_recipe, add_line, data_source):
        deep = _chain(make_item, make_recipe, add_line, 4, prefix="Deep")
        shallow = make_recipe("Shallow")

        batch = CostingRequest(data_source, max_depth=2).cost_many([deep[0].id, shallow.id])

        assert set(batch.failures) == {deep[0].id}
        assert batch.results[shallow.id].total_cost == Decimal("0")

    def test_ceilings_default_from_config(
        self, make_item, make_recipe, add_line, data_source, monkeypatch
    ):
        monkeypatch.setenv("KITCHEN_LEDGER_MAX_RECIPE_DEPTH", "2")
        chain = _chain(make_item, make_recipe, add_line, 3)

        with pytest.raises(TraversalLimitExceeded):
            _cost(data_source, chain[0])

    def test_invalid_ceiling_rejected(self, data_source):
        with pytest.raises(ValidationError):
            CostingRequest(data_source, max_depth=0)


class TestIdempotence:
    """Tests for repeatable results."""

    def test_two_requests_yield_identical_results(self, burger, data_source):
        first = _cost(data_source, burger["burger"])
        second = _cost(data_source, burger["burger"])

        assert first == second

    def test_repeat_within_request_uses_memo(self, burger, data_source):
        request = CostingRequest(data_source)

        first = request.cost_recipe(burger["burger"].id)
        second = resolve_recipe_cost(burger["burger"].id, request)

        assert first is second
