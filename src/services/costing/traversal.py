"""
Traversal utilities for walking the sub-recipe graph.

VisitPath is the per-call-chain "visiting" set: an immutable ordered path
of recipe IDs. Each recursive call gets its own extended copy, so sibling
branches and concurrent requests never see each other's state.

TraversalGuard enforces the resource ceilings of one top-level recipe: the
depth of the current path and the number of recipe expansions performed.
"""

from typing import FrozenSet, Iterator, Set, Tuple

from src.services.exceptions import TraversalLimitExceeded, ValidationError
from src.utils.validators import validate_positive_number


class VisitPath:
    """Immutable path of recipe IDs from the top-level recipe downward."""

    __slots__ = ("_ids", "_members")

    def __init__(self, ids: Tuple[int, ...] = ()):
        self._ids: Tuple[int, ...] = tuple(ids)
        self._members: FrozenSet[int] = frozenset(self._ids)

    def extend(self, recipe_id: int) -> "VisitPath":
        """Return a new path with recipe_id appended."""
        return VisitPath(self._ids + (recipe_id,))

    @property
    def depth(self) -> int:
        """Number of recipes on the path."""
        return len(self._ids)

    @property
    def ids(self) -> Tuple[int, ...]:
        """Recipe IDs in traversal order."""
        return self._ids

    def __contains__(self, recipe_id: object) -> bool:
        return recipe_id in self._members

    def __iter__(self) -> Iterator[int]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VisitPath):
            return NotImplemented
        return self._ids == other._ids

    def __hash__(self) -> int:
        return hash(self._ids)

    def __repr__(self) -> str:
        return f"VisitPath({' -> '.join(str(rid) for rid in self._ids)})"


EMPTY_PATH = VisitPath()


class TraversalGuard:
    """
    Resource ceilings for resolving one top-level recipe.

    Distinct from the cycle check: a long acyclic chain or a very wide
    graph is still unbounded work, so both depth and the number of recipe
    expansions are capped.
    """

    def __init__(self, max_depth: int, max_expansions: int):
        errors = []
        for value, field_name in ((max_depth, "Max Depth"), (max_expansions, "Max Expansions")):
            is_valid, error = validate_positive_number(value, field_name)
            if not is_valid:
                errors.append(error)
        if errors:
            raise ValidationError(errors)
        self.max_depth = max_depth
        self.max_expansions = max_expansions
        self.expansions = 0
        self._settled: Set[int] = set()

    def enter(self, path: VisitPath) -> None:
        """
        Account for expanding the last recipe on path.

        Args:
            path: Path including the recipe being expanded

        Raises:
            TraversalLimitExceeded: If either ceiling is exceeded
        """
        recipe_id = path.ids[-1]
        if path.depth > self.max_depth:
            raise TraversalLimitExceeded(recipe_id, path.ids, "depth", self.max_depth)

        self.expansions += 1
        if self.expansions > self.max_expansions:
            raise TraversalLimitExceeded(
                recipe_id, path.ids, "expansions", self.max_expansions
            )

    def settle(self, recipe_id: int) -> None:
        """Mark a recipe as resolved (and memoized) under this top-level recipe."""
        self._settled.add(recipe_id)

    def charge_memoized(self, path: VisitPath, subtree: FrozenSet[int]) -> None:
        """
        Account for a memo hit from an earlier top-level recipe.

        Recipes in the memoized subtree that a fresh walk from here would
        still expand are counted, so a batch hits the ceiling exactly where
        a standalone request would.

        Args:
            path: Path including the memoized recipe
            subtree: Distinct recipe IDs of the memoized subtree

        Raises:
            TraversalLimitExceeded: If the expansion ceiling is exceeded
        """
        unsettled = subtree - self._settled
        self._settled |= unsettled
        self.expansions += len(unsettled)
        if self.expansions > self.max_expansions:
            raise TraversalLimitExceeded(
                path.ids[-1], path.ids, "expansions", self.max_expansions
            )
