"""
Base clause builder.

A clause builder holds an optional MongoDB expression (a plain dict) and
grows it through subtype-specific combinators. Expressions are treated as
immutable: combining always produces a new dict, so a clone may share the
current expression with its original safely.

This module is part of MDB_KIT.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from ..exceptions import EmptyBuilderError

Expression = dict[str, Any]
Combinator = Callable[[Expression, Expression], Expression]

B = TypeVar("B", bound="ClauseBuilder")


def resolve_expression(value: Any) -> Any:
    """
    Return the expression carried by ``value``.

    Clause builders are built, everything else is returned unchanged, so any
    API taking an expression also takes a builder.
    """
    if isinstance(value, ClauseBuilder):
        return value.build()
    return value


class ClauseBuilder(ABC):
    """
    Accumulates a MongoDB expression.

    Subclasses define how two expressions merge (``merge``) and what ``build``
    returns while nothing was added (``default_expression``). Every mutator
    returns ``self`` so calls chain, and because the mutators live on the base
    class and return the receiver, chaining keeps the concrete subtype.

    Example:
        clause = FilterClause(eq("status", "active")).and_(gt("age", 18))
        collection.find_many(clause)
    """

    def __init__(self, *expressions: Any) -> None:
        """
        Create a builder, empty or seeded.

        Args:
            *expressions: Initial expressions (dicts or builders). One
                expression is stored as is; several are folded left with
                the subtype merge rule.
        """
        self._current: Expression | None = None
        for expression in expressions:
            self.add(expression)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def default_expression(self) -> Expression | None:
        """Expression returned by build() on an empty builder, None if there is none."""
        return None

    @abstractmethod
    def merge(self, current: Expression, new: Expression) -> Expression:
        """Combine the current expression with a new one."""

    def normalize(self, expression: Any) -> Expression:
        """Convert an incoming expression to the stored form."""
        if not isinstance(expression, Mapping):
            raise TypeError(
                f"{type(self).__name__} expects a mapping expression, "
                f"got {type(expression).__name__}"
            )
        return dict(expression)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self) -> Expression:
        """
        Return the accumulated expression.

        Returns:
            The current expression, or the subtype default when empty

        Raises:
            EmptyBuilderError: If the builder is empty and has no default
        """
        if self._current is not None:
            return self._current
        default = self.default_expression()
        if default is None:
            raise EmptyBuilderError(
                f"Cannot build an empty {type(self).__name__}: nothing was added "
                f"and there is no default expression",
                builder=type(self).__name__,
            )
        return default

    def set(self: B, expression: Any) -> B:
        """Replace the current expression (None empties the builder)."""
        expression = resolve_expression(expression)
        self._current = None if expression is None else self.normalize(expression)
        return self

    def add(self: B, expression: Any, operator: Combinator | None = None) -> B:
        """
        Add an expression.

        When the builder is empty the expression becomes current unchanged;
        otherwise ``operator(current, expression)`` replaces it.

        Args:
            expression: Expression (or builder) to add
            operator: Binary combinator; defaults to the subtype merge rule
        """
        new = self.normalize(resolve_expression(expression))
        if self._current is None:
            self._current = new
        else:
            self._current = (operator or self.merge)(self._current, new)
        return self

    def is_empty(self) -> bool:
        """True while nothing has been added or set."""
        return self._current is None

    def clone(self: B) -> B:
        """Return an independent builder with the same current expression."""
        other = type(self).__new__(type(self))
        other.__dict__.update(self.__dict__)
        return other

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._current!r})"
