"""
Fluent clause builders.

Each builder accumulates one kind of MongoDB expression and yields it with
build(). The helper modules are imported as namespaces so their operator
names do not shadow each other:

    from mdb_kit.builders import FilterClause, UpdateClause, filters, updates

    clause = FilterClause(filters.eq("status", "active")).and_(filters.gt("age", 18))
    update = UpdateClause(updates.set_("seen", True), updates.inc("visits"))
"""

from . import filters, indexes, projections, sorts, updates
from .base import ClauseBuilder, Expression, resolve_expression
from .filters import FilterClause
from .indexes import IndexClause
from .projections import ProjectionClause
from .sorts import SortClause
from .updates import UpdateClause

__all__ = [
    "ClauseBuilder",
    "Expression",
    "resolve_expression",
    "FilterClause",
    "SortClause",
    "ProjectionClause",
    "IndexClause",
    "UpdateClause",
    "filters",
    "sorts",
    "projections",
    "indexes",
    "updates",
]
