"""
MDB_KIT - MongoDB convenience kit

Fluent clause builders and a typed collection registry on top of pymongo.
"""

# Clause builders
from .builders import (FilterClause, IndexClause, ProjectionClause,
                       SortClause, UpdateClause)
# Configuration
from .config import KitConfig
# Database layer
from .database import (CollectionHandle, ConnectionManager, Document,
                       MultiDatabaseConnection, Registry,
                       SingleDatabaseConnection)
# Errors
from .exceptions import (AlreadyRegisteredError, ConfigurationError, ConsistencyError,
                         EmptyBuilderError, InitializationError, InsertionError,
                         MdbKitError, NotRegisteredError)

__version__ = "0.1.0"

__all__ = [
    # Builders
    "FilterClause",
    "SortClause",
    "ProjectionClause",
    "IndexClause",
    "UpdateClause",
    # Database
    "CollectionHandle",
    "Registry",
    "Document",
    "ConnectionManager",
    "SingleDatabaseConnection",
    "MultiDatabaseConnection",
    # Config
    "KitConfig",
    # Errors
    "MdbKitError",
    "EmptyBuilderError",
    "NotRegisteredError",
    "AlreadyRegisteredError",
    "InsertionError",
    "ConsistencyError",
    "InitializationError",
    "ConfigurationError",
]
