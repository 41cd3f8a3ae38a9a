"""
Constants for MDB_KIT.

This module contains all shared constants used across the codebase to avoid
magic numbers and improve maintainability.
"""

from typing import Final

# ============================================================================
# DATABASE CONSTANTS
# ============================================================================

# Connection pool defaults
DEFAULT_MAX_POOL_SIZE: Final[int] = 50
"""Default maximum MongoDB connection pool size."""

DEFAULT_MIN_POOL_SIZE: Final[int] = 10
"""Default minimum MongoDB connection pool size."""

DEFAULT_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 5000
"""Default server selection timeout in milliseconds."""

DEFAULT_MAX_IDLE_TIME_MS: Final[int] = 45000
"""Default maximum idle time before closing connections (milliseconds)."""

MIN_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 1000
"""Lowest accepted server selection timeout (milliseconds)."""

APP_NAME: Final[str] = "MDB_KIT"
"""Application name reported to the server in the handshake."""

# ============================================================================
# DOCUMENT CONSTANTS
# ============================================================================

ID_FIELD: Final[str] = "_id"
"""Primary key field of every MongoDB document."""

ID_ATTRIBUTE: Final[str] = "id"
"""Attribute name used for the primary key on typed documents."""

# ============================================================================
# CLAUSE CONSTANTS
# ============================================================================

ASCENDING: Final[int] = 1
"""Ascending sort/index direction."""

DESCENDING: Final[int] = -1
"""Descending sort/index direction."""

ACCUMULATING_UPDATE_OPERATORS: Final[frozenset] = frozenset({"$push", "$addToSet"})
"""Update operators whose values accumulate instead of overwriting when merged."""

# ============================================================================
# REGISTRY CONSTANTS
# ============================================================================

DEFAULT_REGISTRY_REPLACE: Final[bool] = True
"""Whether re-loading a type or name replaces the previous registry entry."""

DEFAULT_UUID_AS_STRING: Final[bool] = False
"""Whether document codecs store UUID values as strings instead of BSON binary."""
