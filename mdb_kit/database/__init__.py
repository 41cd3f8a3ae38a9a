"""
Database layer.

Provides typed collection handles, the collection registry, codecs and
connection management.
"""

from .codecs import Document, DocumentCodec, default_codec_options
from .collection import CollectionHandle
from .connection import ConnectionManager, MultiDatabaseConnection, SingleDatabaseConnection
from .registry import Registry, RegistryEntry

__all__ = [
    # Handles and registry
    "CollectionHandle",
    "Registry",
    "RegistryEntry",
    # Codecs
    "Document",
    "DocumentCodec",
    "default_codec_options",
    # Connections
    "ConnectionManager",
    "SingleDatabaseConnection",
    "MultiDatabaseConnection",
]
