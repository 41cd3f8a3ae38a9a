"""
Custom exceptions for MDB_KIT.

Every error raised by the kit itself derives from MdbKitError, which keeps
backward compatibility with RuntimeError. Errors raised by pymongo or by
document decoding are never wrapped and reach the caller unchanged.
"""

from typing import Any, Dict, Optional


class MdbKitError(RuntimeError):
    """
    Base exception for MDB_KIT errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (collection_name,
                 builder, key, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class EmptyBuilderError(MdbKitError):
    """
    Raised when build() is called on an empty clause builder that has no
    default expression (index and update builders).

    Attributes:
        builder: Name of the builder class
    """

    def __init__(
        self,
        message: str,
        builder: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if builder:
            context["builder"] = builder
        super().__init__(message, context=context)
        self.builder = builder


class NotRegisteredError(MdbKitError, LookupError):
    """
    Raised when a registry lookup (by document type or by name) finds nothing.

    This signals a configuration mistake, never a transient condition.

    Attributes:
        key: The document type or name that was looked up
    """

    def __init__(
        self,
        message: str,
        key: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if key is not None:
            context["key"] = getattr(key, "__name__", key)
        super().__init__(message, context=context)
        self.key = key


class AlreadyRegisteredError(MdbKitError):
    """
    Raised by a registry configured to reject duplicates when a document type
    or a collection name is loaded a second time.

    Attributes:
        key: The duplicated document type or name
    """

    def __init__(
        self,
        message: str,
        key: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if key is not None:
            context["key"] = getattr(key, "__name__", key)
        super().__init__(message, context=context)
        self.key = key


class InsertionError(MdbKitError):
    """
    Raised when an insert is acknowledged but no generated identifier is
    reported back.

    Attributes:
        collection_name: Collection the insert targeted
    """

    def __init__(
        self,
        message: str,
        collection_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if collection_name:
            context["collection_name"] = collection_name
        super().__init__(message, context=context)
        self.collection_name = collection_name


class ConsistencyError(MdbKitError):
    """
    Raised when an operation that must yield a document (find-and-upsert)
    returns nothing.

    Attributes:
        collection_name: Collection the operation targeted
        operation: Name of the operation
    """

    def __init__(
        self,
        message: str,
        collection_name: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if collection_name:
            context["collection_name"] = collection_name
        if operation:
            context["operation"] = operation
        super().__init__(message, context=context)
        self.collection_name = collection_name
        self.operation = operation


class InitializationError(MdbKitError):
    """
    Raised when opening the MongoDB connection fails.

    Attributes:
        message: Error message
        mongo_uri: MongoDB connection URI (if available)
        db_name: Database name (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        mongo_uri: Optional[str] = None,
        db_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the initialization error.

        Args:
            message: Error message
            mongo_uri: MongoDB connection URI (if available)
            db_name: Database name (if available)
            context: Additional context information
        """
        context = context or {}
        if mongo_uri:
            context["mongo_uri"] = mongo_uri
        if db_name:
            context["db_name"] = db_name
        super().__init__(message, context=context)
        self.mongo_uri = mongo_uri
        self.db_name = db_name


class ConfigurationError(MdbKitError):
    """
    Raised when configuration is invalid or missing.

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the configuration error.

        Args:
            message: Error message
            config_key: Configuration key that caused the error (if available)
            config_value: Configuration value that caused the error (if available)
            context: Additional context information
        """
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value
