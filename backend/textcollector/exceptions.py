"""
TextCollector — Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions for the snippet store and its entry points.
How:   Each exception carries a human-readable message and an optional
       context dict. Global exception handlers (registered in main.py) turn
       them into structured JSON error responses; the CLI prints the message.
Who:   Raised by services; caught by the FastAPI handlers, the CLI and the
       Add Snippet command.

Exception Hierarchy:
    TextCollectorError (base)
    ├── ValidationError          → 400 Bad Request
    ├── NotFoundError            → 404 Not Found
    ├── DatabaseError            → 500 Internal Server Error
    │   └── PersistenceError     → 500 (a commit was rejected by the store)
    └── StoreUnavailableError    → the data file could not be opened (fatal at startup)

Propagation:
    Service methods never swallow a persistence failure. The only place that
    converts one into a value is the Add Snippet command, whose contract is
    to answer with a failure message.
"""

from typing import Any, Dict, Optional


class TextCollectorError(Exception):
    """
    Base exception for all TextCollector application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where noted)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TextCollectorError):
    """
    Raised when caller input fails a business rule.

    When:    Blank tag name, malformed import document, unknown list filter.
    HTTP:    400 Bad Request (FastAPI's own schema validation stays 422)
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(TextCollectorError):
    """
    Raised when a requested snippet (or other resource) does not exist.

    SQLAlchemy returns None for missing rows; the service layer converts
    that into this exception so routes never check for None.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(TextCollectorError):
    """
    Raised when a database read fails (fetch, count and lookup queries).

    When:    services.persistence.read_guard wraps a failed query.

    The API response message stays generic; details go to the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PersistenceError(DatabaseError):
    """
    Raised when the backing store rejects a write or a commit.

    What:    Disk full, locked or corrupt file, constraint or schema mismatch.
    State:   The transaction was rolled back; nothing from it was written.

    Attributes:
        reason:  Description of the underlying driver error. The Add Snippet
                 command includes it in its failure message.
    """

    def __init__(
        self,
        reason: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["reason"] = reason
        if operation:
            ctx["operation"] = operation
        super().__init__(message=f"Could not save changes: {reason}", context=ctx)
        self.reason = reason
        self.operation = operation


class StoreUnavailableError(TextCollectorError):
    """
    Raised when the data file cannot be opened or its schema created.

    Terminal: the API lifespan and the CLI let it end the process.
    """

    def __init__(
        self,
        url: str,
        reason: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["url"] = url
        ctx["reason"] = reason
        super().__init__(
            message=f"Unable to open the snippet store at {url}: {reason}",
            context=ctx,
        )
        self.url = url
        self.reason = reason
