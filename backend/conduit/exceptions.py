"""
Conduit Backend: Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for the error scenarios of the API.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return Conduit-style JSON error bodies with the right status code.
Who:   Raised by services, dependencies and the query builder.

Exception Hierarchy:
    ConduitError (base)
    ├── ValidationError          → 422 Unprocessable Entity
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── QueryBuildError          → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error

Error Body:
    Conduit clients expect every error as a map of field → messages:
        {"errors": {"email": ["has already been taken"]}}
    `ConduitError.errors` produces that map; 5xx errors never expose their
    message or context to the client.
"""

from typing import Any, Dict, List, Optional


class ConduitError(Exception):
    """
    Base exception for all Conduit application errors.

    Attributes:
        message:  Human-readable error description
        context:  Additional debug info (logged, NOT returned to the client)
    """

    status_code: int = 500
    error_field: str = "body"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    @property
    def errors(self) -> Dict[str, List[str]]:
        """Field → messages map rendered in the response body."""
        return {self.error_field: [self.message]}


class ValidationError(ConduitError):
    """
    Raised when client input fails a business rule.

    What:    The client sent data that can be corrected and resubmitted.
    When:    Blank fields, short passwords, duplicate usernames, empty updates.
    HTTP:    422 Unprocessable Entity (the status the Conduit API uses for
             every input problem, including schema-level ones).

    Either a single `field`/`message` pair or a full `field_errors` map
    may be supplied:

        ValidationError("has already been taken", field="username")
        ValidationError(field_errors={"email": ["can't be blank"],
                                      "password": ["can't be blank"]})
    """

    status_code = 422

    def __init__(
        self,
        message: str = "is invalid",
        field: Optional[str] = None,
        field_errors: Optional[Dict[str, List[str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if field_errors:
            message = "; ".join(
                f"{name} {', '.join(msgs)}" for name, msgs in field_errors.items()
            )
        super().__init__(message=message, context=context)
        self.field = field
        self.field_errors = field_errors or {(field or "body"): [message]}

    @property
    def errors(self) -> Dict[str, List[str]]:
        return self.field_errors


class AuthenticationError(ConduitError):
    """
    Raised when a request lacks valid credentials.

    When:    Missing Authorization header on a protected route, malformed or
             expired token, or a token whose user no longer exists.
    HTTP:    401 Unauthorized
    """

    status_code = 401
    error_field = "token"

    def __init__(
        self,
        message: str = "is missing or invalid",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(ConduitError):
    """
    Raised when an authenticated user acts on a resource they do not own.

    When:    Editing or deleting someone else's article or comment.
    HTTP:    403 Forbidden
    """

    status_code = 403

    def __init__(
        self,
        message: str = "You are not allowed to modify this resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(ConduitError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found
    Body:    {"errors": {"article": ["not found"]}}
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource

    @property
    def errors(self) -> Dict[str, List[str]]:
        return {self.resource: ["not found"]}


class QueryBuildError(ConduitError):
    """
    Raised when a list query cannot be assembled.

    What:    A filter predicate could not be constructed (e.g. a filter kind
             with no registered clause builder).
    HTTP:    500 Internal Server Error (generic body; details logged)

    Assembly is aborted as a whole: no partial statement is ever returned.
    """

    def __init__(
        self,
        message: str = "Could not build the article query",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(ConduitError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. SQL text,
    constraint names and driver errors go to the server log only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
