"""Exceptions raised by query handler registration, resolution and execution."""


class QueryHandlerError(Exception):
    """Base class for query handler errors."""


class InvalidNameError(QueryHandlerError, ValueError):
    """Raised when a custom query handler name is not made of ASCII letters."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Custom query handler names may only contain [a-zA-Z], got {name!r}")


class DuplicateNameError(QueryHandlerError, ValueError):
    """Raised when a query handler name is already taken."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'A custom query handler named "{name}" already exists')


class UnknownEngineError(QueryHandlerError, LookupError):
    """Raised when a selector names an engine that is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'Query set to use "{name}", but no query handler of that name was found')


class UnsupportedQueryError(QueryHandlerError):
    """Raised when a query handler does not implement the requested kind of query."""


class RemoteExecutionError(QueryHandlerError):
    """Raised when code running inside the page, or the connection to it, fails."""


class WaitTimeoutError(RemoteExecutionError):
    """Raised when waiting for a selector exceeds its timeout."""
