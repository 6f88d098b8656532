"""Custom exceptions for caching context."""

from typing import Iterable, Optional


class ResourceFetchError(Exception):
    """
    Exception raised when a resource cannot be fetched.

    Fatal for every target depending on the resource.

    Attributes:
        message: Error description
        resource_id: Identifier of the resource being fetched
        source: Where the resource was fetched from (URL or script path)
        original_error: The underlying error, if any
    """

    def __init__(
        self,
        message: str,
        resource_id: Optional[str] = None,
        source: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.resource_id = resource_id
        self.source = source
        self.original_error = original_error

        parts = [message]

        if resource_id and source:
            parts.append(f"\nResource: {resource_id}")
            parts.append(f"Source: {source}")

        if original_error:
            parts.append(f"\nOriginal error: {str(original_error)}")

        super().__init__("\n".join(parts))


class UnknownResourceError(KeyError):
    """Raised when a resource id is not defined for the cache."""

    def __init__(self, resource_id: str, available: Iterable[str]):
        self.resource_id = resource_id
        self.available = sorted(available)
        super().__init__(
            f"Resource '{resource_id}' not defined. Available resources: {self.available}"
        )
