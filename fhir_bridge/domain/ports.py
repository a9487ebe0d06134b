"""Domain Ports - Abstract Contracts for Translation.

This module defines the Port interfaces (abstract contracts) the translation
core depends on, together with the error hierarchy and the Result type used
to report per-item outcomes from batch translation.

Architecture:
    - Pure abstract interfaces with zero infrastructure dependencies
    - Lookup adapters (in-memory, DuckDB, ...) implement EntityLookupPort
    - Translators implement the bidirectional Translator contract
    - Reference translators are the only callers of lookup ports
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

# Type variables for generic ports and results
T = TypeVar('T')
E = TypeVar('E')
D = TypeVar('D')
W = TypeVar('W')


# ============================================================================
# Result Type for Success/Failure Communication
# ============================================================================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Result type for communicating success or failure without exceptions.

    Batch callers use this to account for every item of a translation run
    without a single bad resource aborting the whole batch.

    Attributes:
        success: True if the operation succeeded, False otherwise
        value: The successful result value (only present if success=True)
        error: Error message (only present if success=False)
        error_type: Name of the exception class that caused the failure
        error_details: Additional error context (resource type, id, index)

    Example:
        ```python
        for result in service.translate_many(entities):
            if result.is_success():
                publish(result.value)
            else:
                logger.warning(result.error, extra=result.error_details)
        ```
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    error_details: Optional[dict] = None

    @classmethod
    def success_result(cls, value: T) -> 'Result[T]':
        """Create a successful result.

        Parameters:
            value: The successful result value

        Returns:
            Result: Success result with the value
        """
        return cls(success=True, value=value)

    @classmethod
    def failure_result(
        cls,
        error: Union[str, Exception],
        error_type: Optional[str] = None,
        error_details: Optional[dict] = None
    ) -> 'Result[T]':
        """Create a failure result.

        Parameters:
            error: Error message or exception
            error_type: Type of error (defaults to the exception class name)
            error_details: Additional context

        Returns:
            Result: Failure result with error information
        """
        error_message = str(error) if isinstance(error, Exception) else error
        error_type_name = error_type or (
            type(error).__name__ if isinstance(error, Exception) else "UnknownError"
        )

        return cls(
            success=False,
            value=None,
            error=error_message,
            error_type=error_type_name,
            error_details=error_details or {}
        )

    def is_success(self) -> bool:
        """Check if result is successful."""
        return self.success

    def is_failure(self) -> bool:
        """Check if result is a failure."""
        return not self.success


# ============================================================================
# Custom Exception Hierarchy
# ============================================================================

class TranslationError(Exception):
    """Base exception for all translation-related errors."""
    pass


class InvalidReferenceTypeError(TranslationError, ValueError):
    """Raised when a reference's type tag does not match the expected kind.

    This is a caller contract violation: the reference was handed to a
    translator for a different resource type. It is never retried and never
    downgraded to an absent value.

    Attributes:
        expected_type: Resource type the translator handles
        actual_type: Resource type carried by the reference
        reference: The offending reference target, if any
    """

    def __init__(
        self,
        expected_type: str,
        actual_type: str,
        reference: Optional[str] = None
    ):
        super().__init__(
            f"Reference must be of type {expected_type} but was of type {actual_type}"
        )
        self.expected_type = expected_type
        self.actual_type = actual_type
        self.reference = reference


class LookupPortError(TranslationError):
    """Raised by lookup adapters when the backing store fails.

    A lookup miss is not an error; this exception signals that the store
    itself could not answer.

    Attributes:
        operation: The store operation that failed (get, create, update, ...)
        details: Additional error details
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message)
        self.operation = operation
        self.details = details or {}


class UnsupportedResourceError(TranslationError):
    """Raised when no translator is registered for a resource or entity type.

    Attributes:
        resource_type: The wire tag or entity class name that was requested
    """

    def __init__(self, message: str, resource_type: Optional[str] = None):
        super().__init__(message)
        self.resource_type = resource_type


# ============================================================================
# Lookup Ports
# ============================================================================

class EntityLookupPort(ABC, Generic[E]):
    """Abstract contract for resolving an identifier to a domain entity.

    One port exists per entity kind. Implementations must be safe for
    concurrent reads and must return None, not raise, for identifiers they
    do not know. Any other failure propagates to the caller unchanged.

    Example:
        ```python
        class PatientDirectory(EntityLookupPort[Patient]):
            def get(self, identifier: str) -> Optional[Patient]:
                return self._rows.get(identifier)
        ```
    """

    @abstractmethod
    def get(self, identifier: str) -> Optional[E]:
        """Look up an entity by its uuid.

        Parameters:
            identifier: The entity's globally unique identifier

        Returns:
            The entity, or None when it is unknown
        """
        pass


class EntityStorePort(EntityLookupPort[E]):
    """Lookup port that can also persist entities."""

    @abstractmethod
    def create(self, entity: E) -> E:
        """Store a new entity.

        Raises:
            LookupPortError: If an entity with the same uuid already exists
        """
        pass

    @abstractmethod
    def update(self, entity: E) -> E:
        """Replace an existing entity.

        Raises:
            LookupPortError: If no entity with that uuid exists
        """
        pass


# ============================================================================
# Translator Contract
# ============================================================================

class Translator(ABC, Generic[D, W]):
    """Bidirectional conversion between a domain value and its wire form.

    Both directions propagate None: an absent input yields an absent output.
    Composite translators depend on this capability rather than on concrete
    translator classes.
    """

    @abstractmethod
    def to_wire(self, value: Optional[D]) -> Optional[W]:
        pass

    @abstractmethod
    def to_domain(self, value: Optional[W]) -> Optional[D]:
        pass


class UpdatableTranslator(Translator[D, W]):
    """Translator whose inbound direction can merge onto an existing entity.

    ``to_domain(resource)`` creates a new entity; ``to_domain(resource,
    existing)`` returns a copy of ``existing`` with the resource's values
    applied. The caller's entity is never mutated.
    """

    @abstractmethod
    def to_domain(self, value: Optional[W], existing: Optional[D] = None) -> Optional[D]:
        pass
