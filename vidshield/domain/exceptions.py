"""Domain-specific exceptions.

These exceptions represent business rule violations and the failure
modes of the processing pipeline's collaborators (record store,
broadcaster, classifier).
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any


@dataclass(frozen=True)
class ErrorContext:
    """Structured error context using dataclass."""

    entity_type: Optional[str] = None
    entity_id: Optional[Any] = None
    field_name: Optional[str] = None
    invalid_value: Optional[Any] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        result = {}
        if self.entity_type:
            result["entity_type"] = self.entity_type
        if self.entity_id is not None:
            result["entity_id"] = str(self.entity_id)
        if self.field_name:
            result["field_name"] = self.field_name
        if self.invalid_value is not None:
            result["invalid_value"] = self.invalid_value
        if self.extra:
            result.update(self.extra)
        return result


@dataclass(frozen=True)
class StateTransitionInfo:
    """Structured state transition information."""

    from_state: str
    to_state: str
    allowed_states: list[str] = field(default_factory=list)
    entity_type: Optional[str] = None
    entity_id: Optional[Any] = None


class DomainException(Exception):
    """Base exception for all domain-specific errors.

    Provides rich context about what went wrong and where.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Optional[ErrorContext] = None,
    ):
        """Initialize domain exception with rich context.

        Args:
            message: Human-readable error message
            context: Structured error context
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    def __str__(self) -> str:
        ctx = self.context
        parts = [self.message]
        if ctx.entity_type:
            label = ctx.entity_type
            if ctx.entity_id is not None:
                label = f"{label}:{ctx.entity_id}"
            parts.append(f"[{label}]")
        if ctx.field_name:
            parts.append(f"field={ctx.field_name}")
        if ctx.invalid_value is not None:
            parts.append(f"value={ctx.invalid_value!r}")
        return " ".join(parts)


class InvalidValueError(DomainException):
    """Raised when a value falls outside its allowed domain."""

    pass


class BusinessRuleViolation(DomainException):
    """Raised when a business rule is violated."""

    pass


class EntityNotFoundError(DomainException):
    """Raised when an entity cannot be found."""

    def __init__(self, entity_type: str, entity_id: Any, message: Optional[str] = None):
        """Initialize with entity information."""
        message = message or f"{entity_type} with ID {str(entity_id)!r} not found"

        context = ErrorContext(entity_type=entity_type, entity_id=entity_id)

        super().__init__(message, context=context)


class AssetNotFoundError(EntityNotFoundError):
    """Raised when an asset record cannot be located."""

    def __init__(self, asset_id: Any):
        super().__init__("Asset", asset_id)
        self.asset_id = asset_id


class UnauthorizedOperation(DomainException):
    """Raised when an actor is not allowed to perform an operation."""

    def __init__(self, operation: str, reason: str, user_id: Optional[str] = None):
        """Initialize with operation details."""
        message = f"Unauthorized operation '{operation}': {reason}"

        context = ErrorContext(
            entity_type="User",
            entity_id=user_id,
            extra={"operation": operation, "reason": reason},
        )

        super().__init__(message, context=context)


class InvalidStateTransition(BusinessRuleViolation):
    """Raised when an invalid state transition is attempted.

    This protects state machine invariants.
    """

    def __init__(self, transition_info: StateTransitionInfo):
        """Initialize with structured state transition information."""
        message = f"Cannot transition from {transition_info.from_state} to {transition_info.to_state}"
        if transition_info.allowed_states:
            message += f". Allowed from: {', '.join(transition_info.allowed_states)}"

        context = ErrorContext(
            entity_type=transition_info.entity_type,
            entity_id=transition_info.entity_id,
            extra={
                "from_state": transition_info.from_state,
                "to_state": transition_info.to_state,
                "allowed_states": transition_info.allowed_states,
            },
        )

        super().__init__(message, context=context)
        self.transition_info = transition_info


class StorePersistError(DomainException):
    """Raised when the asset record store fails to read or write.

    The pipeline treats this as fatal for the run and forces the asset
    into the failed state.
    """

    def __init__(self, operation: str, asset_id: Any, reason: str):
        message = f"Asset store {operation} failed: {reason}"
        context = ErrorContext(
            entity_type="Asset",
            entity_id=asset_id,
            extra={"operation": operation},
        )
        super().__init__(message, context=context)
        self.operation = operation


class ConcurrentUpdateError(DomainException):
    """Raised when a guarded update finds the record in an unexpected status."""

    def __init__(self, asset_id: Any, expected: str, actual: str):
        message = f"Expected asset status {expected}, found {actual}"
        context = ErrorContext(
            entity_type="Asset",
            entity_id=asset_id,
            extra={"expected_status": expected, "actual_status": actual},
        )
        super().__init__(message, context=context)
        self.expected = expected
        self.actual = actual


class BroadcastError(DomainException):
    """Raised when the event channel is unavailable or rejects a message."""

    def __init__(self, tenant_id: str, event: str, reason: str):
        message = f"Failed to broadcast {event!r} to tenant {tenant_id!r}: {reason}"
        context = ErrorContext(extra={"tenant_id": tenant_id, "event": event})
        super().__init__(message, context=context)


class ClassificationError(DomainException):
    """Raised when a classifier produces an unusable outcome."""

    def __init__(self, asset_id: Any, outcome: Any):
        message = "Classifier must return a definite classification"
        context = ErrorContext(
            entity_type="Asset",
            entity_id=asset_id,
            field_name="classification",
            invalid_value=outcome,
        )
        super().__init__(message, context=context)
