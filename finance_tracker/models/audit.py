"""
Audit Models for the Finance Tracker

Every data-changing action in the core is described by an AuditEvent.
This provides:
1. Traceability of generated and imported data
2. Debugging information when loads fall back to an empty state
3. Ability to reconstruct what happened to the user's data

DESIGN DECISION: Audit events are written to the structured log only.
They are never stored in the user's key-value medium.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Entity lifecycle
    ENTITY_CREATED = "entity_created"
    ENTITY_UPDATED = "entity_updated"
    ENTITY_DELETED = "entity_deleted"
    ACCOUNT_DELETED = "account_deleted"

    # Recurring generation
    RECURRING_TRANSACTIONS_GENERATED = "recurring_transactions_generated"

    # Persistence
    DATA_LOADED = "data_loaded"
    DATA_LOAD_FAILED = "data_load_failed"
    DATA_CLEARED = "data_cleared"

    # Import / export
    DATA_EXPORTED = "data_exported"
    DATA_IMPORTED = "data_imported"
    IMPORT_FAILED = "import_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'recurring_pattern')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Ids come from user data and can be any length; they belong in entity_id
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entity_created("account", account.id)
        event = AuditEventBuilder.import_failed("merge", error)
    """

    @staticmethod
    def entity_created(entity_type: str, entity_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_CREATED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Created {entity_type}",
        )

    @staticmethod
    def entity_updated(
        entity_type: str,
        entity_id: str,
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_UPDATED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Updated {entity_type}",
            details={"fields": sorted(fields)},
        )

    @staticmethod
    def entity_deleted(entity_type: str, entity_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_DELETED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Deleted {entity_type}",
        )

    @staticmethod
    def account_deleted(account_id: str, cascaded_transactions: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            entity_type="account",
            entity_id=account_id,
            description=f"Deleted account and {cascaded_transactions} transactions",
            details={"cascaded_transactions": cascaded_transactions},
        )

    @staticmethod
    def recurring_generated(
        pattern_id: str,
        count: int,
        last_occurrence: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_TRANSACTIONS_GENERATED,
            entity_type="recurring_pattern",
            entity_id=pattern_id,
            description=f"Generated {count} recurring transactions",
            details={
                "count": count,
                "last_occurrence": last_occurrence,
            },
        )

    @staticmethod
    def data_loaded(counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_LOADED,
            description="Loaded all collections from storage",
            details={"counts": counts},
        )

    @staticmethod
    def data_load_failed(error: Exception) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            description="Stored data could not be loaded; starting from an empty state",
            error_type=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def data_cleared() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_CLEARED,
            severity=AuditSeverity.WARNING,
            description="All collections removed from storage",
        )

    @staticmethod
    def data_exported(fmt: str, counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_EXPORTED,
            description=f"Exported data as {fmt}",
            details={"format": fmt, "counts": counts},
        )

    @staticmethod
    def data_imported(strategy: str, counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_IMPORTED,
            description=f"Imported snapshot using '{strategy}' strategy",
            details={"strategy": strategy, "counts": counts},
        )

    @staticmethod
    def import_failed(strategy: str, error: Exception) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"Snapshot import ('{strategy}') rejected",
            details={"strategy": strategy},
            error_type=type(error).__name__,
            error_message=str(error),
        )
