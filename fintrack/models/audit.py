"""
Audit Models for FinTrack

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every ledger mutation
2. Debugging information when an external service degrades
3. A record of which profile (real or foreign) an action touched

DESIGN DECISION: Audit events never carry amounts of the foreign profile
into the real one or vice versa; each event names the namespace it ran in.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every mutation path of the ledger has its own event type.
    """
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_UPDATE_SKIPPED = "transaction_update_skipped"
    VALIDATION_FAILED = "validation_failed"

    # Goals
    GOAL_ADDED = "goal_added"
    GOAL_REMOVED = "goal_removed"

    # Settings and accounts
    SETTINGS_SAVED = "settings_saved"
    ACCOUNT_RENAMED = "account_renamed"
    ACCOUNT_RENAME_REJECTED = "account_rename_rejected"

    # Profiles
    PROFILE_SWITCHED = "profile_switched"
    FOREIGN_PROFILE_SEEDED = "foreign_profile_seeded"

    # Exchange cards
    EXCHANGE_CARD_CREATED = "exchange_card_created"
    EXCHANGE_CARD_REFRESHED = "exchange_card_refreshed"
    EXCHANGE_CARD_DELETED = "exchange_card_deleted"

    # Advisor
    ADVICE_GENERATED = "advice_generated"

    # Data lifecycle
    DATA_EXPORTED = "data_exported"
    DATA_WIPED = "data_wiped"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


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
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
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

    # Which profile namespace the action ran in ("real" / "foreign")
    profile: Optional[str] = None

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'goal', 'exchange_card')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one user action"
    )

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
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "profile": self.profile,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added("real", tx_id, "expense", correlation_id)
        event = AuditEventBuilder.account_renamed("real", "Cash", "Wallet", 3, correlation_id)
    """

    @staticmethod
    def transaction_added(
        profile: str,
        transaction_id: str,
        transaction_type: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            profile=profile,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction added ({transaction_type})",
            details={
                "transaction_type": transaction_type,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        profile: str,
        transaction_id: str,
        replaced: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        if replaced:
            return AuditEvent(
                event_type=AuditEventType.TRANSACTION_UPDATED,
                profile=profile,
                entity_type="transaction",
                entity_id=transaction_id,
                correlation_id=correlation_id,
                description="Transaction replaced",
                is_user_action=True,
            )
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATE_SKIPPED,
            severity=AuditSeverity.WARNING,
            profile=profile,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Update ignored: no transaction with this id",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        profile: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            profile=profile,
            entity_type="draft",
            correlation_id=correlation_id,
            description=f"Draft rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def goal_added(
        profile: str,
        goal_id: str,
        name: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_ADDED,
            profile=profile,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description=f"Goal added: {name}",
            is_user_action=True,
        )

    @staticmethod
    def goal_removed(
        profile: str,
        goal_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_REMOVED,
            profile=profile,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description="Goal removed",
            is_user_action=True,
        )

    @staticmethod
    def settings_saved(
        profile: str,
        changed: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_SAVED,
            profile=profile,
            entity_type="settings",
            correlation_id=correlation_id,
            description=f"Settings saved: {changed}",
            details={
                "changed": changed,
            },
            is_user_action=True,
        )

    @staticmethod
    def account_renamed(
        profile: str,
        old_name: str,
        new_name: str,
        transactions_rewritten: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_RENAMED,
            profile=profile,
            entity_type="account",
            entity_id=new_name,
            correlation_id=correlation_id,
            description=f"Account renamed: {old_name} -> {new_name}",
            details={
                "old_name": old_name,
                "new_name": new_name,
                "transactions_rewritten": transactions_rewritten,
            },
            is_user_action=True,
        )

    @staticmethod
    def account_rename_rejected(
        profile: str,
        old_name: str,
        new_name: str,
        reason: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_RENAME_REJECTED,
            severity=AuditSeverity.WARNING,
            profile=profile,
            entity_type="account",
            entity_id=old_name,
            correlation_id=correlation_id,
            description=f"Account rename rejected: {reason}",
            details={
                "old_name": old_name,
                "new_name": new_name,
            },
            is_user_action=True,
        )

    @staticmethod
    def profile_switched(
        profile: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_SWITCHED,
            profile=profile,
            entity_type="profile",
            correlation_id=correlation_id,
            description=f"Active profile is now {profile}",
            is_user_action=True,
        )

    @staticmethod
    def foreign_profile_seeded(
        goal_count: int,
        transaction_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FOREIGN_PROFILE_SEEDED,
            profile="foreign",
            entity_type="profile",
            correlation_id=correlation_id,
            description="Foreign profile seeded with demo data",
            details={
                "goals": goal_count,
                "transactions": transaction_count,
            },
        )

    @staticmethod
    def exchange_card_created(
        profile: str,
        card_id: str,
        pair: str,
        rate_known: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXCHANGE_CARD_CREATED,
            profile=profile,
            entity_type="exchange_card",
            entity_id=card_id,
            correlation_id=correlation_id,
            description=f"Exchange card created: {pair}",
            details={
                "pair": pair,
                "rate_known": rate_known,
            },
            is_user_action=True,
        )

    @staticmethod
    def exchange_card_refreshed(
        profile: str,
        card_id: str,
        pair: str,
        rate_known: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXCHANGE_CARD_REFRESHED,
            severity=AuditSeverity.INFO if rate_known else AuditSeverity.WARNING,
            profile=profile,
            entity_type="exchange_card",
            entity_id=card_id,
            correlation_id=correlation_id,
            description=f"Exchange card refreshed: {pair}",
            details={
                "pair": pair,
                "rate_known": rate_known,
            },
            is_user_action=True,
        )

    @staticmethod
    def exchange_card_deleted(
        profile: str,
        card_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXCHANGE_CARD_DELETED,
            profile=profile,
            entity_type="exchange_card",
            entity_id=card_id,
            correlation_id=correlation_id,
            description="Exchange card deleted",
            is_user_action=True,
        )

    @staticmethod
    def advice_generated(
        profile: str,
        transaction_count: int,
        used_fallback: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVICE_GENERATED,
            severity=AuditSeverity.WARNING if used_fallback else AuditSeverity.INFO,
            profile=profile,
            entity_type="advice",
            correlation_id=correlation_id,
            description=(
                "Advice fallback returned" if used_fallback
                else f"Advice generated from {transaction_count} transactions"
            ),
            details={
                "transaction_count": transaction_count,
                "used_fallback": used_fallback,
            },
            is_user_action=True,
        )

    @staticmethod
    def data_exported(
        profile: str,
        transaction_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_EXPORTED,
            profile=profile,
            entity_type="profile",
            correlation_id=correlation_id,
            description=f"Profile exported with {transaction_count} transactions",
            details={
                "transaction_count": transaction_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def data_wiped(
        profile: str,
        keys_removed: list[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_WIPED,
            severity=AuditSeverity.WARNING,
            profile=profile,
            entity_type="profile",
            correlation_id=correlation_id,
            description=f"Profile wiped ({len(keys_removed)} records)",
            details={
                "keys_removed": keys_removed,
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
