"""
ORM-level append-only enforcement for the ledger and the activity log.

===============================================================================
WHY THIS EXISTS
===============================================================================

A submitted order leaves three kinds of rows behind: a journal entry, its
lines, and one inventory transaction per order line.  Reports, the activity
log and the item history are all derived from those rows, so they must never
change once written.  Corrections are made with new entries, not edits.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events:

    session.flush()
         |
         v
    [before_update event] --> _check_*_update() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_*_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                 | When Immutable          | Why
-----------------------|-------------------------|-------------------------------
JournalEntry           | ALWAYS (once flushed)   | Financial record of an order
JournalLine            | ALWAYS (once flushed)   | Lines are part of the entry
InventoryTransaction   | ALWAYS (once flushed)   | Activity log is append-only

updated_at is audit metadata and may still change.

===============================================================================
USAGE
===============================================================================

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at"})


def _block(entity_type: str, target, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_append_only_update(mapper, connection, target):
    """Reject any change to a non-audit column of an append-only row."""
    entity_type = type(target).__name__
    insp = inspect(target)
    for attr in insp.mapper.column_attrs:
        if attr.key in _AUDIT_FIELDS:
            continue
        if insp.attrs[attr.key].history.has_changes():
            _block(
                entity_type,
                target,
                "UPDATE",
                f"Cannot modify field '{attr.key}' on {entity_type}",
                field=attr.key,
            )


def _check_append_only_delete(mapper, connection, target):
    entity_type = type(target).__name__
    _block(entity_type, target, "DELETE", f"{entity_type} rows cannot be deleted")


def _protected_models():
    # Inline import: models import from db.
    from inventory_kernel.models.journal import JournalEntry, JournalLine
    from inventory_kernel.models.transaction import InventoryTransaction

    return (JournalEntry, JournalLine, InventoryTransaction)


def register_immutability_listeners():
    """
    Register all append-only enforcement event listeners.

    Call this after all models are imported but before any database
    operations begin.  Safe to call more than once.
    """
    for model in _protected_models():
        if not event.contains(model, "before_update", _check_append_only_update):
            event.listen(model, "before_update", _check_append_only_update)
        if not event.contains(model, "before_delete", _check_append_only_delete):
            event.listen(model, "before_delete", _check_append_only_delete)

    logger.info("immutability_listeners_registered")


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove append-only enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    rewrite history.
    """
    for model in _protected_models():
        _safe_remove_listener(model, "before_update", _check_append_only_update)
        _safe_remove_listener(model, "before_delete", _check_append_only_delete)
