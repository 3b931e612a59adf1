"""
Main Orchestrator for DzBudget

This module ties together all the components:
1. BudgetStore - the registry, the log and the savings goal, with explicit
   load() / save() and a single mutate(command) entry point
2. create_app_components - wiring used by the Streamlit app

DESIGN DECISION: Persistence is an explicit side effect of a successful
mutation, never an implicit subscription:
- A refused command changes nothing and writes nothing
- A no-op command (unknown id) writes nothing
- Only the blob that changed is rewritten
- A failed write undoes the in-memory change before the error propagates

Persisted blobs are JSON with a version envelope:
    {"version": 1, "data": ...}
Blobs without the envelope (written by the browser version of the app)
are read as version 0.
"""

import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Optional, Union
from uuid import UUID

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaValidationError

from dzbudget.agents import InsightAgent
from dzbudget.audit import AuditLogger, create_correlation_id
from dzbudget.config import get_settings
from dzbudget.engine import compute_snapshot
from dzbudget.ledger import TransactionLog, local_now
from dzbudget.models.budget import (
    AddTransaction,
    BudgetCommand,
    BudgetSnapshot,
    BudgetState,
    Category,
    DeleteTransaction,
    Transaction,
    UpdateCategoryLimit,
    UpdateSavingsGoal,
)
from dzbudget.registry import CategoryRegistry, seed_defaults
from dzbudget.services.storage import (
    CorruptStateError,
    JsonFileStateStorage,
    JsonLinesAuditStorage,
    StateStorageInterface,
    StorageError,
)
from dzbudget.validation import TransactionValidator, ValidationError


logger = structlog.get_logger(__name__)

SCHEMA_VERSION = 1

_categories_adapter = TypeAdapter(list[Category])
_transactions_adapter = TypeAdapter(list[Transaction])
_transaction_adapter = TypeAdapter(Transaction)
_goal_adapter = TypeAdapter(Decimal)


def encode_blob(data: Any) -> str:
    """Wrap already-JSON-compatible data in the version envelope."""
    return json.dumps(
        {"version": SCHEMA_VERSION, "data": data},
        ensure_ascii=False,
    )


def decode_blob(key: str, text: str) -> tuple[int, Any]:
    """
    Unwrap a persisted blob.

    Returns:
        (version, data); version 0 for legacy unwrapped blobs

    Raises:
        CorruptStateError: If the text is not JSON or the version is unknown
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise CorruptStateError(key, f"invalid JSON ({e})") from e

    if isinstance(payload, dict) and "version" in payload and "data" in payload:
        version = payload["version"]
        if not isinstance(version, int) or version > SCHEMA_VERSION:
            raise CorruptStateError(key, f"unsupported version {version!r}")
        return version, payload["data"]

    return 0, payload


class BudgetStore:
    """
    Owns the mutable state of the app.

    FLOW for every user action:
    1. mutate(command) applies it to the registry / log / goal
    2. If something changed, the affected blob is written
    3. The change is audited
    4. The new BudgetState is returned

    snapshot(now) derives the dashboard figures from the current state.
    """

    def __init__(
        self,
        storage: StateStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = local_now,
        categories_key: Optional[str] = None,
        transactions_key: Optional[str] = None,
        savings_goal_key: Optional[str] = None,
        default_savings_goal: Optional[Decimal] = None,
    ):
        storage_settings = get_settings().storage
        app_settings = get_settings().app

        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock
        self.categories_key = categories_key or storage_settings.categories_key
        self.transactions_key = transactions_key or storage_settings.transactions_key
        self.savings_goal_key = savings_goal_key or storage_settings.savings_goal_key
        self._default_savings_goal = (
            app_settings.default_savings_goal
            if default_savings_goal is None
            else default_savings_goal
        )

        self._registry = CategoryRegistry()
        self._log = self._new_log([])
        self._savings_goal = Decimal(self._default_savings_goal)
        self._loaded = False

    def _new_log(self, transactions: list[Transaction]) -> TransactionLog:
        return TransactionLog(
            self._registry,
            transactions,
            validator=TransactionValidator(self._registry),
            clock=self._clock,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _read(
        self,
        key: str,
        adapter: TypeAdapter,
        default: Any,
        item_adapter: Optional[TypeAdapter] = None,
    ) -> tuple[Any, bool]:
        """
        Read one blob; returns (value, used_default).

        With `item_adapter`, a legacy list blob is read entry by entry and
        entries that no longer validate are skipped and audited.
        """
        text = self._storage.read_blob(key)
        if text is None:
            return default, True

        version, data = decode_blob(key, text)
        if version < SCHEMA_VERSION:
            logger.info("legacy_blob_loaded", key=key, version=version)
        if version == 0 and item_adapter is not None and isinstance(data, list):
            return self._salvage_entries(key, item_adapter, data), False

        try:
            value = adapter.validate_python(data)
        except SchemaValidationError as e:
            raise CorruptStateError(key, str(e)) from e
        return value, False

    def _salvage_entries(self, key: str, item_adapter: TypeAdapter, data: list) -> list:
        # The browser app only checked for a non-empty description and amount
        entries = []
        for index, entry in enumerate(data):
            try:
                entries.append(item_adapter.validate_python(entry))
            except SchemaValidationError as e:
                logger.warning("legacy_entry_skipped", key=key, index=index)
                self._audit_logger.log_transaction_rejected(issues=[
                    {
                        "field": ".".join(str(part) for part in err["loc"]) or key,
                        "type": err["type"],
                        "message": err["msg"],
                    }
                    for err in e.errors()
                ])
        return entries

    def load(self) -> BudgetState:
        """
        Read the three blobs, falling back to defaults for absent ones.

        Raises:
            CorruptStateError: If a blob exists but cannot be parsed (invalid
                               entries of a legacy transaction list are
                               skipped instead)
            StorageError: If the backend cannot be read
        """
        categories, default_categories = self._read(
            self.categories_key, _categories_adapter, seed_defaults()
        )
        transactions, default_transactions = self._read(
            self.transactions_key, _transactions_adapter, [], _transaction_adapter
        )
        goal, default_goal = self._read(
            self.savings_goal_key, _goal_adapter, Decimal(self._default_savings_goal)
        )

        self._registry = CategoryRegistry(categories)
        self._log = self._new_log(transactions)
        self._savings_goal = max(goal, Decimal("0"))
        self._loaded = True

        defaults_used = [
            key for key, used in (
                (self.categories_key, default_categories),
                (self.transactions_key, default_transactions),
                (self.savings_goal_key, default_goal),
            ) if used
        ]
        self._audit_logger.log_state_loaded(
            category_count=len(self._registry),
            transaction_count=len(self._log),
            defaults_used=defaults_used,
        )
        return self.state

    def _write_categories(self) -> None:
        data = [c.model_dump(mode="json", by_alias=True) for c in self._registry]
        self._storage.write_blob(self.categories_key, encode_blob(data))

    def _write_transactions(self) -> None:
        data = [t.model_dump(mode="json", by_alias=True) for t in self._log]
        self._storage.write_blob(self.transactions_key, encode_blob(data))

    def _write_savings_goal(self) -> None:
        self._storage.write_blob(self.savings_goal_key, encode_blob(str(self._savings_goal)))

    def save(self, correlation_id: Optional[UUID] = None) -> None:
        """Write all three blobs, e.g. to materialize the defaults on a first run."""
        self._write_categories()
        self._write_transactions()
        self._write_savings_goal()
        self._audit_logger.log_state_saved(
            [self.categories_key, self.transactions_key, self.savings_goal_key],
            correlation_id,
        )

    def reset(self) -> BudgetState:
        """
        Back to a fresh install: default categories, empty log, default goal.

        The blobs are deleted rather than overwritten, so the next load()
        sees exactly what a first run sees.
        """
        for key in (self.categories_key, self.transactions_key, self.savings_goal_key):
            self._storage.delete_blob(key)
        return self.load()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def registry(self) -> CategoryRegistry:
        return self._registry

    @property
    def log(self) -> TransactionLog:
        return self._log

    @property
    def savings_goal(self) -> Decimal:
        return self._savings_goal

    @property
    def state(self) -> BudgetState:
        return BudgetState(
            categories=self._registry.to_list(),
            transactions=self._log.list(),
            savings_goal=self._savings_goal,
        )

    def snapshot(self, now: Optional[datetime] = None) -> BudgetSnapshot:
        """Dashboard figures for the current state."""
        return compute_snapshot(
            self._registry.to_list(),
            self._log.list(),
            now or self._clock(),
            self._savings_goal,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def mutate(
        self,
        command: BudgetCommand,
        correlation_id: Optional[UUID] = None,
    ) -> BudgetState:
        """
        Apply one user command, persist what changed, return the new state.

        Raises:
            ValidationError: If an AddTransaction is refused (nothing is
                             recorded or written)
            StorageError: If the changed blob could not be written; the
                          in-memory change is undone first
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            if isinstance(command, AddTransaction):
                self._add_transaction(command, correlation_id)
            elif isinstance(command, DeleteTransaction):
                self._delete_transaction(command, correlation_id)
            elif isinstance(command, UpdateCategoryLimit):
                self._update_category_limit(command, correlation_id)
            elif isinstance(command, UpdateSavingsGoal):
                self._update_savings_goal(command, correlation_id)
            else:
                raise TypeError(f"Unknown command: {type(command).__name__}")
        except StorageError as e:
            self._audit_logger.log_error(
                error_type="storage_write_failed",
                error_message=str(e),
                details={"command": command.kind},
                correlation_id=correlation_id,
            )
            raise

        return self.state

    def _add_transaction(self, command: AddTransaction, correlation_id: UUID) -> None:
        try:
            transaction = self._log.append(command.transaction)
        except ValidationError as e:
            self._audit_logger.log_transaction_rejected(
                issues=[
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in e.issues
                ],
                correlation_id=correlation_id,
            )
            raise

        try:
            self._write_transactions()
        except StorageError:
            self._log.remove(transaction.id)
            raise
        self._audit_logger.log_transaction_added(
            transaction_id=transaction.id,
            description=transaction.description,
            amount=transaction.amount,
            transaction_type=transaction.type.value,
            correlation_id=correlation_id,
        )

    def _delete_transaction(self, command: DeleteTransaction, correlation_id: UUID) -> None:
        previous = self._log.list()
        if not self._log.remove(command.transaction_id):
            self._audit_logger.log_not_found(
                entity_type="transaction",
                entity_id=str(command.transaction_id),
                operation="delete",
                correlation_id=correlation_id,
            )
            return

        try:
            self._write_transactions()
        except StorageError:
            self._log = self._new_log(previous)
            raise
        self._audit_logger.log_transaction_deleted(command.transaction_id, correlation_id)

    def _update_category_limit(
        self, command: UpdateCategoryLimit, correlation_id: UUID
    ) -> None:
        previous = self._registry.get(command.category_id)
        updated = self._registry.update_limit(command.category_id, command.limit)
        if previous is None or updated is None:
            self._audit_logger.log_not_found(
                entity_type="category",
                entity_id=command.category_id,
                operation="update_limit",
                correlation_id=correlation_id,
            )
            return
        if updated.limit == previous.limit:
            return

        try:
            self._write_categories()
        except StorageError:
            self._registry.update_limit(previous.id, previous.limit)
            raise
        self._audit_logger.log_category_limit_updated(
            category_id=updated.id,
            old_limit=previous.limit,
            new_limit=updated.limit,
            correlation_id=correlation_id,
        )

    def _update_savings_goal(self, command: UpdateSavingsGoal, correlation_id: UUID) -> None:
        goal = max(command.goal, Decimal("0"))
        if goal == self._savings_goal:
            return

        previous = self._savings_goal
        self._savings_goal = goal
        try:
            self._write_savings_goal()
        except StorageError:
            self._savings_goal = previous
            raise
        self._audit_logger.log_savings_goal_updated(goal, correlation_id)


def create_app_components(
    data_dir: Optional[Union[str, Path]] = None,
) -> tuple[BudgetStore, InsightAgent, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        data_dir: Where state and audit files live; defaults to settings.

    Returns:
        (loaded_store, insight_agent, audit_logger)
    """
    storage_settings = get_settings().storage
    data_dir = Path(data_dir) if data_dir is not None else storage_settings.data_dir

    audit_logger = AuditLogger(
        JsonLinesAuditStorage(data_dir / storage_settings.audit_log_filename)
    )
    store = BudgetStore(JsonFileStateStorage(data_dir), audit_logger=audit_logger)
    store.load()

    insight_agent = InsightAgent(audit_logger=audit_logger)
    return store, insight_agent, audit_logger
