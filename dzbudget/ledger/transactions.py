"""
Transaction Log

Append/delete-only record of income and expenses, newest first.

CRITICAL: Entries are validated before they are created and are never
edited afterwards. Correcting a mistake means deleting the entry and
recording a new one.
"""

from datetime import datetime
from typing import Callable, Iterable, Iterator, Optional, Union
from uuid import UUID

import structlog

from dzbudget.models.budget import Transaction, TransactionInput
from dzbudget.registry import CategoryRegistry
from dzbudget.validation import TransactionValidator


logger = structlog.get_logger(__name__)


def local_now() -> datetime:
    """Current time as an aware datetime in the local timezone."""
    return datetime.now().astimezone()


class TransactionLog:
    """
    Ordered collection of transactions, most recent first.

    New entries go to the head, so the order is insertion order reversed
    and stays stable across deletes.
    """

    def __init__(
        self,
        registry: CategoryRegistry,
        transactions: Optional[Iterable[Transaction]] = None,
        validator: Optional[TransactionValidator] = None,
        clock: Callable[[], datetime] = local_now,
    ):
        """
        Args:
            registry: Categories an expense may reference
            transactions: Existing entries, newest first
            validator: Defaults to a validator bound to `registry`
            clock: Source of the timestamp stamped on new entries
        """
        self._registry = registry
        self._transactions: list[Transaction] = list(transactions or [])
        self._validator = validator or TransactionValidator(registry)
        self._clock = clock

    def __len__(self) -> int:
        return len(self._transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(list(self._transactions))

    def append(self, tx: TransactionInput) -> Transaction:
        """
        Validate and record a transaction at the head of the log.

        Raises:
            ValidationError: If the input is refused (nothing is recorded)
        """
        self._validator.ensure_valid(tx)

        transaction = Transaction(
            date=self._clock(),
            description=tx.description.strip(),
            amount=tx.amount,
            category_id=tx.category_id,
            account_type=tx.account_type,
            type=tx.type,
        )
        self._transactions.insert(0, transaction)
        return transaction

    def remove(self, transaction_id: Union[UUID, str]) -> bool:
        """
        Delete a transaction by id.

        Idempotent: an unknown id leaves the log untouched.

        Returns:
            Whether a transaction was removed
        """
        try:
            wanted = UUID(str(transaction_id))
        except ValueError:
            logger.warning("transaction_id_invalid", transaction_id=str(transaction_id))
            return False

        for index, transaction in enumerate(self._transactions):
            if transaction.id == wanted:
                del self._transactions[index]
                return True

        logger.warning("transaction_not_found", transaction_id=str(wanted))
        return False

    def get(self, transaction_id: Union[UUID, str]) -> Optional[Transaction]:
        wanted = UUID(str(transaction_id))
        return next((t for t in self._transactions if t.id == wanted), None)

    def list(self) -> list[Transaction]:
        """All transactions, newest first."""
        return list(self._transactions)
