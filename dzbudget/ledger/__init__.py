"""Transaction log package."""

from dzbudget.ledger.transactions import TransactionLog, local_now

__all__ = ["TransactionLog", "local_now"]
