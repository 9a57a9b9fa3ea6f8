"""Document store transactions."""

from chyrp.db.transaction import BufferedTransaction, TransactionBody, run_transaction

__all__ = [
    "BufferedTransaction",
    "TransactionBody",
    "run_transaction",
]
