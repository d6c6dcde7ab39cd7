"""Per-session identity maps for addresses and transactions."""

from __future__ import annotations

import threading
from typing import Optional

from loguru import logger

from address_graph.entities import Address, Input, Output, Transaction
from address_graph.errors import MalformedResponseError


class EntityRegistry:
    """
    Identity maps keyed by natural id.

    ``get_or_create_*`` never do I/O and register the new entity before
    returning it, so code assembling one entity can safely reference another
    that is still being built. A re-entrant lock makes get-or-create atomic
    when lookups run from several threads.
    """

    def __init__(self) -> None:
        self._addresses: dict[str, Address] = {}
        self._transactions: dict[str, Transaction] = {}
        self._lock = threading.RLock()

    def get_or_create_address(self, id: str) -> Address:
        """Return the address with ``id``, creating it on first use."""
        with self._lock:
            address = self._addresses.get(id)
            if address is None:
                address = self._addresses[id] = Address(id)
            return address

    def get_or_create_transaction(self, id: str) -> Transaction:
        """Return the transaction with ``id``, creating an empty one on first use."""
        with self._lock:
            transaction = self._transactions.get(id)
            if transaction is None:
                transaction = self._transactions[id] = Transaction(id)
            return transaction

    def has_transaction(self, id: str) -> bool:
        with self._lock:
            return id in self._transactions

    def find_transaction(self, id: str) -> Optional[Transaction]:
        """Return the registered transaction with ``id`` without creating it."""
        with self._lock:
            return self._transactions.get(id)

    def discard_transaction(self, id: str) -> Optional[Transaction]:
        """Forget a transaction, e.g. after its assembly failed."""
        with self._lock:
            transaction = self._transactions.pop(id, None)
        if transaction is not None:
            logger.debug(f"Discarded transaction {id} from registry")
        return transaction

    def new_input(
        self,
        transaction: Transaction,
        address: Address,
        previous_transaction_id: str,
        value: int,
        previous_output_index: Optional[int] = None,
    ) -> Input:
        """Create an input and attach it to ``transaction``."""
        self._check_owned(transaction)
        entry = Input(transaction, address, previous_transaction_id, value, previous_output_index)
        transaction._append(entry)
        return entry

    def new_output(
        self,
        transaction: Transaction,
        address: Address,
        value: int,
        index: Optional[int] = None,
    ) -> Output:
        """Create an output and attach it to ``transaction``."""
        self._check_owned(transaction)
        entry = Output(transaction, address, value, index)
        transaction._append(entry)
        return entry

    def seal(self, transaction: Transaction) -> None:
        """Mark ``transaction`` as fully assembled."""
        transaction._seal()

    def _check_owned(self, transaction: Transaction) -> None:
        with self._lock:
            if self._transactions.get(transaction.id) is not transaction:
                raise MalformedResponseError(
                    f"Transaction {transaction.id} is not registered in this session"
                )

    @property
    def address_count(self) -> int:
        return len(self._addresses)

    @property
    def transaction_count(self) -> int:
        return len(self._transactions)
