"""Assembly of transactions into the linked address/transaction graph."""

from __future__ import annotations

import threading
from typing import Protocol

from loguru import logger

from address_graph.entities import Address, Transaction
from address_graph.errors import MalformedResponseError
from address_graph.models import RawInput, RawTransaction
from address_graph.registry import EntityRegistry


class RawTransactionSource(Protocol):
    def getrawtransaction(self, txid: str) -> RawTransaction: ...


class TransactionAssembler:
    """
    Builds fully linked Transactions from node data, once per id.

    Every input is resolved to the output it spends so that it carries the
    address and value of that output. Raw detail fetched from the node is
    kept for the session, so a transaction seen once (assembled, or used as
    the previous transaction of some input) is never fetched again.
    """

    def __init__(self, registry: EntityRegistry, node: RawTransactionSource):
        self.registry = registry
        self.node = node
        self._raw: dict[str, RawTransaction] = {}
        self._in_progress: set[str] = set()
        self._lock = threading.RLock()

    def get_transaction(self, txid: str) -> Transaction:
        """
        Return the assembled transaction ``txid``.

        The empty Transaction is registered before any I/O so that references
        back to it during assembly resolve to the same instance. If assembly
        fails it is removed from the registry again and the error propagates.

        Assembly holds a re-entrant lock, so other threads wait for a finished
        transaction. A nested call for ``txid`` made by the assembling thread
        itself gets the instance back before its inputs and outputs are
        filled in; it is complete once the outer call returns.

        Raises:
            TransportError: If the node cannot be reached
            MalformedResponseError: If node data cannot be linked
        """
        with self._lock:
            transaction = self.registry.get_or_create_transaction(txid)
            if transaction.is_complete or txid in self._in_progress:
                return transaction

            self._in_progress.add(txid)
            try:
                self._assemble(transaction)
            except Exception:
                logger.warning(f"Assembly of {txid} failed, discarding partial transaction")
                self.registry.discard_transaction(txid)
                raise
            finally:
                self._in_progress.discard(txid)

            self.registry.seal(transaction)
        logger.debug(
            f"Assembled {txid}: {len(transaction.inputs)} inputs, "
            f"{len(transaction.outputs)} outputs"
        )
        return transaction

    def raw_transaction(self, txid: str) -> RawTransaction:
        """Return raw node detail for ``txid``, fetching it at most once."""
        with self._lock:
            raw = self._raw.get(txid)
            if raw is None:
                logger.debug(f"Fetching raw transaction {txid}")
                raw = self.node.getrawtransaction(txid)
                if raw.txid != txid:
                    raise MalformedResponseError(f"Requested {txid}, node returned {raw.txid}")
                self._raw[txid] = raw
            return raw

    def _assemble(self, transaction: Transaction) -> None:
        raw = self.raw_transaction(transaction.id)

        for vin in raw.vin:
            if vin.is_coinbase:
                # Newly minted coins, there is no previous output to link.
                continue
            address, value = self._resolve_spent_output(vin)
            self.registry.new_input(transaction, address, vin.txid, value, vin.vout)

        for vout in raw.vout:
            address = self.registry.get_or_create_address(vout.scriptPubKey.resolve_address())
            self.registry.new_output(transaction, address, vout.satoshis, vout.n)

    def _resolve_spent_output(self, vin: RawInput) -> tuple[Address, int]:
        """Find the address and satoshi value of the output ``vin`` spends."""
        if vin.txid is None or vin.vout is None:
            raise MalformedResponseError(f"Input without previous outpoint: {vin}")

        previous = self.registry.find_transaction(vin.txid)
        if previous is not None and previous.is_complete:
            for out in previous.outputs:
                if out.index == vin.vout:
                    return out.address, out.value
            raise MalformedResponseError(f"Transaction {vin.txid} has no output {vin.vout}")

        spent = self.raw_transaction(vin.txid).output(vin.vout)
        address = self.registry.get_or_create_address(spent.scriptPubKey.resolve_address())
        return address, spent.satoshis
