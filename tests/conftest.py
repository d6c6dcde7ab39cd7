"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Optional

import pytest

from address_graph.client import Client
from address_graph.config import ClientConfig
from address_graph.errors import RPCError
from address_graph.models import AddressValidation, HistoryPage, RawTransaction


class FakeHistoryService:
    """In-memory address-history service returning newest-first pages."""

    def __init__(self):
        self.histories: dict[str, list[dict]] = {}
        self.requests: list[tuple[str, int, Optional[int]]] = []
        self.before_fetch = None
        self.error: Optional[Exception] = None
        self.fail_at_offset: Optional[int] = None

    def add(self, address_id: str, summary: dict) -> None:
        """Add a summary as the newest transaction of ``address_id``."""
        self.histories.setdefault(address_id, []).insert(0, summary)

    def fetch_page(self, address_id: str, limit: int, offset: Optional[int] = None) -> HistoryPage:
        self.requests.append((address_id, limit, offset))
        if self.before_fetch is not None:
            self.before_fetch(self, address_id, offset)
        if self.error is not None and offset == self.fail_at_offset:
            raise self.error
        txs = self.histories.get(address_id, [])
        start = offset or 0
        return HistoryPage.model_validate({"txs": txs[start : start + limit], "n_tx": len(txs)})

    @property
    def offsets(self) -> list[Optional[int]]:
        return [offset for _, _, offset in self.requests]


class FakeNode:
    """In-memory bitcoind answering getrawtransaction and validateaddress."""

    def __init__(self):
        self.transactions: dict[str, dict] = {}
        self.valid_addresses: set[str] = set()
        self.calls: list[str] = []
        self.validations: list[str] = []

    def add(self, raw: dict) -> None:
        self.transactions[raw["txid"]] = raw

    def getrawtransaction(self, txid: str) -> RawTransaction:
        self.calls.append(txid)
        if txid not in self.transactions:
            raise RPCError("No such mempool or blockchain transaction", -5)
        return RawTransaction.model_validate(self.transactions[txid])

    def validateaddress(self, address: str) -> AddressValidation:
        self.validations.append(address)
        return AddressValidation(isvalid=address in self.valid_addresses)


def make_raw_tx(txid: str, inputs=(), outputs=(), coinbase: bool = False) -> dict:
    """
    Build a verbose getrawtransaction result.

    ``inputs`` are ``(previous_txid, vout)`` pairs, ``outputs`` are
    ``(address_or_addresses, btc_value)`` pairs numbered in order.
    """
    vin = [{"txid": prev, "vout": n, "sequence": 4294967295} for prev, n in inputs]
    if coinbase:
        vin.insert(0, {"coinbase": "04ffff001d0104", "sequence": 4294967295})
    vout = []
    for n, (addresses, value) in enumerate(outputs):
        if isinstance(addresses, str):
            addresses = [addresses]
        vout.append(
            {
                "n": n,
                "value": value,
                "scriptPubKey": {"type": "pubkeyhash", "addresses": addresses},
            }
        )
    return {"txid": txid, "version": 1, "locktime": 0, "vin": vin, "vout": vout}


@pytest.fixture
def raw_tx():
    """Builder for raw transaction dicts."""
    return make_raw_tx


@pytest.fixture
def node():
    return FakeNode()


@pytest.fixture
def history():
    return FakeHistoryService()


@pytest.fixture
def client(history, node):
    """Client session wired to the in-memory services."""
    return Client(ClientConfig(), history_service=history, node=node)


@pytest.fixture
def funded_address(history, node):
    """
    Register ``count`` coinbase transactions paying ``address_id``.

    Returns the txids oldest first. Transactions whose index is in
    ``unconfirmed`` are listed without a block height.
    """

    def _fund(address_id: str, count: int, unconfirmed=()) -> list[str]:
        txids = []
        for i in range(count):
            txid = f"{address_id}_tx{i:04d}"
            node.add(make_raw_tx(txid, outputs=[(address_id, "0.5")], coinbase=True))
            summary = {"hash": txid, "time": 1_300_000_000 + i}
            if i not in unconfirmed:
                summary["block_height"] = 100_000 + i
            history.add(address_id, summary)
            txids.append(txid)
        return txids

    return _fund
