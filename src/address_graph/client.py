"""Session facade tying the registry, assembler and history fetcher together."""

from __future__ import annotations

from typing import Optional, Union

from loguru import logger

from address_graph.api import AddressHistoryService, NodeRPC
from address_graph.assembler import TransactionAssembler
from address_graph.config import ClientConfig
from address_graph.entities import Address, Transaction
from address_graph.history import HistoryFetcher
from address_graph.registry import EntityRegistry


class Client:
    """
    One session against the address-history service and a bitcoind node.

    Addresses and transactions returned by the same client are unique per id.
    Separate clients never share entities.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        history_service=None,
        node=None,
    ):
        self.config = config or ClientConfig()
        self.history_service = history_service or AddressHistoryService(
            base_url=self.config.history_url,
            verify_tls=self.config.verify_tls,
            timeout=self.config.http_timeout,
        )
        self.node = node or NodeRPC(
            url=self.config.rpc_url,
            username=self.config.rpc_username,
            password=self.config.rpc_password,
            timeout=self.config.http_timeout,
            retries=self.config.rpc_retries,
        )
        self.registry = EntityRegistry()
        self.assembler = TransactionAssembler(self.registry, self.node)
        self.fetcher = HistoryFetcher(
            self.history_service,
            self.assembler,
            limit=self.config.page_limit,
            buffer=self.config.page_buffer,
            max_pages=self.config.max_pages,
        )

    def get_address(self, id: str) -> Address:
        return self.registry.get_or_create_address(id)

    def get_transactions(self, address: Union[Address, str]) -> list[Transaction]:
        """Return confirmed transactions of ``address``, oldest first."""
        if isinstance(address, str):
            address = self.get_address(address)
        return self.fetcher.get_transactions(address)

    def get_transaction(self, id: str) -> Transaction:
        return self.assembler.get_transaction(id)

    def is_valid_address(self, address: str) -> bool:
        """Ask the node whether ``address`` is a valid address. Never cached."""
        result = self.node.validateaddress(address)
        logger.debug(f"validateaddress {address}: {result.isvalid}")
        return bool(result.isvalid)

    def close(self) -> None:
        for service in (self.history_service, self.node):
            close = getattr(service, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
