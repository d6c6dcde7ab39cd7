"""Paginated walk over the address-history service."""

from __future__ import annotations

from typing import Optional, Protocol

from loguru import logger

from address_graph.assembler import TransactionAssembler
from address_graph.config import DEFAULT_PAGE_BUFFER, DEFAULT_PAGE_LIMIT
from address_graph.entities import Address, Transaction
from address_graph.errors import ConfigError
from address_graph.models import HistoryPage


class HistoryPageSource(Protocol):
    def fetch_page(
        self, address_id: str, limit: int, offset: Optional[int] = None
    ) -> HistoryPage: ...


def page_offset(page: int, limit: int, buffer: int) -> int:
    """
    Offset of page ``page``.

    Each page starts ``buffer`` transactions before the end of the previous
    one, so transactions arriving between requests cannot push an entry past
    the page boundary unseen.
    """
    return page * limit - page * buffer


class HistoryFetcher:
    """Collects the confirmed transactions of addresses, oldest first."""

    def __init__(
        self,
        service: HistoryPageSource,
        assembler: TransactionAssembler,
        limit: int = DEFAULT_PAGE_LIMIT,
        buffer: int = DEFAULT_PAGE_BUFFER,
        max_pages: Optional[int] = None,
    ):
        if not 0 <= buffer < limit:
            raise ConfigError(f"buffer ({buffer}) must be in [0, limit={limit})")
        self.service = service
        self.assembler = assembler
        self.limit = limit
        self.buffer = buffer
        self.max_pages = max_pages
        self._cache: dict[str, list[Transaction]] = {}

    def get_transactions(self, address: Address) -> list[Transaction]:
        """
        Return confirmed transactions of ``address`` ordered from the oldest.

        The result is cached for the session. Any error aborts the walk and
        leaves the cache untouched.
        """
        cached = self._cache.get(address.id)
        if cached is not None:
            return list(cached)

        transactions, complete = self._walk(address.id)

        # upstream pages are newest first
        transactions.reverse()
        if complete:
            self._cache[address.id] = transactions
        logger.info(f"Address {address.id}: {len(transactions)} confirmed transactions")
        return list(transactions)

    def invalidate(self, address: Address) -> None:
        """Drop the cached history of ``address``."""
        self._cache.pop(address.id, None)

    def _walk(self, address_id: str) -> tuple[list[Transaction], bool]:
        transactions: list[Transaction] = []
        seen: set[str] = set()

        page = 0
        data = self.service.fetch_page(address_id, self.limit)
        logger.info(f"Address {address_id}: {data.n_tx} transactions reported")

        while data.txs:
            for summary in data.txs:
                if not summary.is_confirmed:
                    continue
                if summary.hash in seen:
                    continue
                transactions.append(self.assembler.get_transaction(summary.hash))
                seen.add(summary.hash)

            if page == 0 and data.n_tx <= self.limit:
                break

            page += 1
            if self.max_pages is not None and page >= self.max_pages:
                logger.warning(
                    f"Address {address_id}: stopped after {page} pages, history may be incomplete"
                )
                return transactions, False

            offset = page_offset(page, self.limit, self.buffer)
            logger.info(f"Address {address_id}: fetching page {page} at offset {offset}")
            data = self.service.fetch_page(address_id, self.limit, offset)

        return transactions, True
