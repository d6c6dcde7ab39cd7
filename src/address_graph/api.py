"""HTTP clients for the address-history service and the bitcoind JSON-RPC node."""

from __future__ import annotations

import itertools
from decimal import Decimal
from typing import Any, Optional

import requests
from loguru import logger
from pydantic import BaseModel, ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from address_graph.config import DEFAULT_HISTORY_URL, DEFAULT_RPC_URL
from address_graph.errors import MalformedResponseError, RPCError, TransportError
from address_graph.models import AddressValidation, HistoryPage, RawTransaction

DEFAULT_TIMEOUT = 30.0


def _parse(model: type[BaseModel], data: Any, what: str):
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponseError(f"Unexpected {what} response: {exc}") from exc


def _decode_json(response: requests.Response, what: str) -> Any:
    # Amounts are decoded as Decimal so satoshi conversion stays exact.
    try:
        return response.json(parse_float=Decimal)
    except ValueError as exc:
        raise MalformedResponseError(f"Invalid JSON from {what}: {exc}") from exc


class AddressHistoryService:
    """
    Client for a blockchain.info style ``rawaddr`` endpoint.

    Pages are requested as ``{base_url}/{address}?limit=L[&offset=O]`` and
    list transactions newest first.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_HISTORY_URL,
        verify_tls: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.verify_tls = verify_tls
        self.timeout = timeout
        self.session = session or requests.Session()
        if not verify_tls:
            logger.warning("TLS certificate verification disabled for address history service")

    def page_url(self, address_id: str, limit: int, offset: Optional[int] = None) -> str:
        url = f"{self.base_url}/{address_id}?limit={limit}"
        if offset is not None:
            url = f"{url}&offset={offset}"
        return url

    def fetch_page(self, address_id: str, limit: int, offset: Optional[int] = None) -> HistoryPage:
        """
        Fetch one history page.

        Raises:
            TransportError: If the request fails or returns an HTTP error
            MalformedResponseError: If the body is not a valid history page
        """
        url = self.page_url(address_id, limit, offset)
        logger.debug(f"GET {url}")

        try:
            response = self.session.get(url, timeout=self.timeout, verify=self.verify_tls)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"Address history request failed: {exc}") from exc

        return _parse(HistoryPage, _decode_json(response, "address history"), "address history")

    def close(self) -> None:
        self.session.close()


class NodeRPC:
    """bitcoind JSON-RPC 1.0 client with basic authentication."""

    def __init__(
        self,
        url: str = DEFAULT_RPC_URL,
        username: str = "",
        password: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = 3,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or self._create_session(retries)
        self.session.auth = (username, password)
        self._ids = itertools.count(1)

    @staticmethod
    def _create_session(retries: int) -> requests.Session:
        session = requests.Session()
        retry = Retry(
            total=retries,
            connect=retries,
            read=retries,
            backoff_factor=0.3,
            status_forcelist=(502, 503, 504),
            allowed_methods=frozenset({"POST"}),
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def call(self, method: str, *params: Any) -> Any:
        """
        Send one JSON-RPC request and return its ``result``.

        bitcoind reports RPC errors with HTTP 500 and an ``error`` object, so
        the body is inspected before the status code.
        """
        payload = {
            "jsonrpc": "1.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }
        logger.debug(f"RPC {method} {list(params)}")

        try:
            response = self.session.post(
                self.url,
                json=payload,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
        except requests.RequestException as exc:
            raise TransportError(f"RPC {method} failed: {exc}") from exc

        try:
            body = response.json(parse_float=Decimal)
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("error"):
            error = body["error"]
            if isinstance(error, dict):
                raise RPCError(f"RPC {method}: {error.get('message')}", error.get("code"))
            raise RPCError(f"RPC {method}: {error}")

        try:
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"RPC {method} failed: {exc}") from exc

        if not isinstance(body, dict) or "result" not in body:
            raise MalformedResponseError(f"RPC {method} returned no result")
        return body["result"]

    def getrawtransaction(self, txid: str) -> RawTransaction:
        """Return verbose raw transaction detail."""
        return _parse(RawTransaction, self.call("getrawtransaction", txid, 1), "getrawtransaction")

    def validateaddress(self, address: str) -> AddressValidation:
        return _parse(AddressValidation, self.call("validateaddress", address), "validateaddress")

    def close(self) -> None:
        self.session.close()
