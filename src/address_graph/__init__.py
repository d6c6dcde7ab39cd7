"""Bitcoin address history reconstruction into a linked transaction graph."""

__version__ = "0.1.0"

from address_graph.api import AddressHistoryService, NodeRPC
from address_graph.assembler import TransactionAssembler
from address_graph.client import Client
from address_graph.config import ClientConfig
from address_graph.entities import Address, Input, Output, Transaction
from address_graph.errors import (
    AddressGraphError,
    ConfigError,
    MalformedResponseError,
    RPCError,
    TransportError,
)
from address_graph.history import HistoryFetcher, page_offset
from address_graph.models import btc_to_satoshis
from address_graph.output import history_to_json, print_history_summary, save_history
from address_graph.registry import EntityRegistry

__all__ = [
    "Address",
    "Transaction",
    "Input",
    "Output",
    "Client",
    "ClientConfig",
    "EntityRegistry",
    "TransactionAssembler",
    "HistoryFetcher",
    "AddressHistoryService",
    "NodeRPC",
    "AddressGraphError",
    "ConfigError",
    "TransportError",
    "RPCError",
    "MalformedResponseError",
    "page_offset",
    "btc_to_satoshis",
    "history_to_json",
    "save_history",
    "print_history_summary",
]
