"""Exception hierarchy for address graph assembly."""

from __future__ import annotations

from typing import Optional


class AddressGraphError(Exception):
    """Base class for all errors raised by address_graph."""


class ConfigError(AddressGraphError):
    """Invalid client configuration."""


class TransportError(AddressGraphError):
    """Network, TLS or connection failure talking to an upstream service."""


class RPCError(TransportError):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class MalformedResponseError(AddressGraphError):
    """
    Upstream data cannot be turned into a correct graph.

    Raised for missing fields, a spent output index that the previous
    transaction does not have, or a script without a resolvable address.
    """
