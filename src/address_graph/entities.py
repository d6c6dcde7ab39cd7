"""Linked object graph of addresses and transactions.

Entities are created by :class:`address_graph.registry.EntityRegistry` only.
A Transaction owns its Inputs and Outputs; both point back at it and at the
Address they move value from or to.
"""

from __future__ import annotations

from typing import Optional

from address_graph.errors import MalformedResponseError


class Address:
    """Bitcoin address, identified by its encoded string."""

    __slots__ = ("_id",)

    def __init__(self, id: str):
        self._id = id

    @property
    def id(self) -> str:
        return self._id

    def __repr__(self) -> str:
        return f"Address({self._id!r})"


class Transaction:
    """Transaction with ordered inputs and outputs."""

    __slots__ = ("_id", "_inputs", "_outputs", "_keys", "_complete")

    def __init__(self, id: str):
        self._id = id
        self._inputs: list[Input] = []
        self._outputs: list[Output] = []
        self._keys: set[tuple] = set()
        self._complete = False

    @property
    def id(self) -> str:
        return self._id

    @property
    def inputs(self) -> tuple[Input, ...]:
        return tuple(self._inputs)

    @property
    def outputs(self) -> tuple[Output, ...]:
        return tuple(self._outputs)

    @property
    def is_complete(self) -> bool:
        """True once assembly has finished and the lists are sealed."""
        return self._complete

    @property
    def input_value(self) -> int:
        """Total input value in satoshis."""
        return sum(inp.value for inp in self._inputs)

    @property
    def output_value(self) -> int:
        """Total output value in satoshis."""
        return sum(out.value for out in self._outputs)

    def _append(self, entry: Input | Output) -> None:
        if self._complete:
            raise MalformedResponseError(f"Transaction {self._id} is already assembled")
        key = entry._key()
        if key in self._keys:
            raise MalformedResponseError(f"Transaction {self._id} lists {key} twice")
        self._keys.add(key)
        if isinstance(entry, Input):
            self._inputs.append(entry)
        else:
            self._outputs.append(entry)

    def _seal(self) -> None:
        self._complete = True

    def __repr__(self) -> str:
        return (
            f"Transaction({self._id!r}, inputs={len(self._inputs)}, "
            f"outputs={len(self._outputs)})"
        )


class Input:
    """Input of a transaction, spending one output of a previous transaction."""

    __slots__ = (
        "_transaction",
        "_address",
        "_previous_transaction_id",
        "_previous_output_index",
        "_value",
    )

    def __init__(
        self,
        transaction: Transaction,
        address: Address,
        previous_transaction_id: str,
        value: int,
        previous_output_index: Optional[int] = None,
    ):
        self._transaction = transaction
        self._address = address
        self._previous_transaction_id = previous_transaction_id
        self._previous_output_index = previous_output_index
        self._value = value

    @property
    def transaction(self) -> Transaction:
        return self._transaction

    @property
    def address(self) -> Address:
        return self._address

    @property
    def previous_transaction_id(self) -> str:
        return self._previous_transaction_id

    @property
    def previous_output_index(self) -> Optional[int]:
        return self._previous_output_index

    @property
    def value(self) -> int:
        return self._value

    def _key(self) -> tuple:
        # an outpoint can be spent only once
        return ("vin", self._previous_transaction_id, self._previous_output_index)

    def __repr__(self) -> str:
        return (
            f"Input({self._address.id!r}, {self._value}, "
            f"spends={self._previous_transaction_id}:{self._previous_output_index})"
        )


class Output:
    """Output of a transaction."""

    __slots__ = ("_transaction", "_address", "_index", "_value")

    def __init__(
        self,
        transaction: Transaction,
        address: Address,
        value: int,
        index: Optional[int] = None,
    ):
        self._transaction = transaction
        self._address = address
        self._index = index
        self._value = value

    @property
    def transaction(self) -> Transaction:
        return self._transaction

    @property
    def address(self) -> Address:
        return self._address

    @property
    def index(self) -> Optional[int]:
        return self._index

    @property
    def value(self) -> int:
        return self._value

    def _key(self) -> tuple:
        if self._index is None:
            return ("vout", id(self))
        return ("vout", self._index)

    def __repr__(self) -> str:
        return f"Output({self._address.id!r}, {self._value}, n={self._index})"
