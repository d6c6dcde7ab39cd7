"""Pydantic models for the upstream service responses."""

from decimal import ROUND_HALF_EVEN, Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from address_graph.errors import MalformedResponseError

SATOSHIS_PER_BTC = Decimal(100_000_000)


def btc_to_satoshis(value) -> int:
    """
    Convert a BTC amount to integer satoshis, exact to 8 decimal places.

    Floats go through ``str`` first so that 0.05 becomes 5000000 and not
    4999999.
    """
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    if amount < 0:
        raise MalformedResponseError(f"Negative amount: {value}")
    return int((amount * SATOSHIS_PER_BTC).to_integral_value(ROUND_HALF_EVEN))


class HistorySummary(BaseModel):
    """One transaction summary in an address-history page."""

    hash: str
    block_height: Optional[int] = None  # missing for mempool transactions

    @property
    def is_confirmed(self) -> bool:
        return self.block_height is not None


class HistoryPage(BaseModel):
    """One page of the address-history service, newest transaction first."""

    txs: list[HistorySummary]
    n_tx: int = Field(ge=0)


class ScriptPubKey(BaseModel):
    """Output script as reported by the node."""

    addresses: Optional[list[str]] = None
    address: Optional[str] = None  # bitcoind >= 22 reports a single address
    type: Optional[str] = None

    def resolve_address(self) -> str:
        """
        Return the address this script pays to.

        Multisig scripts report several addresses; only the first one is
        used, and the others are not modelled.
        """
        if self.addresses:
            return self.addresses[0]
        if self.address:
            return self.address
        raise MalformedResponseError(
            f"Script of type {self.type or 'unknown'} has no resolvable address"
        )


class RawInput(BaseModel):
    """A ``vin`` entry of ``getrawtransaction``."""

    txid: Optional[str] = None
    vout: Optional[int] = Field(default=None, ge=0)
    coinbase: Optional[str] = None

    @property
    def is_coinbase(self) -> bool:
        return self.coinbase is not None and self.txid is None


class RawOutput(BaseModel):
    """A ``vout`` entry of ``getrawtransaction``."""

    n: int = Field(ge=0)
    value: Decimal = Field(ge=0)  # BTC
    scriptPubKey: ScriptPubKey

    @field_validator("value", mode="before")
    @classmethod
    def _float_via_str(cls, value):
        if isinstance(value, float):
            return Decimal(str(value))
        return value

    @property
    def satoshis(self) -> int:
        """Output value in satoshis."""
        return btc_to_satoshis(self.value)


class RawTransaction(BaseModel):
    """Verbose ``getrawtransaction`` result."""

    txid: str
    vin: list[RawInput]
    vout: list[RawOutput]

    def output(self, n: int) -> RawOutput:
        """Return the output with index ``n``."""
        for out in self.vout:
            if out.n == n:
                return out
        raise MalformedResponseError(f"Transaction {self.txid} has no output {n}")


class AddressValidation(BaseModel):
    """``validateaddress`` result."""

    isvalid: bool
    address: Optional[str] = None
