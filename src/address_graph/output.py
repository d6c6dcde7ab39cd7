"""Output utilities for address histories."""

import json
from pathlib import Path

from loguru import logger

from address_graph.entities import Address, Transaction


def history_to_json(address: Address, transactions: list[Transaction]) -> dict:
    """Convert an address history to JSON-serializable format."""

    return {
        "address": address.id,
        "num_transactions": len(transactions),
        "transactions": [
            {
                "txid": tx.id,
                "input_value": tx.input_value,
                "output_value": tx.output_value,
                "inputs": [
                    {
                        "address": inp.address.id,
                        "value": inp.value,
                        "previous_txid": inp.previous_transaction_id,
                        "previous_vout": inp.previous_output_index,
                    }
                    for inp in tx.inputs
                ],
                "outputs": [
                    {
                        "address": out.address.id,
                        "value": out.value,
                        "n": out.index,
                    }
                    for out in tx.outputs
                ],
            }
            for tx in transactions
        ],
    }


def address_balance(address: Address, transactions: list[Transaction]) -> int:
    """Net satoshis received by ``address`` over ``transactions``."""

    received = sum(
        out.value for tx in transactions for out in tx.outputs if out.address is address
    )
    spent = sum(inp.value for tx in transactions for inp in tx.inputs if inp.address is address)
    return received - spent


def print_history_summary(address: Address, transactions: list[Transaction]) -> None:
    """Log a concise history summary."""

    logger.info("=" * 70)
    logger.info(f"HISTORY OF {address.id}")
    logger.info("=" * 70)

    if not transactions:
        logger.warning("No confirmed transactions found")
        return

    logger.info(f"Confirmed transactions: {len(transactions)}")
    logger.info(f"  Oldest: {transactions[0].id}")
    logger.info(f"  Newest: {transactions[-1].id}")
    logger.info(f"Balance: {address_balance(address, transactions):,} sats")


def save_history(address: Address, transactions: list[Transaction], output_path: Path) -> None:
    """Write an address history as indented JSON, creating missing parent directories."""

    data = history_to_json(address, transactions)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    logger.info(f"✓ Saved {len(transactions)} transaction(s) to {output_path}")
