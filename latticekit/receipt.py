"""Waiting for a transaction receipt to be confirmed by a daemon block."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from latticekit.retry import RetryError, RetryStrategy, run_with_retry

DAEMON_BLOCK_EMPTY = "the daemon block of the transaction receipt is empty"


class ReceiptError(Exception):
    """Raised when no confirmed receipt could be fetched for a transaction."""

    def __init__(self, message: str, tx_hash: str) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


@dataclass
class Receipt:
    """A transaction receipt; a d_block_number of 0 means it is not yet confirmed."""

    d_block_number: int = 0
    fields: dict[str, Any] = field(default_factory=dict)


def _hash_text(tx_hash: str | bytes) -> str:
    if isinstance(tx_hash, (bytes, bytearray)):
        return "0x" + bytes(tx_hash).hex()
    return tx_hash


def wait_receipt(
    get_receipt: Callable[[str, str], Receipt],
    chain_id: str,
    tx_hash: str | bytes,
    strategy: RetryStrategy | None = None,
    sleep: Callable[[float], object] = time.sleep,
) -> Receipt:
    """Poll get_receipt(chain_id, hash) until the receipt has a daemon block.

    Raises ReceiptError carrying the distinct error messages of the failed
    attempts, joined with "; ", when every attempt fails.
    """
    hash_text = _hash_text(tx_hash)

    def attempt() -> Receipt:
        receipt = get_receipt(chain_id, hash_text)
        if receipt.d_block_number == 0:
            raise ReceiptError(DAEMON_BLOCK_EMPTY, hash_text)
        return receipt

    try:
        return run_with_retry(attempt, strategy, sleep)
    except RetryError as error:
        messages = dict.fromkeys(str(e) for e in error.errors)
        raise ReceiptError("; ".join(messages), hash_text) from error