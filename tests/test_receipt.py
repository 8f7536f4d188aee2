import pytest

from latticekit.receipt import DAEMON_BLOCK_EMPTY, Receipt, ReceiptError, wait_receipt
from latticekit.retry import new_fixed_retry_strategy

TX_HASH = "0x" + "ab" * 32


class _Node:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def __call__(self, chain_id, tx_hash):
        self.calls.append((chain_id, tx_hash))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _sleeper():
    slept = []
    return slept, slept.append


def test_returns_confirmed_receipt_on_first_attempt():
    receipt = Receipt(d_block_number=7, fields={"success": True})
    node = _Node([receipt])
    slept, sleep = _sleeper()
    result = wait_receipt(node, "1", TX_HASH, new_fixed_retry_strategy(3, 0.2), sleep)
    assert result is receipt
    assert node.calls == [("1", TX_HASH)]
    assert slept == []


def test_retries_until_daemon_block_present():
    confirmed = Receipt(d_block_number=3)
    node = _Node([Receipt(), RuntimeError("not found"), confirmed])
    slept, sleep = _sleeper()
    result = wait_receipt(node, "2", TX_HASH, new_fixed_retry_strategy(5, 0.2), sleep)
    assert result is confirmed
    assert len(node.calls) == 3
    assert slept == [0.2, 0.2]


def test_bytes_hash_is_sent_as_hex():
    node = _Node([Receipt(d_block_number=1)])
    wait_receipt(node, "1", bytes([0xAB] * 32), new_fixed_retry_strategy(1, 0.0), lambda _: None)
    assert node.calls == [("1", TX_HASH)]


def test_all_failures_raise_with_unique_messages_in_order():
    node = _Node([Receipt(), RuntimeError("boom"), Receipt(), RuntimeError("boom")])
    slept, sleep = _sleeper()
    with pytest.raises(ReceiptError) as info:
        wait_receipt(node, "1", TX_HASH, new_fixed_retry_strategy(4, 0.1), sleep)
    assert str(info.value) == f"{DAEMON_BLOCK_EMPTY}; boom"
    assert info.value.tx_hash == TX_HASH
    assert len(slept) == 3


def test_single_repeated_error_is_not_duplicated():
    node = _Node([Receipt(), Receipt()])
    with pytest.raises(ReceiptError) as info:
        wait_receipt(node, "1", TX_HASH, new_fixed_retry_strategy(2, 0.0), lambda _: None)
    assert str(info.value) == DAEMON_BLOCK_EMPTY
    assert len(node.calls) == 2


def test_attempt_count_limits_calls():
    node = _Node([ValueError("down")] * 10)
    with pytest.raises(ReceiptError) as info:
        wait_receipt(node, "9", TX_HASH, new_fixed_retry_strategy(3, 0.0), lambda _: None)
    assert len(node.calls) == 3
    assert str(info.value) == "down"