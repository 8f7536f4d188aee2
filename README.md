# latticekit

Helpers for working with a lattice blockchain node from Python:

- **Connection configuration** (`latticekit.config`): `ChainConfig`,
  `ConnectingNodeConfig` and `Options` check their settings and build the
  node's HTTP, WebSocket and gin-server URLs and a TLS context.
- **Retry strategies** (`latticekit.retry`): exponential back-off,
  fixed-interval and random-interval waiting, run through `run_with_retry`.
- **Receipt polling** (`latticekit.receipt`): `wait_receipt` asks for a
  transaction receipt again and again until a daemon block confirms it.
- **Dynamic protobuf** (`latticekit.proto_parser`, `latticekit.serializer`):
  parse a `.proto` definition at run time and convert between JSON and the
  protobuf wire format for its first message.

## Installation

```
pip install latticekit
```

To run the tests as well:

```
pip install "latticekit[test]"
pytest
```

## Configuration

```python
from latticekit.config import ChainConfig, ConnectingNodeConfig, Curve, Options

chain = ChainConfig(curve=Curve.SM2P256V1, token_less=True)
chain.validate()
chain.is_sm2p256v1()          # True

node = ConnectingNodeConfig(ip="127.0.0.1", http_port=13000, websocket_port=13001)
node.validate()
print(node.node_address())    # 127.0.0.1:13000
print(node.http_url())        # http://127.0.0.1:13000
print(node.websocket_url())   # ws://127.0.0.1:13001
print(node.gin_server_url())  # http://127.0.0.1:13002 (HTTP port + 2 when gin_http_port is 0)
```

With `insecure=True` the HTTP and gin-server URLs use `https`.
`validate()` raises `ConfigError` (a `ValueError`) when the chain has no
curve, when the node has no IP or HTTP port, or when a port is outside
0–65535.

`Options(insecure_skip_verify=..., max_idle_conns=..., max_idle_conns_per_host=...)`
holds connection settings; `Options.ssl_context()` builds an
`ssl.SSLContext` once and returns the same one afterwards. With
`insecure_skip_verify=True` it checks neither the host name nor the
certificate.

## Retry strategies

```python
from latticekit.retry import (
    RetryError,
    default_backoff_retry_strategy,
    new_fixed_retry_strategy,
    run_with_retry,
)

strategy = default_backoff_retry_strategy()   # 15 attempts, 150 ms initial delay
try:
    result = run_with_retry(fetch_something, strategy)
except RetryError as error:
    print(error.errors)                       # one exception per failed attempt
```

Delays are in seconds. `RetryStrategy.delays()` yields the wait before each
retry, one fewer than the number of attempts:

- `Strategy.BACKOFF` doubles the delay after every retry;
- `Strategy.FIXED_INTERVAL` waits the same delay each time;
- `Strategy.RANDOM_INTERVAL` waits a random time below `max_jitter`
  (which must be positive).

A strategy of no known kind makes 10 attempts with a back-off from 100 ms
plus up to 100 ms of jitter. The defaults are
`default_backoff_retry_strategy()`, `default_fixed_retry_strategy()`
(15 attempts every 150 ms) and `default_random_retry_strategy()`
(15 attempts, up to 500 ms jitter); `new_backoff_retry_strategy`,
`new_fixed_retry_strategy` and `new_random_retry_strategy` build your own.
`run_with_retry` takes a `sleep` callable, `time.sleep` by default.

## Waiting for a receipt

```python
from latticekit.receipt import Receipt, ReceiptError, wait_receipt
from latticekit.retry import default_fixed_retry_strategy

def get_receipt(chain_id: str, tx_hash: str) -> Receipt:
    ...  # ask the node; return Receipt(d_block_number=..., fields={...})

try:
    receipt = wait_receipt(get_receipt, "1", "0x" + "00" * 32, default_fixed_retry_strategy())
except ReceiptError as error:
    print(error.tx_hash, error)
```

A receipt whose `d_block_number` is 0 counts as a failed attempt. The hash
may be given as text or as bytes (bytes are passed on as `0x`-prefixed hex).
When every attempt fails, `ReceiptError` is raised; its message joins the
distinct error messages seen, separated by `"; "`.

## Protobuf serialization

```python
from latticekit.serializer import make_file_descriptor, marshal_message, unmarshal_message

fd = make_file_descriptor('''
syntax = "proto3";
message Student {
  string name = 1;
  int32 age = 2;
}
''')

data = marshal_message(fd, '{"name": "Alice", "age": 20}')
print(unmarshal_message(fd, data))  # {"name": "Alice", "age": 20}
```

`make_file_descriptor` accepts the schema as a string or a readable text
stream. `marshal_message` and `unmarshal_message` always use the first
message the schema defines. `latticekit.proto_parser.parse_proto(text, name)`
returns the underlying `FileDescriptorProto`.

The parser handles `proto2` and `proto3` messages, nested messages, enums,
`oneof`, `map<,>` fields, `reserved` and `optional` fields. It rejects
`import` statements and groups, and it skips `service` and `extend` blocks and
options other than `json_name`, `default` and `packed`. A malformed or
unresolvable definition raises `ProtoSyntaxError` (a `ValueError`).

## What this package does not do

It does not build, sign or send transactions, and it has no HTTP or WebSocket
client for the node. The configuration classes only produce URLs and a TLS
context, and `wait_receipt` relies on the `get_receipt` callable you pass it
to reach the node.