# streamkit

Building blocks for message-stream applications:

- `streamkit.codec`: the `Codec` interface and `JSONCodec`, a compact UTF-8
  JSON codec (dataclasses encode as objects, datetimes as RFC 3339 strings).
  A shared instance is available as `JSON_CODEC`.
- `streamkit.config`: the `Config` dataclass, the `TopicMode` enum and
  functional options such as `with_host`, `with_port`, `with_basic_auth`,
  `with_default_topic_mode` and `with_drain_timeout`.
- `streamkit.errors`: `StreamError`, `CodecUnsupportedError`,
  `OperationTimeoutError` and `MultiErr`, an error that collects other errors.
- `streamkit.syncx`: thread-based concurrency utilities:
  - `syncx.queue`: `BoundedQueue` with an `OverflowPolicy`, and `PriorityQueue`;
  - `syncx.context`: cancellable `Context` objects, `WaitGroup`, `Barrier`, `Latch`;
  - `syncx.primitives`: `AtomicBool`, `AtomicCounter`, `RWMutexGroup`,
    `OnceGroup`, `TimeoutMutex`, `Semaphore`;
  - `syncx.worker`: `WorkerPool` with a `BackpressurePolicy` and `WorkerMetrics`;
  - `syncx.errors`: the exceptions these raise and the thread-safe `MultiError`.

## What this package does not do

`Config` describes a message server and its client (host, port, TLS, store
directory, authentication, timeouts), but nothing in this package starts a
server, connects to one, or publishes and subscribes to topics. The settings
are plain data for code that does.

## Installation

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Codecs

```python
from streamkit.codec import JSONCodec

codec = JSONCodec()
data = codec.encode({"id": 1, "name": "Ada"})
assert data == b'{"id":1,"name":"Ada"}'
assert codec.decode(data) == {"id": 1, "name": "Ada"}
assert codec.content_type() == "application/json"
```

Unsupported values raise `TypeError` on encoding; invalid JSON raises
`ValueError` on decoding.

## Configuration

```python
from streamkit.config import (
    TopicMode, default_config, with_host, with_port, with_default_topic_mode,
)

cfg = default_config().apply(
    with_host("localhost"),
    with_port(4222),
    with_default_topic_mode(TopicMode.JETSTREAM),
)
```

Defaults: host `127.0.0.1`, port `-1` (a random free port), JSON codec, core
topic mode and the `X-Request-Id` correlation header. Durations are in
seconds.

## Collecting errors

```python
from streamkit.errors import MultiErr

errs = MultiErr()
errs.add(ValueError("first"))
errs.add(ValueError("second"))
print(errs)
# multiple errors:
#  - first
#  - second
```

`streamkit.syncx.errors.MultiError` is the thread-safe variant: it ignores
`None`, and `to_error()` returns `None` when it is empty.

## Queues

```python
from streamkit.syncx.queue import BoundedQueue, OverflowPolicy, PriorityQueue

q = BoundedQueue(2, OverflowPolicy.DROP_OLDEST)
q.push(1); q.push(2); q.push(3)
assert q.drain() == [2, 3]

pq = PriorityQueue()
pq.push("low", 1)
pq.push("high", 10)
assert pq.peek() == ("high", 10)
assert pq.pop() == "high"
```

A full queue under `REJECT` or `BLOCK` raises `QueueFullError`, under
`DROP_NEWEST` `ItemDroppedError`. Popping an empty queue raises `IndexError`.

## Worker pool

```python
from streamkit.syncx.worker import BackpressurePolicy, WorkerConfig, WorkerPool

pool = WorkerPool(WorkerConfig(workers=4, queue_size=100,
                               backpressure=BackpressurePolicy.DROP_NEWEST,
                               metrics=True))
pool.start()
pool.submit(lambda: print("hello"))
pool.stop(timeout=5.0)
print(pool.metrics())
```

## Contexts and synchronisation

```python
from streamkit.syncx.context import Latch, background, merge_contexts, with_cancel

a = with_cancel(background())
b = with_cancel(background())
merged = merge_contexts(a, b)
a.cancel()
assert merged.wait(1.0)  # finishes once either input finishes

latch = Latch()
latch.count_down()
assert latch.is_released()
```

## Running the tests

```
pytest
```