"""Thread-based concurrency utilities: queues, contexts, synchronisation primitives and a worker pool."""