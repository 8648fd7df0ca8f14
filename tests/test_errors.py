import threading

import pytest

from streamkit.errors import (
    CodecUnsupportedError,
    MultiErr,
    OperationTimeoutError,
    StreamError,
)


def test_empty_multi_err():
    merr = MultiErr()
    assert len(merr) == 0
    assert str(merr) == ""


def test_single_error():
    merr = MultiErr()
    merr.add(ValueError("test error"))
    assert len(merr) == 1
    assert str(merr) == "test error"


def test_multiple_errors():
    merr = MultiErr()
    merr.add(ValueError("first error"))
    merr.add(ValueError("second error"))
    merr.add(ValueError("third error"))
    assert len(merr) == 3
    message = str(merr)
    assert "multiple errors:" in message
    assert "first error" in message
    assert "second error" in message
    assert "third error" in message


def test_exact_format():
    merr = MultiErr()
    merr.add(ValueError("network error"))
    merr.add(ValueError("timeout error"))
    assert str(merr) == "multiple errors:\n - network error\n - timeout error"


def test_add_none_is_kept():
    merr = MultiErr()
    merr.add(None)
    assert len(merr) == 1
    assert merr[0] is None


def test_add_keeps_order_and_identity():
    merr = MultiErr()
    standard = ValueError("standard error")
    wrapped = RuntimeError("wrapped: original error")
    merr.add(standard)
    merr.add(wrapped)
    assert len(merr) == 2
    assert merr[0] is standard
    assert merr[1] is wrapped
    assert list(merr) == [standard, wrapped]


def test_wrapped_message_preserved():
    merr = MultiErr()
    base = ValueError("base error")
    level1 = ValueError("level 1: " + str(base))
    level2 = ValueError("level 2: " + str(level1))
    merr.add(level2)
    message = str(merr)
    assert "level 2:" in message
    assert "level 1:" in message
    assert "base error" in message


def test_long_message():
    long_message = "A" * 1000
    merr = MultiErr()
    merr.add(ValueError(long_message))
    assert long_message in str(merr)


def test_unicode_message():
    merr = MultiErr()
    merr.add(ValueError("错误: unicode error message 🚫"))
    assert "错误" in str(merr)
    assert "🚫" in str(merr)


def test_empty_error_message():
    merr = MultiErr()
    merr.add(ValueError(""))
    assert str(merr) == ""


def test_concurrent_addition():
    merr = MultiErr()
    threads = [
        threading.Thread(target=merr.add, args=(ValueError("concurrent error"),))
        for _ in range(10)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert 1 <= len(merr) <= 10


def test_multi_err_is_raisable():
    merr = MultiErr()
    inner = ValueError("test")
    merr.add(inner)
    assert str(merr) == "test"
    assert len(merr) == 1
    assert merr[0] is inner
    with pytest.raises(StreamError) as info:
        raise merr
    assert info.value is merr
    assert str(info.value) == "test"


def test_accumulating_pattern():
    operations = [
        lambda: ValueError("operation 1 failed"),
        lambda: None,
        lambda: ValueError("operation 3 failed"),
        lambda: None,
        lambda: ValueError("operation 5 failed"),
    ]
    merr = MultiErr()
    for operation in operations:
        err = operation()
        if err is not None:
            merr.add(err)
    assert len(merr) == 3
    message = str(merr)
    assert "operation 1 failed" in message
    assert "operation 3 failed" in message
    assert "operation 5 failed" in message


def test_sentinel_messages():
    assert str(CodecUnsupportedError()) == "unsupported codec"
    assert str(OperationTimeoutError()) == "operation timeout"
    assert issubclass(CodecUnsupportedError, StreamError)
    assert issubclass(OperationTimeoutError, StreamError)
    assert not issubclass(CodecUnsupportedError, OperationTimeoutError)