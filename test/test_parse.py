import time

import pytest

from junos_netconf.parser import ResponseCollector
from junos_netconf.error import (
    ResponseTimeout,
    SessionClosedException,
    TransportError,
)

from common import ChunkedSock


def collector(chunks, timeout=1, poll_interval=0.01):
    return ResponseCollector(
        ChunkedSock(chunks), timeout=timeout, poll_interval=poll_interval
    )


def test_single_message_single_chunk():
    c = collector([b"Foo]]>]]>"])
    assert c.collect() == b"Foo"


def test_empty_message():
    c = collector([b"]]>]]>"])
    assert c.collect() == b""


@pytest.mark.parametrize("n", [0, 1, 5, 63, 64, 1023, 1024, 1025, 5000])
def test_returns_bytes_before_delimiter(n):
    payload = b"x" * n
    c = collector([payload + b"]]>]]>"])
    assert c.collect() == payload


def test_single_message_fragmented_msg():
    c = collector([b"got a longer ", b"message", b"]]>]]>"])
    assert c.collect() == b"got a longer message"


def test_partial_delimiter_in_message():
    c = collector([b"partly ]]>]]", b" delimiter]]>]]>"])
    assert c.collect() == b"partly ]]>]] delimiter"


def test_fragmented_delim_begin():
    c = collector([b"Foo]", b"]>]]>"])
    assert c.collect() == b"Foo"


def test_fragmented_delim_mid():
    c = collector([b"Foo]]>", b"]]>"])
    assert c.collect() == b"Foo"


def test_fragmented_delim_end():
    c = collector([b"Foo]]>]", b"]>"])
    assert c.collect() == b"Foo"


def test_truncates_at_first_delimiter():
    c = collector([b"Foo]]>]]>Bar]]>]]>"])
    assert c.collect() == b"Foo"
    assert c.collect() == b"Bar"


def test_leftover_starts_next_message():
    c = collector([b"Foo]", b"]>]]", b">", b"Ba", b"r]]>]]>"])
    assert c.collect() == b"Foo"
    assert c.collect() == b"Bar"


def test_timeout_without_delimiter():
    c = collector([b"Any data, but no delimiter HERE"], timeout=0.2, poll_interval=0.05)
    start = time.monotonic()
    with pytest.raises(ResponseTimeout):
        c.collect()
    elapsed = time.monotonic() - start
    assert elapsed >= 0.2
    assert elapsed < 0.2 + 1.0
    # partial data is dropped
    assert c.buf == b""


def test_timeout_on_silent_channel():
    c = collector([], timeout=0.1, poll_interval=0.02)
    start = time.monotonic()
    with pytest.raises(ResponseTimeout):
        c.collect()
    assert time.monotonic() - start >= 0.1


def test_timeout_is_a_builtin_timeout():
    c = collector([], timeout=0.05, poll_interval=0.01)
    with pytest.raises(TimeoutError):
        c.collect()


def test_closed_channel():
    c = collector([b"Foo", b""])
    with pytest.raises(SessionClosedException):
        c.collect()


class BrokenSock:
    def recv_ready(self):
        return True

    def recv(self, _=-1):
        raise OSError("Socket is closed")


def test_transport_error():
    c = ResponseCollector(BrokenSock(), timeout=1, poll_interval=0.01)
    with pytest.raises(TransportError) as excinfo:
        c.collect()
    assert "Socket is closed" in str(excinfo.value)
