"""
Tests for small helpers used when logging.
"""

import pytest
from minirelay.utils.addr_handlers import format_addr
from minirelay.utils.string_handlers import preview_bytes, remove_last_newline


@pytest.mark.parametrize("addr, expected", [
    (("127.0.0.1", 8888), "127.0.0.1:8888"),
    (("::1", 8888, 0, 0), "[::1]:8888"),
    (("fe80::1", 8888, 0, 2), "[fe80::1%2]:8888"),
    (("localhost", 80), "localhost:80"),
    ("/tmp/relay.sock", "/tmp/relay.sock"),
    (None, "unknown"),
])
def test_format_addr(addr, expected):
    assert format_addr(addr) == expected


def test_preview_bytes():
    assert remove_last_newline(b"hi\n") == b"hi"
    assert remove_last_newline(b"hi") == b"hi"
    assert preview_bytes(b"hello\n") == "hello"
    assert preview_bytes(b"\xffok\n") == "�ok"
    assert preview_bytes(b"a" * 100 + b"\n", limit=10) == "a" * 10 + "..."
