"""
Newline framing over an accumulating receive buffer.

A TCP stream carries no message boundaries, so every read is appended to a
per-connection `bytearray` and complete lines are cut from its front here.
Bytes after the last newline stay in the buffer until a later read
completes them. No line-length limit is applied.
"""

from typing import Iterator

LINE_TERMINATOR = b"\n"


def extract_lines(buffer: bytearray) -> Iterator[bytes]:
    """
    Yield every complete line currently in `buffer`, terminator included,
    removing each one from the buffer as it is yielded.

    The generator is lazy: a line is cut from the buffer when it is yielded,
    so abandoning the iteration early leaves the later lines buffered.
    """
    while True:
        end = buffer.find(LINE_TERMINATOR)
        if end < 0:
            break
        line = bytes(buffer[:end + 1])
        # One drop-front per line; the remainder moves in a single memmove.
        del buffer[:end + 1]
        yield line
