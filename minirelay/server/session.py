import socket
from dataclasses import dataclass, field
from typing import Any, Optional

from minirelay.server.errors import ResourceExhaustion


@dataclass(slots=True, eq=False)
class Session:
    """
    Server-side state of one connected client.

    `inbox` is only touched by the read path; `outbox` is appended to by the
    router and consumed from the front by the write path.
    """
    id: int
    handle: int
    conn: Optional[socket.socket] = None
    addr: Any = None
    inbox: bytearray = field(default_factory=bytearray)
    outbox: bytearray = field(default_factory=bytearray)

    @property
    def wants_write(self) -> bool:
        return bool(self.outbox)

    def receive(self, data: bytes) -> None:
        try:
            self.inbox += data
        except MemoryError as e:
            raise ResourceExhaustion(f"cannot grow inbox of client {self.id}") from e

    def queue(self, data: bytes) -> None:
        try:
            self.outbox += data
        except MemoryError as e:
            raise ResourceExhaustion(f"cannot grow outbox of client {self.id}") from e

    def consume(self, nbytes: int) -> None:
        del self.outbox[:nbytes]

    def release(self) -> None:
        self.inbox = bytearray()
        self.outbox = bytearray()
