import socket
from typing import Any, Callable, Iterator, Optional

from minirelay.server.errors import ResourceExhaustion
from minirelay.server.session import Session

NO_HANDLE = -1


class ClientRegistry:
    """
    Sparse table of live sessions indexed by connection handle.

    The table grows on demand to `max(2 * capacity, handle + 1)` and never
    shrinks. `highest_active_handle` bounds every scan; the listening
    socket's handle, once bound, is its floor.

    Client ids come from a counter that only moves forward, so an id is
    never handed out twice even when the OS reuses a handle.
    """

    __slots__: tuple[str, ...] = (
        "_slots",
        "_count",
        "next_id",
        "listening_handle",
        "highest_active_handle",
    )

    def __init__(self):
        self._slots: list[Optional[Session]] = []
        self._count = 0
        self.next_id = 0
        self.listening_handle = NO_HANDLE
        self.highest_active_handle = NO_HANDLE

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def __len__(self) -> int:
        return self._count

    def __contains__(self, handle: int) -> bool:
        return self.get(handle) is not None

    def _grow(self, handle: int) -> None:
        new_capacity = max(2 * self.capacity, handle + 1)
        try:
            self._slots.extend([None] * (new_capacity - self.capacity))
        except MemoryError as e:
            raise ResourceExhaustion(f"cannot grow registry to {new_capacity} slots") from e

    def is_occupied(self, handle: int) -> bool:
        return handle == self.listening_handle or handle in self

    def bind_listener(self, handle: int) -> None:
        if handle >= self.capacity:
            self._grow(handle)
        self.listening_handle = handle
        if handle > self.highest_active_handle:
            self.highest_active_handle = handle

    def register(
            self,
            handle: int,
            conn: Optional[socket.socket] = None,
            addr: Any = None,
            ) -> Session:
        if handle < 0:
            raise ValueError(f"invalid connection handle {handle}")
        if self.is_occupied(handle):
            raise ValueError(f"connection handle {handle} is already registered")

        if handle >= self.capacity:
            self._grow(handle)

        session = Session(id=self.next_id, handle=handle, conn=conn, addr=addr)
        self.next_id += 1
        self._slots[handle] = session
        self._count += 1

        if handle > self.highest_active_handle:
            self.highest_active_handle = handle
        return session

    def unregister(self, handle: int) -> Optional[Session]:
        session = self.get(handle)
        if session is None:
            return None

        session.release()
        self._slots[handle] = None
        self._count -= 1

        if handle == self.highest_active_handle:
            h = handle
            while h > NO_HANDLE and not self.is_occupied(h):
                h -= 1
            self.highest_active_handle = h
        return session

    def get(self, handle: int) -> Optional[Session]:
        if 0 <= handle < self.capacity:
            return self._slots[handle]
        return None

    def sessions(self) -> Iterator[Session]:
        """Live sessions in ascending handle order."""
        for handle in range(self.highest_active_handle + 1):
            session = self._slots[handle]
            if session is not None:
                yield session

    def for_each_other(self, excluding_handle: int, fn: Callable[[Session], None]) -> None:
        for session in list(self.sessions()):
            if session.handle != excluding_handle:
                fn(session)
