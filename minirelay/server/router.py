from typing import Iterable

from minirelay.logger import Logger
from minirelay.protocol import arrival_notice, departure_notice, prefix_line
from minirelay.server.registry import ClientRegistry
from minirelay.server.session import Session
from minirelay.utils import preview_bytes


class BroadcastRouter:
    """
    Fan-out of payloads into the outboxes of every session but the sender.

    Delivery order into the outboxes is ascending handle order. Nothing is
    written to a socket here: a non-empty outbox is what turns write
    interest on at the next readiness pass.
    """

    __slots__: tuple[str, ...] = (
        "registry",
        "logger",
    )

    def __init__(self, registry: ClientRegistry, logger: Logger):
        self.registry = registry
        self.logger = logger

    def announce(self, sender: Session, payload: bytes) -> int:
        """Queue `payload` verbatim for every other session. Returns the number of recipients."""
        recipients = 0

        def deliver(session: Session) -> None:
            nonlocal recipients
            session.queue(payload)
            recipients += 1

        self.registry.for_each_other(sender.handle, deliver)
        return recipients

    def relay_lines(self, sender: Session, lines: Iterable[bytes]) -> int:
        count = 0
        for line in lines:
            recipients = self.announce(sender, prefix_line(sender.id, line))
            self.logger.debug(f"client {sender.id} -> {recipients} peer(s): {preview_bytes(line)}")
            count += 1
        return count

    def announce_arrival(self, session: Session) -> int:
        return self.announce(session, arrival_notice(session.id))

    def announce_departure(self, session: Session) -> int:
        return self.announce(session, departure_notice(session.id))
