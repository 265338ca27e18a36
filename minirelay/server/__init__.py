from .server import RelayServer, make_listen_socket
from .errors import (
    RelayError,
    UsageError,
    ResourceExhaustion,
    TransportFault,
    ClientDisconnected,
    ServerShutdown,
    )
from .registry import ClientRegistry
from .router import BroadcastRouter
from .session import Session
