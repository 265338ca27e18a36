# Wire texts broadcast by the relay. All return bytes ready to queue.

def arrival_notice(client_id: int) -> bytes:
    return f"server: client {client_id} just arrived\n".encode("ascii")

def departure_notice(client_id: int) -> bytes:
    return f"server: client {client_id} just left\n".encode("ascii")

def client_prefix(client_id: int) -> bytes:
    return f"client {client_id}: ".encode("ascii")

def prefix_line(client_id: int, line: bytes) -> bytes:
    # `line` is passed through untouched, including any '\r' before '\n'.
    return client_prefix(client_id) + line
