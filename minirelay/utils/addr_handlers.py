from typing import Any
import ipaddress

def format_addr(addr: Any) -> str:
    """
    Convert a socket peer address to a compact string for logs.

    Behavior:
      - IPv4 (host, port) -> "host:port"
      - IPv6 (host, port, flowinfo, scopeid) -> "[host%scopeid]:port"  (scopeid only if nonzero)
      - str -> returned as-is (e.g. AF_UNIX paths)
      - None or empty -> "unknown"
      - Fallback -> str(addr)
    """
    if addr is None or addr == "" or addr == ():
        return "unknown"

    if isinstance(addr, str):
        return addr

    if isinstance(addr, tuple) and len(addr) >= 2 and isinstance(addr[1], int):
        host, port = addr[0], addr[1]
        scopeid = addr[3] if len(addr) >= 4 and isinstance(addr[3], int) else None
        try:
            ip = ipaddress.ip_address(host)
        except ValueError:
            # Not an IP literal; fall back to host:port
            return f"{host}:{port}"
        if ip.version == 6:
            host_fmt = host if scopeid in (None, 0) else f"{host}%{scopeid}"
            return f"[{host_fmt}]:{port}"
        return f"{host}:{port}"

    return str(addr)
