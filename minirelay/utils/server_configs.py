"""
In `server.py` config["hyper_parameters"] holds the knobs of the relay
loop. Isolate their validation here.
"""

import socket
from dataclasses import dataclass
from typing import List

CLIENT_ERROR_POLICIES = ("fatal", "disconnect")

DEFAULT_RECV_CHUNK_SIZE = 4096


@dataclass(slots=True)
class ServerConfig:
    recv_chunk_size: int = DEFAULT_RECV_CHUNK_SIZE
    backlog: int = socket.SOMAXCONN
    client_error_policy: str = "fatal"

    def __post_init__(self):
        if self.recv_chunk_size <= 0:
            raise ValueError("The provided recv_chunk_size must be an integer ≥ 1")
        if self.backlog < 0:
            raise ValueError("The provided backlog must be an integer ≥ 0")
        if self.client_error_policy not in CLIENT_ERROR_POLICIES:
            raise ValueError(f"The provided client_error_policy must be one of {CLIENT_ERROR_POLICIES}")

    @property
    def client_errors_are_fatal(self) -> bool:
        return self.client_error_policy == "fatal"

    def merge_in(self, **kwargs) -> List[str]:
        all_problems = []
        if "recv_chunk_size" in kwargs:
            z = kwargs["recv_chunk_size"]
            if not isinstance(z, int) or isinstance(z, bool):
                all_problems.append(f"The provided recv_chunk_size was not an integer. It was {type(z)}")
            elif z <= 0:
                all_problems.append(f"The provided recv_chunk_size must be an integer ≥ 1. It was {z}")
            else:
                self.recv_chunk_size = z
        if "backlog" in kwargs:
            z = kwargs["backlog"]
            if not isinstance(z, int) or isinstance(z, bool):
                all_problems.append(f"The provided backlog was not an integer. It was {type(z)}")
            elif z < 0:
                all_problems.append(f"The provided backlog was negative. It was {z}")
            else:
                self.backlog = z
        if "client_error_policy" in kwargs:
            z = kwargs["client_error_policy"]
            if z not in CLIENT_ERROR_POLICIES:
                all_problems.append(f"The provided client_error_policy must be one of {CLIENT_ERROR_POLICIES}. It was {z!r}")
            else:
                self.client_error_policy = z
        return all_problems
