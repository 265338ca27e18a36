#!/usr/bin/env python3
"""Container entry-point for the minirelay server.

Configuration comes from RELAY_CONFIG / RELAY_PORT / RELAY_NAME / RELAY_HOST,
see `minirelay.cli.main_from_env`.
"""

from minirelay.cli import main_from_env

if __name__ == "__main__":  # pragma: no cover
    main_from_env()
