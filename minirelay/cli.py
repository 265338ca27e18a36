import argparse
import os
import sys
from typing import Mapping, Optional, Sequence

from minirelay.server import RelayServer, RelayError, UsageError


def positive_port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"port must be an integer, got {value!r}")
    if not 0 < port < 65536:
        raise argparse.ArgumentTypeError(f"port must be in 1..65535, got {port}")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minirelay",
        description="Relay every line a client sends to all other connected clients.",
        )
    parser.add_argument('port', type=positive_port, help='The TCP port to listen on (loopback by default)')
    parser.add_argument('--config', dest='config_path', default=None, help='The relative path to the config file (JSON) for the server (e.g., --config templates/server_config.json)')
    parser.add_argument('--name', dest='name', default="minirelay", help='Logger name; also names the rotating log file')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Process entry point.

    Exits with status 2 and a usage line on bad arguments (argparse's
    convention), with status 1 and "Fatal error" on any fatal relay error.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    server = RelayServer(name=args.name)
    try:
        server.run(port=args.port, config_path=args.config_path)
    except UsageError as e:
        parser.error(str(e))
    except RelayError as e:
        sys.stderr.write(f"Fatal error: {e}\n")
        sys.exit(1)


DEFAULT_CONTAINER_CONFIG = "/app/templates/server_config.json"


def main_from_env(environ: Optional[Mapping[str, str]] = None) -> None:
    """
    Container entry point, configured from the environment instead of argv.

    Reads:
      - RELAY_CONFIG: path to server_config.json (default: the bundled template)
      - RELAY_PORT: optional; the config file's `port` is used when unset
      - RELAY_NAME: logger/server tag (default: 'minirelay')
      - RELAY_HOST: optional; overrides the config file's `host`. A container
        that must be reachable from outside sets RELAY_HOST=0.0.0.0.
    Exits with status 2 on a bad port and 1 on any fatal relay error.
    """
    env = os.environ if environ is None else environ
    config_path = env.get("RELAY_CONFIG", DEFAULT_CONTAINER_CONFIG)
    name = env.get("RELAY_NAME", "minirelay")
    host = env.get("RELAY_HOST") or None

    raw_port = env.get("RELAY_PORT")
    try:
        port = positive_port(raw_port) if raw_port else None
    except argparse.ArgumentTypeError as e:
        sys.stderr.write(f"Usage error: RELAY_PORT: {e}\n")
        sys.exit(2)

    server = RelayServer(name=name)
    try:
        server.run(host=host, port=port, config_path=config_path)
    except UsageError as e:
        sys.stderr.write(f"Usage error: {e}\n")
        sys.exit(2)
    except RelayError as e:
        sys.stderr.write(f"Fatal error: {e}\n")
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
