"""Command line options for the inventory server: ``-h HOST -p PORT -c CACHE``."""

import argparse
import sys
from dataclasses import dataclass
from typing import List, Optional

from core.config import Settings, settings as default_settings

# option dest -> how it is named in error messages
OPTION_NAMES = {
    "host": "--host (-h)",
    "port": "--port (-p)",
    "cache": "--cache (-c)",
}


@dataclass
class ServerOptions:
    host: str
    port: int
    cache: str


class _Parser(argparse.ArgumentParser):
    def error(self, message: str):
        for dest, name in OPTION_NAMES.items():
            if f"--{dest}" in message and "expected one argument" in message:
                self.exit(1, f"Error: no value given for option {name}.\n")
        self.exit(1, f"Error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    # -h is the host, so help is only available as --help
    parser = _Parser(prog="inventory-server", description="Inventory registration service", add_help=False)
    parser.add_argument("--help", action="help", help="show this help message and exit")
    parser.add_argument("-h", "--host", help="Server host address")
    parser.add_argument("-p", "--port", help="Server port")
    parser.add_argument("-c", "--cache", help="Path to cache directory")
    return parser


def parse_args(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> ServerOptions:
    """Parse argv, falling back to environment defaults; exit with status 1 on bad input."""
    settings = settings or default_settings
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    host = args.host or settings.host
    port = args.port if args.port is not None else settings.port
    cache = args.cache or settings.cache_dir

    for dest, value in (("host", host), ("port", port), ("cache", cache)):
        if value is None or value == "":
            parser.exit(1, f"Error: required option {OPTION_NAMES[dest]} not specified.\n")

    try:
        port = int(port)
    except (TypeError, ValueError):
        parser.exit(1, f"Error: invalid port {port!r}; expected an integer.\n")
    if not 0 < port < 65536:
        parser.exit(1, f"Error: port {port} is out of range (1-65535).\n")

    return ServerOptions(host=host, port=port, cache=cache)
