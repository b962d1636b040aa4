import argparse
import logging
import os
from dataclasses import dataclass

from .node import DEFAULT_HOST, DEFAULT_PORT
from .ring_manager import DEFAULT_VIRTUAL_NODES

ENV_PREFIX = "HASHRING_"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_int(environ, name, default):
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None


def positive_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return number


@dataclass
class RingConfig:
    virtual_nodes: int = DEFAULT_VIRTUAL_NODES
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    def __post_init__(self):
        if self.virtual_nodes <= 0:
            raise ValueError(f"virtual_nodes must be positive, got {self.virtual_nodes}")
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")
        self.log_level = self.log_level.upper()

    @classmethod
    def from_env(cls, environ=None):
        environ = os.environ if environ is None else environ
        return cls(
            virtual_nodes=_env_int(environ, "VIRTUAL_NODES", DEFAULT_VIRTUAL_NODES),
            host=environ.get(ENV_PREFIX + "HOST") or DEFAULT_HOST,
            port=_env_int(environ, "PORT", DEFAULT_PORT),
            log_level=environ.get(ENV_PREFIX + "LOG_LEVEL") or "INFO",
        )

    @classmethod
    def add_arguments(cls, parser, defaults):
        parser.add_argument("--host", default=defaults.host, help="address to bind the HTTP API")
        parser.add_argument("--port", type=int, default=defaults.port, help="port for the HTTP API")
        parser.add_argument(
            "--virtual-nodes", type=positive_int, default=defaults.virtual_nodes,
            help="virtual positions per physical node",
        )
        parser.add_argument("--log-level", default=defaults.log_level, help="logging level")

    @classmethod
    def from_args(cls, args):
        return cls(
            virtual_nodes=args.virtual_nodes,
            host=args.host,
            port=args.port,
            log_level=args.log_level,
        )


def configure_logging(level="INFO"):
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
