from dataclasses import dataclass, field

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8080


@dataclass(frozen=True)
class Node:
    """A physical target on the ring.

    Two nodes are the same node when their ids match; host and port are
    carried along for display only.
    """

    id: str
    host: str = field(default=DEFAULT_HOST, compare=False)
    port: int = field(default=DEFAULT_PORT, compare=False)

    @property
    def address(self):
        return f"{self.host}:{self.port}"

    def to_dict(self):
        return {"id": self.id, "host": self.host, "port": self.port, "address": self.address}

    def __str__(self):
        return f"Node(id={self.id!r}, address={self.address!r})"
