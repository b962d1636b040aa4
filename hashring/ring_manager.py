"""Thread-safe consistent-hash ring with virtual nodes.

``RingManager`` owns a ``HashRing`` and a ``MembershipTable`` and updates them
together under one reader/writer lock, so a lookup never sees a virtual
position whose node is not registered (or the other way round).

Usage::

    ring = RingManager(virtual_nodes_per_node=150)
    ring.register_node(Node("cache-1", "10.0.0.1", 11211))
    ring.register_node(Node("cache-2", "10.0.0.2", 11211))

    owner = ring.resolve("user:123")
"""
import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Optional

from readerwriterlock import rwlock

from .exceptions import InvalidKeyError
from .hash_ring import HashRing
from .hashing import ensure_digest_available, hash_key, virtual_key
from .membership import MembershipTable
from .node import Node
from .stats import tally, uniformity_score

logger = logging.getLogger(__name__)

DEFAULT_VIRTUAL_NODES = 150
SAMPLE_KEY_COUNT = 1000


def sample_keys(count=SAMPLE_KEY_COUNT):
    return [f"key_{i}" for i in range(count)]


@dataclass
class RingInfo:
    """Point-in-time summary of the ring.

    ``data_distribution`` is a sample over ``key_0 .. key_999``, not an
    accounting of real traffic.
    """

    physical_node_count: int
    virtual_node_count: int
    node_ids: List[str]
    data_distribution: Dict[str, int] = field(default_factory=dict)
    average_keys_per_node: float = 0.0
    distribution_uniformity: float = 0.0

    def __post_init__(self):
        if self.physical_node_count == 0:
            return
        sampled = sum(self.data_distribution.values())
        self.average_keys_per_node = sampled / self.physical_node_count
        if self.physical_node_count == 1:
            self.distribution_uniformity = 100.0
        else:
            counts = [self.data_distribution.get(node_id, 0) for node_id in self.node_ids]
            self.distribution_uniformity = uniformity_score(counts, sampled)

    def to_dict(self):
        return asdict(self)


class RingManager:
    def __init__(self, virtual_nodes_per_node: int = DEFAULT_VIRTUAL_NODES):
        if virtual_nodes_per_node <= 0:
            raise ValueError(
                f"virtual_nodes_per_node must be positive, got {virtual_nodes_per_node}"
            )
        ensure_digest_available()

        self._virtual_nodes = virtual_nodes_per_node
        self._ring = HashRing()
        self._members = MembershipTable()
        self._lock = rwlock.RWLockFair()

        logger.info("ring manager initialized vnodes=%d", virtual_nodes_per_node)

    @property
    def virtual_nodes_per_node(self):
        return self._virtual_nodes

    def _virtual_positions(self, node_id):
        for i in range(self._virtual_nodes):
            yield hash_key(virtual_key(node_id, i))

    def register_node(self, node: Node) -> None:
        with self._lock.gen_wlock():
            if not self._members.add(node):
                logger.debug("node already registered: %s", node.id)
                return

            for position in self._virtual_positions(node.id):
                self._ring.insert(position, node)

            logger.info(
                "registered node=%s address=%s vnodes=%d total=%d",
                node.id, node.address, self._virtual_nodes, len(self._ring),
            )

    def deregister_node(self, node_id: str) -> None:
        with self._lock.gen_wlock():
            if self._members.remove(node_id) is None:
                logger.debug("node not registered: %s", node_id)
                return

            for position in self._virtual_positions(node_id):
                owner = self._ring.owner_at(position)
                # a colliding registration may have taken this position over
                if owner is not None and owner.id == node_id:
                    self._ring.remove(position)

            logger.info("deregistered node=%s remaining=%d", node_id, len(self._ring))

    def _resolve_unlocked(self, key):
        return self._ring.resolve(hash_key(key))

    def resolve(self, key: str) -> Optional[Node]:
        if key is None:
            raise InvalidKeyError("key must not be None")

        with self._lock.gen_rlock():
            if self._members.size() == 0:
                return None
            return self._resolve_unlocked(key)

    def distribution(self, keys: Iterable[str]) -> Dict[str, int]:
        """Tally owners of ``keys`` against one consistent view of the ring."""
        with self._lock.gen_rlock():
            if self._members.size() == 0:
                return {}
            owners = (self._resolve_unlocked(key) for key in keys)
            return tally(node.id if node else None for node in owners)

    def node_count(self) -> int:
        with self._lock.gen_rlock():
            return self._members.size()

    def node_ids(self) -> List[str]:
        with self._lock.gen_rlock():
            return self._members.ids()

    def get_node(self, node_id: str) -> Optional[Node]:
        with self._lock.gen_rlock():
            return self._members.get(node_id)

    def ring_info(self) -> RingInfo:
        with self._lock.gen_rlock():
            node_ids = self._members.ids()
            distribution = {}
            if node_ids:
                owners = (self._resolve_unlocked(key) for key in sample_keys())
                # members can outlive every position when their virtual keys collided
                distribution = tally(node.id if node else None for node in owners)
            return RingInfo(
                physical_node_count=len(node_ids),
                virtual_node_count=len(self._ring),
                node_ids=node_ids,
                data_distribution=distribution,
            )

    def reset(self) -> None:
        with self._lock.gen_wlock():
            self._ring.clear()
            self._members.clear()
        logger.info("ring reset")
